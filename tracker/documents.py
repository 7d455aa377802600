"""
Document metadata attached to a user and, optionally, one of their
opportunities. Files themselves live in external storage; only the
``file_url`` pointing at them is kept here.
"""
import logging

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator

from .errors import DocumentNotFound, ValidationError
from .models import Attachment
from .workflow import get_opportunity

logger = logging.getLogger(__name__)

MAX_FILE_SIZE = 10 * 1024 * 1024

ALLOWED_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "image/jpeg",
    "image/png",
    "image/gif",
)

_url_validator = URLValidator(schemes=["http", "https"])


def _clean_filename(value):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("filename is required", field="filename")
    value = value.strip()
    if len(value) > Attachment._meta.get_field("filename").max_length:
        raise ValidationError("filename is too long", field="filename")
    return value


def _clean_file_url(value):
    if not isinstance(value, str) or len(value) > Attachment._meta.get_field("file_url").max_length:
        raise ValidationError("Invalid file URL", field="file_url")
    try:
        _url_validator(value)
    except DjangoValidationError:
        raise ValidationError("Invalid file URL", field="file_url")
    return value


def _clean_file_size(value):
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValidationError("file_size must be a non-negative integer", field="file_size")
    if value > MAX_FILE_SIZE:
        raise ValidationError("File size exceeds 10MB limit", field="file_size")
    return value


def _clean_mime_type(value):
    if value not in ALLOWED_TYPES:
        raise ValidationError("File type not allowed", field="mime_type")
    return value


def _clean_category(value):
    if value in (None, ""):
        return "other"
    if not isinstance(value, str) or len(value) > Attachment._meta.get_field("category").max_length:
        raise ValidationError("Invalid category", field="category")
    return value


def list_documents(acting_user_id, opportunity_id=None):
    qs = Attachment.objects.filter(user_id=acting_user_id)
    if opportunity_id:
        qs = qs.filter(opportunity=get_opportunity(opportunity_id, acting_user_id))
    return qs


def create_document(acting_user_id, filename=None, file_url=None, file_size=0, mime_type=None,
                    category=None, opportunity_id=None, **extra):
    if extra:
        field = sorted(extra)[0]
        raise ValidationError(f"Unknown field '{field}'", field=field)
    cleaned = {
        "filename": _clean_filename(filename),
        "file_url": _clean_file_url(file_url),
        "file_size": _clean_file_size(file_size),
        "mime_type": _clean_mime_type(mime_type),
        "category": _clean_category(category),
    }
    opportunity = get_opportunity(opportunity_id, acting_user_id) if opportunity_id else None
    document = Attachment.objects.create(user_id=acting_user_id, opportunity=opportunity, **cleaned)
    logger.info("User %s added document %s", acting_user_id, document.pk)
    return document


def delete_document(document_id, acting_user_id):
    deleted, _ = Attachment.objects.filter(pk=document_id, user_id=acting_user_id).delete()
    if not deleted:
        raise DocumentNotFound(document_id)
    logger.info("User %s deleted document %s", acting_user_id, document_id)
