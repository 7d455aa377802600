"""
Opportunity lifecycle: creation, partial updates, deletion and the status
state machine.

Any recognised status may follow any other; ``STATUS_FLOW`` is only the
advisory order used to render progress. Every actual status change appends
one ``TimelineStep`` in the same transaction that writes the new status.
"""
import logging
import uuid
from datetime import date, datetime, time
from datetime import timezone as dt_timezone

from django.core.exceptions import ValidationError as DjangoValidationError
from django.core.validators import URLValidator
from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_date, parse_datetime

from .errors import DuplicateOpportunity, InvalidStatus, OpportunityNotFound, ValidationError
from .models import SAVED_STEP, Opportunity, OpportunityStatus, OpportunityType, TimelineStep

logger = logging.getLogger(__name__)

STATUS_FLOW = [
    OpportunityStatus.INTERESTED,
    OpportunityStatus.IN_PROGRESS,
    OpportunityStatus.SUBMITTED,
    OpportunityStatus.INTERVIEW,
    OpportunityStatus.ACCEPTED,
]

EDITABLE_FIELDS = (
    "title",
    "organization",
    "description",
    "source_url",
    "opportunity_type",
    "status",
    "deadline",
    "tags",
    "checklist_items",
)

_url_validator = URLValidator(schemes=["http", "https"])


def progress_index(status):
    """Position of ``status`` in the main flow, or -1 for side states."""
    try:
        return STATUS_FLOW.index(status)
    except ValueError:
        return -1


def status_change_label(status):
    return f"Status changed to {status.replace('_', ' ')}"


# ---------------------------------------------------------------------------
# Field cleaning
# ---------------------------------------------------------------------------

def clean_status(value):
    if value not in OpportunityStatus.values:
        raise InvalidStatus(value)
    return value


def _clean_type(value):
    if value not in OpportunityType.values:
        raise ValidationError(f"Unrecognized opportunity type '{value}'", field="opportunity_type")
    return value


def _check_length(value, field):
    limit = Opportunity._meta.get_field(field).max_length
    if limit is not None and len(value) > limit:
        raise ValidationError(f"{field} must be at most {limit} characters", field=field)
    return value


def _clean_title(value):
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Title is required", field="title")
    return _check_length(value.strip(), "title")


def _clean_optional_text(value, field):
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", field=field)
    return _check_length(value, field) or None


def _clean_source_url(value):
    if value in (None, ""):
        return None
    if not isinstance(value, str):
        raise ValidationError("Invalid URL", field="source_url")
    _check_length(value, "source_url")
    try:
        _url_validator(value)
    except DjangoValidationError:
        raise ValidationError("Invalid URL", field="source_url")
    return value


def _clean_deadline(value):
    if value in (None, ""):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    elif isinstance(value, str):
        parsed = parse_datetime(value)
        if parsed is None:
            day = parse_date(value)
            parsed = datetime.combine(day, time.min) if day else None
        if parsed is None:
            raise ValidationError("Invalid deadline", field="deadline")
    else:
        raise ValidationError("Invalid deadline", field="deadline")
    if timezone.is_naive(parsed):
        parsed = timezone.make_aware(parsed, dt_timezone.utc)
    return parsed


def _clean_tags(value):
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(t, str) for t in value):
        raise ValidationError("Tags must be a list of strings", field="tags")
    return value


def _clean_checklist(value):
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValidationError("Checklist must be a list", field="checklist_items")
    items = []
    for raw in value:
        if not isinstance(raw, dict) or not isinstance(raw.get("label"), str) or not isinstance(raw.get("done"), bool):
            raise ValidationError("Checklist items need a label and a done flag", field="checklist_items")
        item = {"label": raw["label"], "done": raw["done"]}
        if "optional" in raw:
            if not isinstance(raw["optional"], bool):
                raise ValidationError("Checklist 'optional' must be a boolean", field="checklist_items")
            item["optional"] = raw["optional"]
        if "notes" in raw:
            if not isinstance(raw["notes"], str):
                raise ValidationError("Checklist 'notes' must be a string", field="checklist_items")
            item["notes"] = raw["notes"]
        items.append(item)
    return items


_CLEANERS = {
    "title": _clean_title,
    "organization": lambda v: _clean_optional_text(v, "organization"),
    "description": lambda v: _clean_optional_text(v, "description"),
    "source_url": _clean_source_url,
    "opportunity_type": _clean_type,
    "status": clean_status,
    "deadline": _clean_deadline,
    "tags": _clean_tags,
    "checklist_items": _clean_checklist,
}


def _clean_changes(changes):
    unknown = set(changes) - set(EDITABLE_FIELDS)
    if unknown:
        field = sorted(unknown)[0]
        raise ValidationError(f"Unknown field '{field}'", field=field)
    return {name: _CLEANERS[name](value) for name, value in changes.items()}


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def _owned(opportunity_id, acting_user_id, for_update=False):
    try:
        pk = uuid.UUID(str(opportunity_id))
    except ValueError:
        raise OpportunityNotFound(opportunity_id)
    qs = Opportunity.objects.filter(pk=pk, created_by_id=acting_user_id)
    if for_update:
        qs = qs.select_for_update()
    opportunity = qs.first()
    if opportunity is None:
        raise OpportunityNotFound(opportunity_id)
    return opportunity


def _check_unique_url(acting_user_id, source_url, exclude_id=None):
    if not source_url:
        return
    qs = Opportunity.objects.filter(created_by_id=acting_user_id, source_url=source_url)
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    existing = qs.values_list("pk", flat=True).first()
    if existing is not None:
        raise DuplicateOpportunity(existing)


def get_opportunity(opportunity_id, acting_user_id):
    return _owned(opportunity_id, acting_user_id)


def list_opportunities(acting_user_id, status=None, opportunity_type=None):
    qs = Opportunity.objects.filter(created_by_id=acting_user_id)
    if status:
        qs = qs.filter(status=clean_status(status))
    if opportunity_type:
        qs = qs.filter(opportunity_type=_clean_type(opportunity_type))
    return qs.order_by("-created_at")


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

def _apply_status(opportunity, status):
    """Append a timeline step and set the status. Caller holds the row lock."""
    if status == opportunity.status:
        return False
    previous = opportunity.status
    TimelineStep.objects.create(
        opportunity=opportunity,
        step_type=status,
        label=status_change_label(status),
    )
    opportunity.status = status
    logger.info("Opportunity %s status %s -> %s", opportunity.pk, previous, status)
    return True


def create_opportunity(acting_user_id, **fields):
    """Create an opportunity in ``interested`` with its seed ``saved`` step."""
    if "title" not in fields:
        raise ValidationError("Title is required", field="title")
    if "opportunity_type" not in fields:
        raise ValidationError("Opportunity type is required", field="opportunity_type")
    fields.pop("status", None)
    cleaned = _clean_changes(fields)

    with transaction.atomic():
        _check_unique_url(acting_user_id, cleaned.get("source_url"))
        opportunity = Opportunity.objects.create(
            created_by_id=acting_user_id,
            status=OpportunityStatus.INTERESTED,
            **cleaned,
        )
        TimelineStep.objects.create(
            opportunity=opportunity,
            step_type=SAVED_STEP,
            label="Saved opportunity",
        )
    logger.info("User %s saved opportunity %s", acting_user_id, opportunity.pk)
    return opportunity


def update_status(opportunity_id, requested_status, acting_user_id):
    status = clean_status(requested_status)
    with transaction.atomic():
        opportunity = _owned(opportunity_id, acting_user_id, for_update=True)
        if _apply_status(opportunity, status):
            opportunity.save(update_fields=["status", "updated_at"])
    return opportunity


def update_opportunity(opportunity_id, acting_user_id, changes):
    """PATCH-style update; a ``status`` key goes through the state machine."""
    cleaned = _clean_changes(changes)
    with transaction.atomic():
        opportunity = _owned(opportunity_id, acting_user_id, for_update=True)
        if "source_url" in cleaned:
            _check_unique_url(acting_user_id, cleaned["source_url"], exclude_id=opportunity.pk)
        status = cleaned.pop("status", None)
        if status is not None:
            _apply_status(opportunity, status)
        for name, value in cleaned.items():
            setattr(opportunity, name, value)
        opportunity.save()
    return opportunity


def delete_opportunity(opportunity_id, acting_user_id):
    opportunity = _owned(opportunity_id, acting_user_id)
    opportunity.delete()
    logger.info("User %s deleted opportunity %s", acting_user_id, opportunity_id)
