import json
import logging
from functools import wraps

from django.conf import settings
from django.db import DatabaseError
from django.http import HttpResponse, JsonResponse
from django.views.decorators.http import require_GET, require_http_methods, require_POST

from . import accounts, documents, workflow
from .errors import DocumentNotFound, DuplicateOpportunity, ExtractionError, OpportunityNotFound, ValidationError
from .extract import extract_opportunity
from .reminders import send_deadline_reminders

logger = logging.getLogger(__name__)

# Request bodies use the web client's camelCase names.
FIELD_ALIASES = {
    "sourceUrl": "source_url",
    "opportunityType": "opportunity_type",
    "checklistItems": "checklist_items",
    "fileUrl": "file_url",
    "fileSize": "file_size",
    "mimeType": "mime_type",
    "opportunityId": "opportunity_id",
    "defaultReminderCadence": "default_reminder_cadence",
}


def api_login_required(view):
    @wraps(view)
    def wrapper(request, *args, **kwargs):
        if not request.user.is_authenticated:
            return JsonResponse({"error": "Unauthorized"}, status=401)
        return view(request, *args, **kwargs)
    return wrapper


def _json_body(request):
    try:
        body = json.loads(request.body or b"{}")
    except ValueError:
        raise ValidationError("Malformed JSON body")
    if not isinstance(body, dict):
        raise ValidationError("Expected a JSON object")
    return {FIELD_ALIASES.get(k, k): v for k, v in body.items()}


def _iso(value):
    return value.isoformat() if value else None


def serialize_opportunity(opportunity, detail=False):
    data = {
        "id": str(opportunity.pk),
        "title": opportunity.title,
        "organization": opportunity.organization,
        "description": opportunity.description,
        "sourceUrl": opportunity.source_url,
        "opportunityType": opportunity.opportunity_type,
        "status": opportunity.status,
        "progressIndex": workflow.progress_index(opportunity.status),
        "deadline": _iso(opportunity.deadline),
        "tags": opportunity.tags,
        "checklistItems": opportunity.checklist_items,
        "createdAt": _iso(opportunity.created_at),
        "updatedAt": _iso(opportunity.updated_at),
    }
    if detail:
        data["timelineSteps"] = [
            {"id": s.pk, "stepType": s.step_type, "label": s.label, "createdAt": _iso(s.created_at)}
            for s in opportunity.timeline_steps.all()
        ]
        data["reminders"] = [
            {"id": r.pk, "offsetDays": r.offset_days, "channel": r.channel, "status": r.status,
             "sentAt": _iso(r.sent_at)}
            for r in opportunity.reminders.all()
        ]
        data["attachments"] = [serialize_document(a) for a in opportunity.attachments.all()]
    return data


def serialize_document(document):
    return {
        "id": document.pk,
        "opportunityId": str(document.opportunity_id) if document.opportunity_id else None,
        "filename": document.filename,
        "fileUrl": document.file_url,
        "fileSize": document.file_size,
        "mimeType": document.mime_type,
        "category": document.category,
        "createdAt": _iso(document.created_at),
    }


def _error_response(exc):
    if isinstance(exc, DuplicateOpportunity):
        return JsonResponse({"error": str(exc), "existingId": str(exc.existing_id)}, status=400)
    if isinstance(exc, ValidationError):
        return JsonResponse({"error": str(exc)}, status=400)
    if isinstance(exc, OpportunityNotFound):
        return JsonResponse({"error": "Opportunity not found"}, status=404)
    if isinstance(exc, DocumentNotFound):
        return JsonResponse({"error": "Document not found"}, status=404)
    raise exc


# ---------------------------------------------------------------------------
# Opportunities
# ---------------------------------------------------------------------------

@api_login_required
@require_http_methods(["GET", "POST"])
def opportunity_collection(request):
    try:
        if request.method == "GET":
            qs = workflow.list_opportunities(
                request.user.pk,
                status=request.GET.get("status", "").strip() or None,
                opportunity_type=request.GET.get("type", "").strip() or None,
            )
            return JsonResponse([serialize_opportunity(o) for o in qs], safe=False)
        opportunity = workflow.create_opportunity(request.user.pk, **_json_body(request))
        return JsonResponse(serialize_opportunity(opportunity), status=201)
    except (ValidationError, OpportunityNotFound) as exc:
        return _error_response(exc)


@api_login_required
@require_http_methods(["GET", "PATCH", "DELETE"])
def opportunity_detail(request, opportunity_id):
    try:
        if request.method == "GET":
            opportunity = workflow.get_opportunity(opportunity_id, request.user.pk)
        elif request.method == "PATCH":
            opportunity = workflow.update_opportunity(opportunity_id, request.user.pk, _json_body(request))
        else:
            workflow.delete_opportunity(opportunity_id, request.user.pk)
            return JsonResponse({"success": True})
        return JsonResponse(serialize_opportunity(opportunity, detail=True))
    except (ValidationError, OpportunityNotFound) as exc:
        return _error_response(exc)


@api_login_required
@require_POST
def opportunity_status(request, opportunity_id):
    try:
        body = _json_body(request)
        opportunity = workflow.update_status(opportunity_id, body.get("status"), request.user.pk)
        return JsonResponse(serialize_opportunity(opportunity, detail=True))
    except (ValidationError, OpportunityNotFound) as exc:
        return _error_response(exc)


@api_login_required
@require_POST
def extract_from_url(request):
    try:
        url = _json_body(request).get("url", "")
        if not isinstance(url, str):
            raise ValidationError("url must be a string", field="url")
        return JsonResponse(extract_opportunity(url))
    except ValidationError as exc:
        return _error_response(exc)
    except ExtractionError as exc:
        return JsonResponse({"error": str(exc)}, status=422)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------

@api_login_required
@require_http_methods(["GET", "POST"])
def document_collection(request):
    try:
        if request.method == "GET":
            qs = documents.list_documents(
                request.user.pk,
                opportunity_id=request.GET.get("opportunityId", "").strip() or None,
            )
            return JsonResponse([serialize_document(d) for d in qs], safe=False)
        document = documents.create_document(request.user.pk, **_json_body(request))
        return JsonResponse(serialize_document(document), status=201)
    except (ValidationError, OpportunityNotFound) as exc:
        return _error_response(exc)


@api_login_required
@require_http_methods(["DELETE"])
def document_detail(request, document_id):
    try:
        documents.delete_document(document_id, request.user.pk)
        return JsonResponse({"success": True})
    except DocumentNotFound as exc:
        return _error_response(exc)


# ---------------------------------------------------------------------------
# User settings
# ---------------------------------------------------------------------------

@api_login_required
@require_http_methods(["PATCH"])
def user_settings(request):
    try:
        user = accounts.update_user_settings(request.user.pk, _json_body(request))
        return JsonResponse(accounts.serialize_user(user))
    except ValidationError as exc:
        return _error_response(exc)


# ---------------------------------------------------------------------------
# Cron
# ---------------------------------------------------------------------------

@require_GET
def cron_reminders(request):
    if settings.CRON_SECRET:
        if request.headers.get("Authorization", "") != f"Bearer {settings.CRON_SECRET}":
            return HttpResponse("Unauthorized", status=401)
    try:
        return JsonResponse(send_deadline_reminders())
    except DatabaseError:
        logger.exception("[CRON_REMINDERS]")
        return HttpResponse("Internal Error", status=500)
