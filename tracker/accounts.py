import logging
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from django.contrib.auth import get_user_model

from .errors import ValidationError
from .models import REMINDER_CADENCES

logger = logging.getLogger(__name__)

SETTINGS_FIELDS = ("name", "timezone", "default_reminder_cadence")


def _clean_name(value):
    if not isinstance(value, str):
        raise ValidationError("name must be a string", field="name")
    value = value.strip()
    limit = get_user_model()._meta.get_field("first_name").max_length
    if len(value) > limit:
        raise ValidationError(f"name must be at most {limit} characters", field="name")
    return value


def _clean_timezone(value):
    if not isinstance(value, str) or not value:
        raise ValidationError("Invalid timezone", field="timezone")
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown timezone '{value}'", field="timezone")
    return value


def _clean_cadence(value):
    if value not in dict(REMINDER_CADENCES):
        raise ValidationError(f"Unrecognized reminder cadence '{value}'", field="default_reminder_cadence")
    return value


_CLEANERS = {
    "name": _clean_name,
    "timezone": _clean_timezone,
    "default_reminder_cadence": _clean_cadence,
}


def serialize_user(user):
    return {
        "id": user.pk,
        "name": user.name,
        "email": user.email,
        "timezone": user.timezone,
        "defaultReminderCadence": user.default_reminder_cadence,
    }


def update_user_settings(acting_user_id, changes):
    """Apply a partial settings update to the acting user only."""
    unknown = set(changes) - set(SETTINGS_FIELDS)
    if unknown:
        field = sorted(unknown)[0]
        raise ValidationError(f"Unknown field '{field}'", field=field)
    cleaned = {name: _CLEANERS[name](value) for name, value in changes.items()}

    user = get_user_model().objects.get(pk=acting_user_id)
    if "name" in cleaned:
        user.first_name, user.last_name = cleaned.pop("name"), ""
    for name, value in cleaned.items():
        setattr(user, name, value)
    user.save()
    logger.info("User %s updated settings: %s", acting_user_id, ", ".join(sorted(changes)) or "nothing")
    return user
