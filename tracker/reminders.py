import logging
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from datetime import timezone as dt_timezone

from django.conf import settings
from django.db import DatabaseError
from django.template.loader import render_to_string
from django.utils import timezone

from .email import send_email
from .models import Opportunity, OpportunityStatus, Reminder

logger = logging.getLogger(__name__)

# Days before the deadline at which a reminder goes out.
REMINDER_OFFSETS = (1, 3, 7)

# "decision_pending" is not an OpportunityStatus value but stays in the filter.
ACTIONABLE_STATUSES = (
    OpportunityStatus.INTERESTED,
    OpportunityStatus.IN_PROGRESS,
    "decision_pending",
)


@dataclass
class ReminderRunResult:
    success: bool = True
    sent_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0

    def as_dict(self):
        return {"success": self.success, "sent": self.sent_count}


def start_of_day(moment):
    return datetime.combine(moment.astimezone(dt_timezone.utc).date(), time.min, tzinfo=dt_timezone.utc)


def day_window(day_start):
    """Inclusive ``[start, end]`` bounds covering one UTC day."""
    return day_start, day_start + timedelta(days=1) - timedelta(microseconds=1)


def format_deadline(deadline):
    if deadline is None:
        return "Unknown"
    day = deadline.astimezone(dt_timezone.utc)
    return f"{day:%B} {day.day}, {day.year}"


def opportunity_link(opportunity):
    return f"{settings.APP_URL}/opportunities/{opportunity.pk}"


def render_reminder(opportunity, offset):
    context = {
        "opportunity_title": opportunity.title,
        "deadline": format_deadline(opportunity.deadline),
        "opportunity_link": opportunity_link(opportunity),
        "days_left": offset,
    }
    subject = f"Reminder: {opportunity.title} is due in {offset} days"
    html = render_to_string("tracker/emails/reminder.html", context)
    text = render_to_string("tracker/emails/reminder.txt", context)
    return subject, html, text


class ReminderScheduler:
    """Daily deadline reminder batch.

    A ``Reminder`` row with ``status="sent"`` for an (opportunity, offset)
    pair is the only record that the reminder went out, so re-running the
    job on the same day sends nothing new. Failed sends leave no row and are
    retried by the next run.
    """

    def __init__(self, sender=send_email, now=None, offsets=REMINDER_OFFSETS):
        unknown = set(offsets) - set(REMINDER_OFFSETS)
        if unknown:
            raise ValueError(f"Unsupported reminder offsets: {sorted(unknown)}")
        self.sender = sender
        self.now = now
        self.offsets = tuple(offsets)

    def _now(self):
        return self.now or timezone.now()

    def due_opportunities(self, today, offset):
        start, end = day_window(today + timedelta(days=offset))
        return (
            Opportunity.objects.filter(
                deadline__gte=start,
                deadline__lte=end,
                status__in=ACTIONABLE_STATUSES,
            )
            .select_related("created_by")
            .prefetch_related("reminders")
            .order_by("deadline")
        )

    def remind(self, opportunity, offset, result):
        already_sent = any(
            r.offset_days == offset and r.status == Reminder.Status.SENT
            for r in opportunity.reminders.all()
        )
        if already_sent:
            result.skipped_count += 1
            return

        user = opportunity.created_by
        if not user.email:
            logger.info("Opportunity %s owner has no email, skipping", opportunity.pk)
            result.skipped_count += 1
            return

        subject, html, text = render_reminder(opportunity, offset)
        outcome = self.sender(user.email, subject, html, text)
        if not outcome.success:
            logger.warning("Failed to send %sd reminder for %s: %s", offset, opportunity.pk, outcome.error)
            result.failed_count += 1
            return

        sent_at = self._now()
        Reminder.objects.create(
            user=user,
            opportunity=opportunity,
            scheduled_at=sent_at,
            offset_days=offset,
            channel="email",
            status=Reminder.Status.SENT,
            sent_at=sent_at,
        )
        result.sent_count += 1
        logger.info("Sent %sd reminder for %s to %s", offset, opportunity.pk, user.email)

    def run(self):
        today = start_of_day(self._now())
        result = ReminderRunResult()
        try:
            for offset in self.offsets:
                for opportunity in self.due_opportunities(today, offset):
                    try:
                        self.remind(opportunity, offset, result)
                    except DatabaseError:
                        raise
                    except Exception as exc:
                        logger.error("Reminder for %s at %sd failed: %s", opportunity.pk, offset, exc)
                        result.failed_count += 1
        except DatabaseError:
            logger.exception("Reminder run aborted")
            raise
        logger.info(
            "Reminder run for %s: %d sent, %d failed, %d skipped",
            today.date(), result.sent_count, result.failed_count, result.skipped_count,
        )
        return result


def send_deadline_reminders(now=None):
    return ReminderScheduler(now=now).run().as_dict()
