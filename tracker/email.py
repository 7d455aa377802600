import logging
import smtplib
from dataclasses import dataclass
from typing import Optional

from django.conf import settings
from django.core.mail import EmailMultiAlternatives
from django.utils.html import strip_tags

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class EmailResult:
    success: bool
    error: Optional[str] = None


def send_email(to, subject, html_content, text_content=None):
    """Deliver one message through the configured backend.

    Ordinary delivery failures come back as ``EmailResult(success=False)``
    instead of raising, so a batch caller can move on to the next recipient.
    """
    if not to:
        return EmailResult(False, "no recipient")
    message = EmailMultiAlternatives(
        subject=subject,
        body=text_content or strip_tags(html_content),
        from_email=settings.DEFAULT_FROM_EMAIL,
        to=[to],
    )
    message.attach_alternative(html_content, "text/html")
    try:
        message.send(fail_silently=False)
    except (smtplib.SMTPException, OSError) as exc:
        logger.error("Error sending email to %s: %s", to, exc)
        return EmailResult(False, str(exc))
    return EmailResult(True)
