"""
Show notification emails
────────────────────────
Sends "new show awaiting approval" mail to an admin and "your show was
approved" mail to the submitter, through the Resend HTTP API.

Delivery is best-effort: every failure is logged and reported as False,
never raised, so the triggering catalog operation always completes.
"""
import logging
from dataclasses import dataclass
from enum import Enum
from html import escape

import httpx

from theater_tracker.core.config import settings

logger = logging.getLogger(__name__)

RESEND_EMAILS_URL = "https://api.resend.com/emails"


class NotificationType(str, Enum):
    NEW_SHOW = "new_show"
    SHOW_APPROVED = "show_approved"


@dataclass(frozen=True)
class ShowNotification:
    type: NotificationType
    show_title: str
    recipient_email: str | None = None


def _render(notification: ShowNotification) -> tuple[str, str]:
    """Return (subject, html) for *notification*."""
    title = escape(notification.show_title)
    if notification.type == NotificationType.NEW_SHOW:
        return (
            "New Show Awaiting Approval",
            "<h2>New Show Submission</h2>"
            "<p>A new show has been submitted and is awaiting your approval:</p>"
            f"<p><strong>{title}</strong></p>"
            "<p>Please log in to your admin dashboard to review and approve this show.</p>",
        )
    return (
        "Your Show Has Been Approved!",
        "<h2>Show Approved</h2>"
        "<p>Great news! Your show submission has been approved:</p>"
        f"<p><strong>{title}</strong></p>"
        "<p>It is now visible in the browse section for all users.</p>"
        "<p>Thank you for contributing to Theater Tracker!</p>",
    )


def send_show_notification(notification: ShowNotification) -> bool:
    """Deliver *notification*. Returns True when the provider accepted it."""
    if not notification.recipient_email:
        logger.info(
            "Skipping %s notification for %r: no recipient",
            notification.type.value,
            notification.show_title,
        )
        return False

    if not settings.notifications_enabled:
        logger.info(
            "Notifications disabled; would send %s for %r to %s",
            notification.type.value,
            notification.show_title,
            notification.recipient_email,
        )
        return False

    subject, html = _render(notification)
    body = {
        "from": settings.NOTIFY_FROM_EMAIL,
        "to": [notification.recipient_email],
        "subject": subject,
        "html": html,
    }
    headers = {"Authorization": f"Bearer {settings.RESEND_API_KEY}"}

    try:
        with httpx.Client(timeout=settings.NOTIFY_TIMEOUT_SECONDS) as client:
            response = client.post(RESEND_EMAILS_URL, json=body, headers=headers)
            response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        logger.warning(
            "%s notification for %r rejected with status %s",
            notification.type.value,
            notification.show_title,
            exc.response.status_code,
        )
        return False
    except httpx.RequestError as exc:
        logger.warning(
            "%s notification for %r failed: %s",
            notification.type.value,
            notification.show_title,
            exc,
        )
        return False

    logger.info(
        "Sent %s notification for %r to %s",
        notification.type.value,
        notification.show_title,
        notification.recipient_email,
    )
    return True
