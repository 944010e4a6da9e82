"""Fire-and-forget email delivery."""

from __future__ import annotations

import logging

from celery import shared_task
from flask import current_app

from services import metrics
from services.email_service import EmailSender

logger = logging.getLogger(__name__)


@shared_task(ignore_result=True)
def send_email(to: str, subject: str, body: str, kind: str | None = None) -> bool:
    """Send one email; failures are logged and not retried.

    ``kind`` names the flow (``verification`` or ``password_reset``) for the
    delivery counters.
    """

    sender = EmailSender.from_config(current_app.config)
    try:
        sender.send(to, subject, body)
    except Exception:
        logger.exception("Failed to send \"%s\" email to %s", subject, to)
        metrics.record_email(kind, delivered=False)
        return False
    metrics.record_email(kind, delivered=True)
    return True
