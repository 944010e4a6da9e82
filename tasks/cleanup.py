"""Daily sweeps removing expired and invalidated account tokens."""

from __future__ import annotations

import logging

from celery import shared_task
from flask import current_app

from models import db, utcnow

logger = logging.getLogger(__name__)


def _token_service():
    return current_app.extensions["token_service"]


@shared_task(ignore_result=True)
def cleanup_expired_tokens() -> int | None:
    """Delete expired verification and reset tokens.

    Errors are logged; the next scheduled run is the retry.
    """

    try:
        deleted = _token_service().delete_expired_tokens()
    except Exception:
        logger.exception("Error cleaning up expired tokens")
        db.session.rollback()
        return None
    logger.info("Cleaned up %d expired tokens at %s", deleted, utcnow().isoformat())
    return deleted


@shared_task(ignore_result=True)
def cleanup_invalid_tokens() -> int | None:
    """Delete invalidated verification and reset tokens."""

    try:
        deleted = _token_service().delete_invalid_tokens()
    except Exception:
        logger.exception("Error cleaning up invalid tokens")
        db.session.rollback()
        return None
    logger.info("Cleaned up %d invalid tokens at %s", deleted, utcnow().isoformat())
    return deleted
