"""Event handlers that issue tokens and queue the matching emails."""

from __future__ import annotations

import logging

from models import db
from models.user import User
from services import metrics
from services.token_service import TokenPurpose, TokenService
from tasks.notifications import send_email

from . import AccountSignals, PasswordResetRequested, RegistrationCompleted

logger = logging.getLogger(__name__)

VERIFY_PATH = "/api/v1/users/verify-registration"
RESET_PATH = "/reset-password"


def _load_user(user_id: int) -> User | None:
    user = db.session.get(User, user_id)
    if user is None:
        logger.warning("Skipping event for missing user %s", user_id)
    return user


def build_link(base_url: str, path: str, token: str) -> str:
    return f"{base_url.rstrip('/')}{path}?token={token}"


def _queue_email(to: str, subject: str, body: str, kind: str) -> None:
    """Hand the email to the worker; a failure to enqueue is logged and dropped."""

    try:
        send_email.delay(to, subject, body, kind=kind)
    except Exception:
        logger.exception("Could not queue \"%s\" email for %s", subject, to)
        metrics.record_email(kind, delivered=False)
        return
    logger.info("Queued \"%s\" email for %s", subject, to)


def make_registration_handler(token_service: TokenService):
    def handle_registration_completed(event: RegistrationCompleted) -> None:
        user = _load_user(event.user_id)
        if user is None:
            return

        duration = token_service.durations[TokenPurpose.VERIFICATION]
        token = token_service.create_token(user, TokenPurpose.VERIFICATION)
        verification_url = build_link(event.application_url, VERIFY_PATH, token.token)

        body = (
            f"Hello {user.first_name},\n\n"
            "Please click the following link to verify your account:\n"
            f"{verification_url}\n\n"
            f"The link will expire in {duration} minutes.\n\n"
            "Best regards,\nBook Store Team"
        )
        _queue_email(user.email, "Verify Account", body, metrics.EMAIL_VERIFICATION)

    return handle_registration_completed


def make_password_reset_handler(token_service: TokenService):
    def handle_password_reset_requested(event: PasswordResetRequested) -> None:
        user = _load_user(event.user_id)
        if user is None:
            return

        duration = token_service.durations[TokenPurpose.PASSWORD_RESET]
        token = token_service.create_token(user, TokenPurpose.PASSWORD_RESET)
        reset_url = build_link(event.application_url, RESET_PATH, token.token)

        body = (
            f"Hello {user.first_name},\n\n"
            "You requested to reset your password. "
            "Please click the following link to choose a new one:\n"
            f"{reset_url}\n\n"
            f"The link will expire in {duration} minutes.\n\n"
            "If you did not request this password reset, please ignore this email.\n\n"
            "Best regards,\nBook Store Team"
        )
        _queue_email(user.email, "Reset Your Password", body, metrics.EMAIL_PASSWORD_RESET)

    return handle_password_reset_requested


def register_handlers(signals: AccountSignals, token_service: TokenService) -> None:
    """Connect the token and notification handlers; closures need strong refs."""

    signals.registration_completed.connect(
        make_registration_handler(token_service), weak=False
    )
    signals.password_reset_requested.connect(
        make_password_reset_handler(token_service), weak=False
    )
