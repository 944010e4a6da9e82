"""Prometheus counters for account activity, exposed at ``/metrics``."""

from __future__ import annotations

from prometheus_client import CONTENT_TYPE_LATEST, Counter, generate_latest

USERS_REGISTERED = Counter("users_registered", "Users who completed registration")
USERS_VERIFIED = Counter("users_verified", "Users who verified their email address")

EMAIL_VERIFICATION_SENT = Counter(
    "email_verification_sent", "Verification emails handed to the mail server"
)
EMAIL_VERIFICATION_FAILED = Counter(
    "email_verification_failed", "Verification emails that could not be queued or sent"
)
EMAIL_PASSWORD_RESET_SENT = Counter(
    "email_password_reset_sent", "Password reset emails handed to the mail server"
)

RATE_LIMIT_EXCEEDED = Counter(
    "security_rate_limit_exceeded", "Verification resends refused inside the resend window"
)
INVALID_TOKEN = Counter(
    "security_invalid_token", "Token lookups that were unknown, expired or invalidated"
)

EMAIL_VERIFICATION = "verification"
EMAIL_PASSWORD_RESET = "password_reset"


def record_email(kind: str | None, delivered: bool) -> None:
    """Count one delivery attempt for a verification or reset email."""

    if kind == EMAIL_VERIFICATION:
        (EMAIL_VERIFICATION_SENT if delivered else EMAIL_VERIFICATION_FAILED).inc()
    elif kind == EMAIL_PASSWORD_RESET and delivered:
        EMAIL_PASSWORD_RESET_SENT.inc()


def render_latest() -> tuple[bytes, str]:
    return generate_latest(), CONTENT_TYPE_LATEST
