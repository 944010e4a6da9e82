"""Registration, verification and password management for user accounts."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import func

from events import AccountSignals, PasswordResetRequested, RegistrationCompleted
from models import db, utcnow
from models.user import User
from utils.validators import normalize_email

from .errors import (
    AccountDisabled,
    InvalidCredentials,
    InvalidPassword,
    PhoneNumberAlreadyExists,
    RateLimitExceeded,
    UserAlreadyEnabled,
    UserAlreadyExists,
    UserNotFound,
    ValidationFailed,
)
from . import metrics
from .forms import PasswordChange, PasswordReset, Registration
from .token_service import TokenPurpose, TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TokenSettings:
    verification_duration_minutes: int = 10
    reset_password_duration_minutes: int = 15
    rate_limit_seconds: int = 60

    @classmethod
    def from_config(cls, config) -> "TokenSettings":
        return cls(
            verification_duration_minutes=int(config["TOKEN_VERIFICATION_DURATION_MINUTES"]),
            reset_password_duration_minutes=int(config["TOKEN_RESET_PASSWORD_DURATION_MINUTES"]),
            rate_limit_seconds=int(config["TOKEN_RATE_LIMIT_SECONDS"]),
        )

    def durations(self) -> dict[TokenPurpose, int]:
        return {
            TokenPurpose.VERIFICATION: self.verification_duration_minutes,
            TokenPurpose.PASSWORD_RESET: self.reset_password_duration_minutes,
        }


@dataclass(frozen=True)
class Principal:
    """The authenticated caller, taken from verified token claims."""

    user_id: int
    email: str | None = None
    role: str | None = None


class AccountService:
    def __init__(
        self,
        token_service: TokenService,
        signals: AccountSignals,
        settings: TokenSettings,
    ):
        self.tokens = token_service
        self.signals = signals
        self.settings = settings

    # Lookups

    def find_by_email(self, email: str | None) -> User | None:
        """Case-insensitive lookup by email address."""

        normalized = normalize_email(email)
        if not normalized:
            return None
        return User.query.filter(func.lower(User.email) == normalized).first()

    def get_user(self, user_id: int) -> User:
        user = db.session.get(User, user_id)
        if user is None:
            raise UserNotFound(f"User not found with ID: {user_id}")
        return user

    # Registration and verification

    def register_user(self, registration: Registration, application_url: str) -> User:
        """Create a disabled user and trigger the verification email."""

        if self.find_by_email(registration.email) is not None:
            raise UserAlreadyExists(f"User already exists with email: {registration.email}")
        if registration.phone_number and User.query.filter_by(
            phone_number=registration.phone_number
        ).first():
            raise PhoneNumberAlreadyExists(
                f"User already exists with phone number: {registration.phone_number}"
            )

        user = User(
            first_name=registration.first_name,
            last_name=registration.last_name,
            email=registration.email,
            phone_number=registration.phone_number,
            address=registration.address,
            role="USER",
            enabled=False,
            last_verification_email_sent=utcnow(),
        )
        user.set_password(registration.password)
        db.session.add(user)
        db.session.commit()
        logger.info("Registered user %s (%s)", user.id, user.email)
        metrics.USERS_REGISTERED.inc()

        self.signals.publish(
            RegistrationCompleted(user_id=user.id, application_url=application_url)
        )
        return user

    def resend_verification_token(self, email: str, application_url: str) -> User:
        user = self.find_by_email(email)
        if user is None:
            raise UserNotFound(f"User not found with email: {email}")
        if user.enabled:
            raise UserAlreadyEnabled("User is already verified!")

        now = utcnow()
        self._enforce_resend_window(user, now)

        user.last_verification_email_sent = now
        db.session.commit()
        logger.info("Resending verification email to user %s", user.id)

        self.signals.publish(
            RegistrationCompleted(user_id=user.id, application_url=application_url)
        )
        return user

    def _enforce_resend_window(self, user: User, now: datetime) -> None:
        """Raise ``RateLimitExceeded`` if the last email went out too recently.

        Read-then-write on the user row; two simultaneous requests may both pass.
        """

        last_sent = user.last_verification_email_sent
        if last_sent is None:
            return

        elapsed = int((now - last_sent).total_seconds())
        limit = self.settings.rate_limit_seconds
        if elapsed < limit:
            remaining = limit - elapsed
            logger.info(
                "Verification resend for user %s rate limited (%ss remaining)",
                user.id,
                remaining,
            )
            metrics.RATE_LIMIT_EXCEEDED.inc()
            raise RateLimitExceeded(remaining)

    def verify_registration(self, token_string: str | None) -> User:
        """Enable the account that owns a usable verification token."""

        token = self.tokens.verify_token(token_string, TokenPurpose.VERIFICATION)
        user = token.user
        user.mark_enabled()
        db.session.delete(token)
        db.session.commit()
        logger.info("User %s verified their email address", user.id)
        metrics.USERS_VERIFIED.inc()
        return user

    # Authentication

    def authenticate(self, email: str | None, password: str | None) -> User:
        user = self.find_by_email(email)
        if user is None or not password or not user.check_password(password):
            raise InvalidCredentials()
        if not user.enabled:
            raise AccountDisabled()
        return user

    def change_password(self, principal: Principal, change: PasswordChange) -> User:
        user = self.get_user(principal.user_id)

        if not user.check_password(change.current_password):
            raise InvalidPassword("Current password is incorrect")
        if user.check_password(change.password):
            raise InvalidPassword("New password must be different from current password")

        user.set_password(change.password)
        db.session.commit()
        logger.info("User %s changed their password", user.id)
        return user

    # Password reset

    def request_password_reset(self, email: str, application_url: str) -> None:
        """Start a reset for ``email``; unknown addresses are a silent no-op."""

        user = self.find_by_email(email)
        if user is None:
            logger.info("Password reset requested for unknown email; nothing sent")
            return

        self.signals.publish(
            PasswordResetRequested(user_id=user.id, application_url=application_url)
        )
        logger.info("Password reset requested for user %s", user.id)

    def validate_reset_token(self, token_string: str | None):
        """Check a reset token without consuming it."""

        return self.tokens.verify_token(token_string, TokenPurpose.PASSWORD_RESET)

    def reset_password(self, reset: PasswordReset) -> User:
        if not reset.token:
            raise ValidationFailed(
                "Reset token is required. Provide it in query parameter (?token=xxx) "
                "or request body.",
                errors={"token": "Reset token is required"},
            )

        token = self.tokens.verify_token(reset.token, TokenPurpose.PASSWORD_RESET)
        user = token.user
        user.set_password(reset.password)
        db.session.delete(token)
        db.session.commit()
        logger.info("User %s reset their password", user.id)
        return user
