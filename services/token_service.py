"""Issue, check and retire single-use account tokens."""

from __future__ import annotations

import enum
import logging
from datetime import datetime

from models import db, utcnow
from models.token import ResetPasswordToken, VerificationToken
from models.user import User

from . import metrics
from .errors import TokenExpired, TokenNotFound

logger = logging.getLogger(__name__)


class TokenPurpose(enum.Enum):
    VERIFICATION = "verification"
    PASSWORD_RESET = "password_reset"

    @property
    def model(self):
        return _MODELS[self]


_MODELS = {
    TokenPurpose.VERIFICATION: VerificationToken,
    TokenPurpose.PASSWORD_RESET: ResetPasswordToken,
}


class TokenService:
    """Keeps at most one token per user and purpose.

    ``durations`` maps each purpose to its lifetime in minutes and is used
    when ``create_token`` is called without an explicit duration.
    """

    def __init__(self, durations: dict[TokenPurpose, int]):
        self.durations = dict(durations)

    def find_by_user(self, user: User, purpose: TokenPurpose):
        model = purpose.model
        return model.query.filter_by(user_id=user.id).first()

    def create_token(
        self,
        user: User,
        purpose: TokenPurpose,
        duration_minutes: int | None = None,
    ):
        """Replace any existing token of ``purpose`` for ``user`` with a fresh one."""

        if duration_minutes is None:
            duration_minutes = self.durations[purpose]

        existing = self.find_by_user(user, purpose)
        if existing is not None:
            db.session.delete(existing)
            # Flush before insert so the unique user_id constraint is free.
            db.session.flush()

        token = purpose.model.issue(user, duration_minutes)
        db.session.add(token)
        db.session.commit()

        logger.info(
            "Issued %s token for user %s expiring at %s",
            purpose.value,
            user.id,
            token.expired_at.isoformat(),
        )
        return token

    def get_token(self, token_string: str | None, purpose: TokenPurpose):
        token = None
        if token_string:
            token = purpose.model.query.filter_by(token=token_string).first()
        if token is None:
            metrics.INVALID_TOKEN.inc()
            raise TokenNotFound(f"{_label(purpose)} token not found.")
        return token

    def verify_token(self, token_string: str | None, purpose: TokenPurpose, now: datetime | None = None):
        """Return the stored token if it is usable.

        Raises ``TokenNotFound`` when no row matches and ``TokenExpired`` when
        the row is past its expiry or was invalidated. The row is left in
        place either way; the caller decides what happens to it.
        """

        token = self.get_token(token_string, purpose)
        if not token.is_valid(now):
            metrics.INVALID_TOKEN.inc()
            raise TokenExpired(f"{_label(purpose)} token has expired or is no longer valid.")
        return token

    def invalidate_token(self, token) -> None:
        token.invalidate()
        db.session.commit()

    def delete_token(self, token) -> None:
        db.session.delete(token)
        db.session.commit()

    def delete_expired_tokens(self, purpose: TokenPurpose | None = None) -> int:
        """Delete tokens whose expiry has passed and return how many were removed."""

        now = utcnow()
        deleted = 0
        for model in _models_for(purpose):
            deleted += model.query.filter(model.expired_at < now).delete(
                synchronize_session=False
            )
        db.session.commit()
        return deleted

    def delete_invalid_tokens(self, purpose: TokenPurpose | None = None) -> int:
        """Delete tokens that were invalidated and return how many were removed."""

        deleted = 0
        for model in _models_for(purpose):
            deleted += model.query.filter(model.valid.is_(False)).delete(
                synchronize_session=False
            )
        db.session.commit()
        return deleted


def _models_for(purpose: TokenPurpose | None):
    if purpose is None:
        return [p.model for p in TokenPurpose]
    return [purpose.model]


def _label(purpose: TokenPurpose) -> str:
    if purpose is TokenPurpose.VERIFICATION:
        return "Verification"
    return "Reset password"
