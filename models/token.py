"""Single-use account tokens for email verification and password reset."""

import uuid
from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy.orm import declared_attr

from . import db, utcnow


TOKEN_LENGTH = 36


def generate_token() -> str:
    """Return a new opaque token string (a 36 character UUID4)."""

    return str(uuid.uuid4())


class TokenMixin:
    """Columns and validity rules shared by both token kinds."""

    id = db.Column(db.Integer, primary_key=True)
    token = db.Column(
        db.String(TOKEN_LENGTH), unique=True, nullable=False, index=True, default=generate_token
    )
    expired_at = db.Column(db.DateTime, nullable=False)
    valid = db.Column(db.Boolean, nullable=False, default=True, server_default=db.true())
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    @declared_attr
    def user_id(cls):
        return db.Column(
            db.Integer,
            db.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
            unique=True,
        )

    @classmethod
    def issue(cls, user, duration_minutes: int, now: Optional[datetime] = None):
        """Build an unsaved token for ``user`` expiring ``duration_minutes`` from now."""

        now = now or utcnow()
        return cls(
            user_id=user.id,
            token=generate_token(),
            valid=True,
            created_at=now,
            expired_at=now + timedelta(minutes=duration_minutes),
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        now = now or utcnow()
        return now >= self.expired_at

    def is_valid(self, now: Optional[datetime] = None) -> bool:
        """Return True if the token may still be used."""

        return bool(self.valid) and not self.is_expired(now)

    def invalidate(self) -> None:
        self.valid = False

    def to_dict(self) -> dict:
        return {
            "token": self.token,
            "expired_at": self.expired_at.isoformat() if self.expired_at else None,
            "valid": self.valid,
        }

    def __repr__(self) -> str:  # pragma: no cover - debugging helper
        return f"<{type(self).__name__} user_id={self.user_id} valid={self.valid}>"


class VerificationToken(TokenMixin, db.Model):
    """Token emailed after registration to confirm the address."""

    __tablename__ = "verification_tokens"

    user = db.relationship("User", back_populates="verification_token")


class ResetPasswordToken(TokenMixin, db.Model):
    """Token emailed when a user asks to reset a forgotten password."""

    __tablename__ = "reset_password_tokens"

    user = db.relationship("User", back_populates="reset_password_token")
