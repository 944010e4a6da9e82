"""Database initialization and model exports."""

from datetime import UTC, datetime

from flask_sqlalchemy import SQLAlchemy


db = SQLAlchemy()


def utcnow() -> datetime:
    """Return the current UTC time as a naive datetime, as stored in the database."""

    return datetime.now(UTC).replace(tzinfo=None)


# Import models to register them with SQLAlchemy metadata.
from .user import User  # noqa: E402,F401
from .token import ResetPasswordToken, VerificationToken  # noqa: E402,F401

__all__ = [
    "db",
    "utcnow",
    "User",
    "VerificationToken",
    "ResetPasswordToken",
]
