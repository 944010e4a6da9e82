"""Application configuration module."""

import os

from celery.schedules import crontab


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y"}


class Config:
    """Base configuration for the Flask application."""

    # Core
    SECRET_KEY = os.getenv("SECRET_KEY", "change-me")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", SECRET_KEY)
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///bookstore.db")
    SQLALCHEMY_DATABASE_URI = DATABASE_URL
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # CORS
    _raw_origins = os.getenv("ORIGINS", "*")
    if _raw_origins.strip() == "*":
        CORS_ORIGINS = "*"
    else:
        CORS_ORIGINS = [o.strip() for o in _raw_origins.split(",") if o.strip()]

    # Per-IP request limiting
    RATE_LIMIT = os.getenv("RATE_LIMIT", "60 per minute")
    RATELIMIT_HEADERS_ENABLED = True
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_KEY_PREFIX = os.getenv("RATELIMIT_KEY_PREFIX", "")

    # Account tokens
    TOKEN_VERIFICATION_DURATION_MINUTES = int(
        os.getenv("TOKEN_VERIFICATION_DURATION_MINUTES", "10")
    )
    TOKEN_RESET_PASSWORD_DURATION_MINUTES = int(
        os.getenv("TOKEN_RESET_PASSWORD_DURATION_MINUTES", "15")
    )
    TOKEN_RATE_LIMIT_SECONDS = int(os.getenv("TOKEN_RATE_LIMIT_SECONDS", "60"))

    # Links in outgoing emails
    FRONTEND_BASE_URL = os.getenv("FRONTEND_BASE_URL", "http://localhost:3000")

    # Outgoing mail; unset MAIL_SERVER logs messages instead of sending them
    MAIL_SERVER = os.getenv("MAIL_SERVER")
    MAIL_PORT = int(os.getenv("MAIL_PORT", "587"))
    MAIL_USERNAME = os.getenv("MAIL_USERNAME")
    MAIL_PASSWORD = os.getenv("MAIL_PASSWORD")
    MAIL_USE_TLS = _env_bool("MAIL_USE_TLS", True)
    MAIL_DEFAULT_SENDER = os.getenv("MAIL_DEFAULT_SENDER", "no-reply@bookstore.local")

    # Background work
    CELERY = {
        "broker_url": os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0"),
        "result_backend": os.getenv("CELERY_RESULT_BACKEND"),
        "task_ignore_result": True,
        "task_always_eager": _env_bool("CELERY_TASK_ALWAYS_EAGER"),
        "timezone": "UTC",
        "beat_schedule": {
            "cleanup-expired-tokens": {
                "task": "tasks.cleanup.cleanup_expired_tokens",
                "schedule": crontab(hour=2, minute=0),
            },
            "cleanup-invalid-tokens": {
                "task": "tasks.cleanup.cleanup_invalid_tokens",
                "schedule": crontab(hour=2, minute=5),
            },
        },
    }

    # Seed script
    ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@bookstore.local")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "Admin@1234")
