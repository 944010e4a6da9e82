"""Shared pytest fixtures for the application tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest
from flask import Flask
from flask.testing import FlaskClient

ROOT_DIR = Path(__file__).resolve().parent.parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from app import create_app  # noqa: E402
from config import Config  # noqa: E402
from models import db  # noqa: E402
from models.user import User  # noqa: E402
from services.email_service import EmailSender  # noqa: E402

STRONG_PASSWORD = "Str0ng!Pass"


class _BaseTestConfig(Config):
    TESTING = True
    SECRET_KEY = "test-secret-key-with-enough-length-for-hmac"
    JWT_SECRET_KEY = "test-jwt-secret-key-with-enough-length-for-hmac"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAIL_SERVER = None
    FRONTEND_BASE_URL = "http://frontend.test"
    CELERY = {
        **Config.CELERY,
        "broker_url": "memory://",
        "result_backend": None,
        "task_always_eager": True,
    }


@pytest.fixture()
def app() -> Flask:
    """Create a Flask application instance for tests."""

    application = create_app(_BaseTestConfig)

    with application.app_context():
        db.create_all()

    yield application

    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Return a test client for the Flask app."""

    return app.test_client()


@pytest.fixture()
def app_ctx(app: Flask):
    """Run the test body inside an application context."""

    with app.app_context():
        yield app


@pytest.fixture()
def outbox(monkeypatch) -> list[dict]:
    """Capture emails instead of logging or sending them."""

    sent: list[dict] = []

    def _record(self, to, subject, body):
        sent.append({"to": to, "subject": subject, "body": body})

    monkeypatch.setattr(EmailSender, "send", _record)
    return sent


@pytest.fixture()
def accounts(app_ctx):
    return app_ctx.extensions["account_service"]


@pytest.fixture()
def tokens(app_ctx):
    return app_ctx.extensions["token_service"]


def create_user(
    email: str = "reader@example.com",
    password: str = STRONG_PASSWORD,
    *,
    enabled: bool = False,
    role: str = "USER",
) -> User:
    """Persist a user directly, bypassing registration."""

    user = User(
        first_name="Ada",
        last_name="Reader",
        email=email,
        role=role,
        enabled=enabled,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user
