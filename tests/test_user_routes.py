"""End-to-end tests for the /api/v1/users endpoints."""

from __future__ import annotations

from datetime import timedelta

import pytest
from conftest import STRONG_PASSWORD, create_user
from flask_jwt_extended import create_access_token

from models import db, utcnow
from models.token import ResetPasswordToken, VerificationToken
from models.user import User

BASE = "/api/v1/users"


def _register_payload(email: str = "a@test.com", **overrides) -> dict:
    payload = {
        "first_name": "Ada",
        "last_name": "Lovelace",
        "email": email,
        "password": STRONG_PASSWORD,
        "matching_password": STRONG_PASSWORD,
    }
    payload.update(overrides)
    return payload


def _token_for(app, model, email: str) -> str:
    with app.app_context():
        user = User.query.filter_by(email=email).one()
        return model.query.filter_by(user_id=user.id).one().token


def _auth_headers(app, user_id: int) -> dict[str, str]:
    with app.app_context():
        token = create_access_token(identity=str(user_id))
    return {"Authorization": f"Bearer {token}"}


def test_register_then_verify(app, client, outbox):
    response = client.post(f"{BASE}/register", json=_register_payload())

    assert response.status_code == 200
    assert "check your email" in response.get_json()["message"]
    assert len(outbox) == 1
    token = _token_for(app, VerificationToken, "a@test.com")
    assert f"http://localhost{BASE}/verify-registration?token={token}" in outbox[0]["body"]

    verify = client.get(f"{BASE}/verify-registration", query_string={"token": token})
    assert verify.status_code == 200

    with app.app_context():
        assert User.query.filter_by(email="a@test.com").one().enabled is True
        assert VerificationToken.query.count() == 0


def test_register_validation_errors(client, outbox):
    response = client.post(
        f"{BASE}/register",
        json=_register_payload(
            email="not-an-email", password="weak", matching_password="different"
        ),
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["error"] == "validation_failed"
    assert set(payload["errors"]) == {"email", "password", "matching_password"}
    assert "uppercase" in payload["errors"]["password"]
    assert payload["request_id"]
    assert outbox == []


def test_register_duplicate_email_conflicts(client, outbox):
    assert client.post(f"{BASE}/register", json=_register_payload()).status_code == 200

    response = client.post(f"{BASE}/register", json=_register_payload("A@TEST.com"))

    assert response.status_code == 409
    assert response.get_json()["error"] == "user_already_exists"


@pytest.mark.parametrize(
    "token, status_code, error",
    [
        ("does-not-exist", 404, "not_found"),
        (None, 404, "not_found"),
    ],
)
def test_verify_registration_missing_token(client, token, status_code, error):
    query = {"token": token} if token else {}
    response = client.get(f"{BASE}/verify-registration", query_string=query)

    assert response.status_code == status_code
    assert response.get_json()["error"] == error


def test_verify_registration_expired_token(app, client, outbox):
    client.post(f"{BASE}/register", json=_register_payload())
    with app.app_context():
        token = VerificationToken.query.one()
        token.expired_at = utcnow() - timedelta(seconds=1)
        db.session.commit()
        value = token.token

    response = client.get(f"{BASE}/verify-registration", query_string={"token": value})

    assert response.status_code == 401
    assert response.get_json()["error"] == "expired"


def test_resend_verify_token_rate_limit_then_success(app, client, outbox):
    client.post(f"{BASE}/register", json=_register_payload())
    old_token = _token_for(app, VerificationToken, "a@test.com")

    limited = client.get(f"{BASE}/resend-verify-token", query_string={"email": "a@test.com"})
    assert limited.status_code == 429
    payload = limited.get_json()
    assert payload["error"] == "rate_limited"
    assert payload["seconds_remaining"] > 0
    assert limited.headers["Retry-After"] == str(payload["seconds_remaining"])

    with app.app_context():
        user = User.query.filter_by(email="a@test.com").one()
        user.last_verification_email_sent = utcnow() - timedelta(seconds=120)
        db.session.commit()

    response = client.get(f"{BASE}/resend-verify-token", query_string={"email": "a@test.com"})
    assert response.status_code == 200
    assert _token_for(app, VerificationToken, "a@test.com") != old_token
    assert len(outbox) == 2


def test_resend_verify_token_errors(app, client):
    with app.app_context():
        create_user("done@test.com", enabled=True)

    verified = client.get(f"{BASE}/resend-verify-token", query_string={"email": "done@test.com"})
    assert verified.status_code == 400
    assert verified.get_json()["error"] == "already_verified"

    unknown = client.get(f"{BASE}/resend-verify-token", query_string={"email": "x@test.com"})
    assert unknown.status_code == 404

    missing = client.get(f"{BASE}/resend-verify-token")
    assert missing.status_code == 400


def test_forgot_password_never_reveals_existence(app, client, outbox):
    with app.app_context():
        create_user("a@test.com", enabled=True)

    known = client.post(f"{BASE}/forgot-password", json={"email": "a@test.com"})
    unknown = client.post(f"{BASE}/forgot-password", json={"email": "ghost@test.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.get_json()["message"] == unknown.get_json()["message"]
    assert len(outbox) == 1
    assert outbox[0]["subject"] == "Reset Your Password"
    with app.app_context():
        assert ResetPasswordToken.query.count() == 1


def test_reset_password_flow(app, client, outbox):
    with app.app_context():
        create_user("a@test.com", "0ld!Passw", enabled=True)

    client.post(f"{BASE}/forgot-password", json={"email": "a@test.com"})
    first = _token_for(app, ResetPasswordToken, "a@test.com")
    client.post(f"{BASE}/forgot-password", json={"email": "a@test.com"})
    second = _token_for(app, ResetPasswordToken, "a@test.com")
    assert f"http://frontend.test/reset-password?token={second}" in outbox[-1]["body"]

    body = {"password": STRONG_PASSWORD, "matching_password": STRONG_PASSWORD}
    stale = client.post(f"{BASE}/reset-password", query_string={"token": first}, json=body)
    assert stale.status_code == 404

    check = client.get(f"{BASE}/reset-password", query_string={"token": second})
    assert check.status_code == 200
    assert check.get_json()["token"] == second

    response = client.post(f"{BASE}/reset-password", query_string={"token": second}, json=body)
    assert response.status_code == 200

    with app.app_context():
        assert ResetPasswordToken.query.count() == 0

    login = client.post(f"{BASE}/login", json={"email": "a@test.com", "password": STRONG_PASSWORD})
    assert login.status_code == 200


def test_reset_password_token_from_body(app, client, outbox):
    with app.app_context():
        create_user("a@test.com", "0ld!Passw", enabled=True)
    client.post(f"{BASE}/forgot-password", json={"email": "a@test.com"})
    token = _token_for(app, ResetPasswordToken, "a@test.com")

    response = client.post(
        f"{BASE}/reset-password",
        json={"token": token, "password": STRONG_PASSWORD, "matching_password": STRONG_PASSWORD},
    )

    assert response.status_code == 200


def test_reset_password_query_token_wins_over_body(app, client, outbox):
    with app.app_context():
        create_user("a@test.com", "0ld!Passw", enabled=True)
    client.post(f"{BASE}/forgot-password", json={"email": "a@test.com"})
    token = _token_for(app, ResetPasswordToken, "a@test.com")

    response = client.post(
        f"{BASE}/reset-password",
        query_string={"token": "bogus"},
        json={"token": token, "password": STRONG_PASSWORD, "matching_password": STRONG_PASSWORD},
    )

    assert response.status_code == 404


def test_reset_password_requires_token(client):
    response = client.post(
        f"{BASE}/reset-password",
        json={"password": STRONG_PASSWORD, "matching_password": STRONG_PASSWORD},
    )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["error"] == "validation_failed"
    assert "token" in payload["errors"]


def test_reset_password_rejects_mismatched_confirmation(client):
    response = client.post(
        f"{BASE}/reset-password",
        query_string={"token": "anything"},
        json={"password": STRONG_PASSWORD, "matching_password": "Other!Pass1"},
    )

    assert response.status_code == 400
    assert response.get_json()["errors"]["matching_password"] == "Passwords do not match"


@pytest.mark.parametrize(
    "payload, status_code",
    [
        ({"email": "active@test.com"}, 400),
        ({"password": STRONG_PASSWORD}, 400),
        ({"email": "active@test.com", "password": "Wr0ng!Pass"}, 401),
        ({"email": "pending@test.com", "password": STRONG_PASSWORD}, 403),
        ({"email": "Active@Test.com", "password": STRONG_PASSWORD}, 200),
    ],
)
def test_login(app, client, payload, status_code):
    with app.app_context():
        create_user("active@test.com", enabled=True)
        create_user("pending@test.com")

    response = client.post(f"{BASE}/login", json=payload)

    assert response.status_code == status_code
    if status_code == 200:
        data = response.get_json()
        assert data["access_token"]
        assert data["user"]["email"] == "active@test.com"


def test_change_password(app, client):
    with app.app_context():
        user_id = create_user("a@test.com", "0ld!Passw", enabled=True).id
    headers = _auth_headers(app, user_id)

    wrong = client.post(
        f"{BASE}/change-password",
        json={
            "current_password": "Wr0ng!Pass",
            "password": STRONG_PASSWORD,
            "matching_password": STRONG_PASSWORD,
        },
        headers=headers,
    )
    assert wrong.status_code == 400
    assert wrong.get_json()["detail"] == "Current password is incorrect"

    same = client.post(
        f"{BASE}/change-password",
        json={
            "current_password": "0ld!Passw",
            "password": "0ld!Passw",
            "matching_password": "0ld!Passw",
        },
        headers=headers,
    )
    assert same.status_code == 400
    assert same.get_json()["detail"] == "New password must be different from current password"

    ok = client.post(
        f"{BASE}/change-password",
        json={
            "current_password": "0ld!Passw",
            "password": STRONG_PASSWORD,
            "matching_password": STRONG_PASSWORD,
        },
        headers=headers,
    )
    assert ok.status_code == 200

    with app.app_context():
        assert db.session.get(User, user_id).check_password(STRONG_PASSWORD)


def test_change_password_requires_jwt(client):
    response = client.post(
        f"{BASE}/change-password",
        json={
            "current_password": "0ld!Passw",
            "password": STRONG_PASSWORD,
            "matching_password": STRONG_PASSWORD,
        },
    )

    assert response.status_code == 401
