"""Account lifecycle API: registration, verification, login and passwords."""

from __future__ import annotations

from http import HTTPStatus

from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import create_access_token, get_jwt, get_jwt_identity, jwt_required
from werkzeug.exceptions import Unauthorized

from services import AccountService, Principal
from services.errors import ValidationFailed
from services.forms import PasswordChange, PasswordReset, Registration, parse_email
from utils.request_validation import get_str, parse_json_request

users_bp = Blueprint("users", __name__)

FORGOT_PASSWORD_MESSAGE = (
    "If an account exists with this email, a password reset link has been sent. "
    "Please check your email."
)


def _accounts() -> AccountService:
    return current_app.extensions["account_service"]


def _application_url() -> str:
    """Base URL of this API as seen by the caller, used in verification links."""
    return request.url_root.rstrip("/")


def _current_principal() -> Principal:
    identity = get_jwt_identity()
    try:
        user_id = int(identity)
    except (TypeError, ValueError):
        raise Unauthorized("Token subject is not a valid user id.")
    claims = get_jwt()
    return Principal(user_id=user_id, email=claims.get("email"), role=claims.get("role"))


@users_bp.route("/register", methods=["POST"])
def register():
    """Register a new user and send the verification email."""

    payload = parse_json_request(request)
    registration = Registration.from_payload(payload)
    _accounts().register_user(registration, _application_url())
    return jsonify(
        {"message": "User registered successfully! Please check your email for verification link."}
    )


@users_bp.route("/verify-registration", methods=["GET"])
def verify_registration():
    _accounts().verify_registration(request.args.get("token"))
    return jsonify({"message": "Registration successfully verified!"})


@users_bp.route("/resend-verify-token", methods=["GET"])
def resend_verify_token():
    email = parse_email(request.args)
    _accounts().resend_verification_token(email, _application_url())
    return jsonify({"message": "Verification token resent. Please check your email."})


@users_bp.route("/forgot-password", methods=["POST"])
def forgot_password():
    """Start a password reset without revealing whether the account exists."""

    payload = parse_json_request(request)
    email = parse_email(payload)
    _accounts().request_password_reset(email, current_app.config["FRONTEND_BASE_URL"])
    return jsonify({"message": FORGOT_PASSWORD_MESSAGE})


@users_bp.route("/reset-password", methods=["GET"])
def check_reset_token():
    """Report whether a reset token can still be used."""

    token = _accounts().validate_reset_token(request.args.get("token"))
    return jsonify(
        {
            "message": "Reset token is valid.",
            "token": token.token,
            "expired_at": token.expired_at.isoformat(),
        }
    )


@users_bp.route("/reset-password", methods=["POST"])
def reset_password():
    payload = parse_json_request(request)
    reset = PasswordReset.from_payload(payload, query_token=request.args.get("token"))
    _accounts().reset_password(reset)
    return jsonify(
        {"message": "Password has been reset successfully. You can now login with your new password."}
    )


@users_bp.route("/login", methods=["POST"])
def login():
    """Authenticate a verified user and return a JWT access token."""

    payload = parse_json_request(request)
    email = get_str(payload, "email")
    password = get_str(payload, "password")
    if not email or not password:
        raise ValidationFailed(
            "Email and password are required.",
            errors={
                key: f"{key.capitalize()} is required"
                for key in ("email", "password")
                if not get_str(payload, key)
            },
        )

    user = _accounts().authenticate(email, password)
    token = create_access_token(
        identity=str(user.id),
        additional_claims={"email": user.email, "role": user.role},
    )
    return jsonify({"access_token": token, "user": user.to_dict()}), HTTPStatus.OK


@users_bp.route("/change-password", methods=["POST"])
@jwt_required()
def change_password():
    payload = parse_json_request(request)
    change = PasswordChange.from_payload(payload)
    _accounts().change_password(_current_principal(), change)
    return jsonify({"message": "Password has been changed successfully."})
