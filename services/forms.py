"""Typed request payloads for the account service, validated from JSON."""

from __future__ import annotations

from dataclasses import dataclass

from utils.request_validation import get_str
from utils.validators import (
    ADDRESS_MAX_LENGTH,
    NAME_MAX_LENGTH,
    is_valid_email,
    is_valid_phone_number,
    normalize_email,
    password_strength_error,
    passwords_match,
)

from .errors import ValidationFailed

PASSWORD_MISMATCH = "Passwords do not match"


def _require(errors: dict[str, str], data: dict, key: str, message: str) -> str | None:
    value = get_str(data, key)
    if value is None:
        errors[key] = message
    return value


def _check_new_password(errors: dict[str, str], password: str | None, matching: str | None) -> None:
    strength = password_strength_error(password)
    if strength and "password" not in errors:
        errors["password"] = strength
    if password and matching and not passwords_match(password, matching):
        errors["matching_password"] = PASSWORD_MISMATCH


def _raise_if(errors: dict[str, str]) -> None:
    if errors:
        raise ValidationFailed(errors=errors)


@dataclass(frozen=True)
class Registration:
    first_name: str
    last_name: str
    email: str
    password: str
    matching_password: str
    phone_number: str | None = None
    address: str | None = None

    @classmethod
    def from_payload(cls, data: dict) -> "Registration":
        errors: dict[str, str] = {}
        first_name = _require(errors, data, "first_name", "First name is required")
        last_name = _require(errors, data, "last_name", "Last name is required")
        email = _require(errors, data, "email", "Email is required")
        password = _require(errors, data, "password", "Password is required")
        matching = _require(
            errors, data, "matching_password", "Password confirmation is required"
        )
        phone_number = get_str(data, "phone_number")
        address = get_str(data, "address")

        for key, value, label in (
            ("first_name", first_name, "First name"),
            ("last_name", last_name, "Last name"),
        ):
            if value and len(value) > NAME_MAX_LENGTH:
                errors[key] = f"{label} must be between 1 and {NAME_MAX_LENGTH} characters"
        if email and not is_valid_email(email):
            errors["email"] = "Email is not valid"
        if phone_number and not is_valid_phone_number(phone_number):
            errors["phone_number"] = (
                "Phone number must be a valid Vietnamese phone number "
                "(e.g., 0912345678 or +84912345678)"
            )
        if address and len(address) > ADDRESS_MAX_LENGTH:
            errors["address"] = f"Address must not exceed {ADDRESS_MAX_LENGTH} characters"
        _check_new_password(errors, password, matching)
        _raise_if(errors)

        return cls(
            first_name=first_name,
            last_name=last_name,
            email=normalize_email(email),
            password=password,
            matching_password=matching,
            phone_number=phone_number,
            address=address,
        )


@dataclass(frozen=True)
class PasswordReset:
    token: str | None
    password: str
    matching_password: str

    @classmethod
    def from_payload(cls, data: dict, query_token: str | None = None) -> "PasswordReset":
        """Build a reset request; a non-blank ``query_token`` wins over the body token."""

        errors: dict[str, str] = {}
        password = _require(errors, data, "password", "Password is required")
        matching = _require(
            errors, data, "matching_password", "Password confirmation is required"
        )
        _check_new_password(errors, password, matching)
        _raise_if(errors)

        token = (query_token or "").strip() or get_str(data, "token")
        return cls(token=token, password=password, matching_password=matching)


@dataclass(frozen=True)
class PasswordChange:
    current_password: str
    password: str
    matching_password: str

    @classmethod
    def from_payload(cls, data: dict) -> "PasswordChange":
        errors: dict[str, str] = {}
        current = _require(errors, data, "current_password", "Current password is required")
        password = _require(errors, data, "password", "New password is required")
        matching = _require(
            errors, data, "matching_password", "Password confirmation is required"
        )
        _check_new_password(errors, password, matching)
        _raise_if(errors)
        return cls(current_password=current, password=password, matching_password=matching)


def parse_email(data: dict) -> str:
    """Return the normalized ``email`` field or raise ``ValidationFailed``."""

    email = get_str(data, "email")
    if email is None:
        raise ValidationFailed(errors={"email": "Email is required"})
    if not is_valid_email(email):
        raise ValidationFailed(errors={"email": "Email is not valid"})
    return normalize_email(email)
