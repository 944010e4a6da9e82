"""Field validators for account requests."""

from __future__ import annotations

import re

EMAIL_PATTERN = re.compile(r"^[A-Za-z0-9+_.-]+@[A-Za-z0-9.-]+$")
PHONE_PATTERN = re.compile(r"^(0|\+84)(3[2-9]|5[689]|7[06-9]|8[1-9]|9[0-9])[0-9]{7}$")
PASSWORD_SPECIALS = "@$!%*?&"
STRONG_PASSWORD_PATTERN = re.compile(
    r"^(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]{8,}$"
)
PASSWORD_MAX_LENGTH = 50
NAME_MAX_LENGTH = 50
ADDRESS_MAX_LENGTH = 500


def normalize_email(raw_email: str | None) -> str:
    """Normalize an email string by stripping whitespace and lowering case."""
    return (raw_email or "").strip().lower()


def is_valid_email(email: str | None) -> bool:
    if not email:
        return False
    return EMAIL_PATTERN.match(email) is not None


def is_valid_phone_number(phone_number: str | None) -> bool:
    if not phone_number:
        return False
    return PHONE_PATTERN.match(phone_number) is not None


def passwords_match(password: str | None, matching_password: str | None) -> bool:
    """Return True when both values are present and identical."""
    if password is None or matching_password is None:
        return False
    return password == matching_password


def password_strength_error(password: str | None) -> str | None:
    """Describe what a password is missing, or return None if it is strong enough.

    Empty passwords are left to the required-field check.
    """
    if not password:
        return None
    if STRONG_PASSWORD_PATTERN.match(password) and len(password) <= PASSWORD_MAX_LENGTH:
        return None

    missing = []
    if not re.search(r"[a-z]", password):
        missing.append("at least one lowercase letter")
    if not re.search(r"[A-Z]", password):
        missing.append("at least one uppercase letter")
    if not re.search(r"\d", password):
        missing.append("at least one digit")
    if not any(char in PASSWORD_SPECIALS for char in password):
        missing.append(f"at least one special character ({PASSWORD_SPECIALS})")
    if len(password) < 8:
        missing.append("minimum 8 characters")
    if len(password) > PASSWORD_MAX_LENGTH:
        return f"Password must not exceed {PASSWORD_MAX_LENGTH} characters"
    if not missing:
        return f"Password may only contain letters, digits and {PASSWORD_SPECIALS}"
    return "Password must contain: " + ", ".join(missing)
