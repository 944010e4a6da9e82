"""Exceptions raised by the account services.

Each carries the HTTP status and machine-readable ``error`` code used when the
app factory turns it into a JSON response.
"""

from __future__ import annotations

from http import HTTPStatus


class AccountError(Exception):
    """Base class for expected account lifecycle failures."""

    status_code: int = HTTPStatus.BAD_REQUEST
    error: str = "bad_request"
    default_message: str = "The request could not be completed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def extra(self) -> dict:
        """Additional fields to include in the error payload."""

        return {}


class UserNotFound(AccountError):
    status_code = HTTPStatus.NOT_FOUND
    error = "not_found"
    default_message = "User not found."


class TokenNotFound(AccountError):
    status_code = HTTPStatus.NOT_FOUND
    error = "not_found"
    default_message = "Token not found."


class TokenExpired(AccountError):
    status_code = HTTPStatus.UNAUTHORIZED
    error = "expired"
    default_message = "Token has expired or is no longer valid."


class UserAlreadyExists(AccountError):
    status_code = HTTPStatus.CONFLICT
    error = "user_already_exists"
    default_message = "A user with that email already exists."


class PhoneNumberAlreadyExists(UserAlreadyExists):
    default_message = "A user with that phone number already exists."


class UserAlreadyEnabled(AccountError):
    error = "already_verified"
    default_message = "User is already verified."


class ValidationFailed(AccountError):
    error = "validation_failed"
    default_message = "Validation failed. Please check the following fields."

    def __init__(self, message: str | None = None, errors: dict[str, str] | None = None):
        super().__init__(message)
        self.errors = dict(errors or {})

    def extra(self) -> dict:
        return {"errors": self.errors} if self.errors else {}


class RateLimitExceeded(AccountError):
    status_code = HTTPStatus.TOO_MANY_REQUESTS
    error = "rate_limited"

    def __init__(self, seconds_remaining: int, message: str | None = None):
        self.seconds_remaining = int(seconds_remaining)
        super().__init__(
            message
            or "Please wait before requesting another verification email. "
            f"Try again in {self.seconds_remaining} seconds."
        )

    def extra(self) -> dict:
        return {"seconds_remaining": self.seconds_remaining}


class InvalidPassword(AccountError):
    error = "invalid_password"
    default_message = "Password is incorrect."


class InvalidCredentials(AccountError):
    status_code = HTTPStatus.UNAUTHORIZED
    error = "invalid_credentials"
    default_message = "Invalid email or password."


class AccountDisabled(AccountError):
    status_code = HTTPStatus.FORBIDDEN
    error = "account_disabled"
    default_message = "Please verify your email address before signing in."
