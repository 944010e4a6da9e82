"""Account lifecycle services."""

from .account_service import AccountService, Principal, TokenSettings
from .token_service import TokenPurpose, TokenService

__all__ = [
    "AccountService",
    "Principal",
    "TokenPurpose",
    "TokenService",
    "TokenSettings",
]
