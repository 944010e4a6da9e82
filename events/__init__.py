"""Domain events and the blinker signals that carry them."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from blinker import Namespace, Signal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RegistrationCompleted:
    """A user registered or asked for a new verification email."""

    user_id: int
    application_url: str


@dataclass(frozen=True)
class PasswordResetRequested:
    """A known user asked for a password reset link."""

    user_id: int
    application_url: str


class AccountSignals:
    """One signal per event type, scoped to a single application.

    Each instance owns its own ``Namespace`` so that receivers connected for
    one app never fire for another. Receivers get the event as the sender.
    """

    def __init__(self) -> None:
        namespace = Namespace()
        self.registration_completed = namespace.signal("registration-completed")
        self.password_reset_requested = namespace.signal("password-reset-requested")
        self._by_type: dict[type, Signal] = {
            RegistrationCompleted: self.registration_completed,
            PasswordResetRequested: self.password_reset_requested,
        }

    def signal_for(self, event_type: type) -> Signal:
        try:
            return self._by_type[event_type]
        except KeyError:
            raise TypeError(f"No signal for event type {event_type.__name__}") from None

    def publish(self, event: object) -> None:
        signal = self.signal_for(type(event))
        if not signal.receivers:
            logger.warning("No receivers connected for %s", signal.name)
        signal.send(event)


__all__ = [
    "AccountSignals",
    "PasswordResetRequested",
    "RegistrationCompleted",
]
