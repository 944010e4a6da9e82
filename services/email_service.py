"""Outgoing email delivery over SMTP."""

from __future__ import annotations

import logging
import smtplib
from email.message import EmailMessage

logger = logging.getLogger(__name__)


class EmailSender:
    """Send plain-text messages through the configured SMTP server.

    Without a ``server`` the message is logged instead of sent, which keeps
    links visible in development.
    """

    def __init__(
        self,
        server: str | None = None,
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_tls: bool = True,
        default_sender: str = "no-reply@bookstore.local",
    ):
        self.server = server
        self.port = port
        self.username = username
        self.password = password
        self.use_tls = use_tls
        self.default_sender = default_sender

    @classmethod
    def from_config(cls, config) -> "EmailSender":
        return cls(
            server=config.get("MAIL_SERVER"),
            port=int(config.get("MAIL_PORT", 587)),
            username=config.get("MAIL_USERNAME"),
            password=config.get("MAIL_PASSWORD"),
            use_tls=bool(config.get("MAIL_USE_TLS", True)),
            default_sender=config.get("MAIL_DEFAULT_SENDER") or "no-reply@bookstore.local",
        )

    @property
    def enabled(self) -> bool:
        return bool(self.server)

    def build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["Subject"] = subject
        message["From"] = self.default_sender
        message["To"] = to
        message.set_content(body)
        return message

    def send(self, to: str, subject: str, body: str) -> None:
        """Deliver one message; SMTP errors propagate to the caller."""

        if not self.enabled:
            logger.info("Mail server not configured; email to %s (%s):\n%s", to, subject, body)
            return

        message = self.build_message(to, subject, body)
        with smtplib.SMTP(self.server, self.port) as smtp:
            if self.use_tls:
                smtp.starttls()
            if self.username and self.password:
                smtp.login(self.username, self.password)
            smtp.send_message(message)
        logger.info("Email \"%s\" sent to %s", subject, to)
