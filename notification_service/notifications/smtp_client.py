"""SMTP client wrapper for email delivery.

This module provides a thin wrapper around Python's smtplib with support
for TLS/SSL, authentication, and proper connection lifecycle management.
All calls block; the SMTP transport runs them in a worker thread.
"""

import logging
import smtplib
import ssl
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Callable, Optional

from email_validator import EmailNotValidError, validate_email

from .models import MailMessage, SMTPDeliveryError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SMTPSettings:
    """Connection settings for the SMTP server."""

    host: str
    port: int
    user: Optional[str] = None
    password: Optional[str] = None
    use_tls: bool = True
    timeout: float = 30.0

    @property
    def has_credentials(self) -> bool:
        return bool(self.user and self.password)


class SMTPClient:
    """Wrapper around smtplib for sending email messages.

    Handles connection lifecycle, TLS/SSL negotiation and authentication.
    Designed to be easily mockable for testing.
    """

    def __init__(
        self,
        settings: SMTPSettings,
        smtp_factory: Optional[Callable] = None,
        smtp_ssl_factory: Optional[Callable] = None,
    ):
        """Initialize SMTP client with optional factory injection.

        Args:
            settings: SMTP server settings
            smtp_factory: Factory function for creating SMTP instances (for mocking)
            smtp_ssl_factory: Factory function for creating SMTP_SSL instances (for mocking)
        """
        self.settings = settings
        self.smtp_factory = smtp_factory or smtplib.SMTP
        self.smtp_ssl_factory = smtp_ssl_factory or smtplib.SMTP_SSL

    def send(self, message: EmailMessage) -> None:
        """Send an email message via SMTP.

        Credentials are required: a missing user or password fails here, at
        send time, rather than at startup.

        Raises:
            SMTPDeliveryError: If credentials are missing or delivery fails
        """
        if not self.settings.has_credentials:
            raise SMTPDeliveryError(
                "SMTP credentials are not configured (set MAILTRAP_USER and MAILTRAP_PASS)"
            )

        def deliver(smtp) -> None:
            smtp.send_message(message)
            logger.debug(f"Message sent successfully to {message['To']}")

        self._with_connection(deliver, action="message delivery")

    def verify(self) -> None:
        """Connect, authenticate and issue NOOP without sending anything.

        Raises:
            SMTPDeliveryError: If the server cannot be reached or rejects the login
        """
        self._with_connection(lambda smtp: smtp.noop(), action="connection check")

    def _with_connection(self, operation: Callable, action: str) -> None:
        settings = self.settings
        smtp = None
        try:
            if settings.port == 465:
                # Port 465: Implicit TLS (SMTP_SSL)
                logger.debug(f"Connecting to {settings.host}:{settings.port} with implicit TLS")
                smtp = self.smtp_ssl_factory(
                    settings.host,
                    settings.port,
                    timeout=settings.timeout,
                    context=ssl.create_default_context(),
                )
            else:
                logger.debug(f"Connecting to {settings.host}:{settings.port}")
                smtp = self.smtp_factory(settings.host, settings.port, timeout=settings.timeout)

                if settings.use_tls:
                    logger.debug("Upgrading connection with STARTTLS")
                    smtp.starttls(context=ssl.create_default_context())

            if settings.has_credentials:
                logger.debug(f"Authenticating as {settings.user}")
                smtp.login(settings.user, settings.password)

            operation(smtp)

        except smtplib.SMTPException as e:
            raise SMTPDeliveryError(f"SMTP error during {action}: {e}") from e
        except OSError as e:
            raise SMTPDeliveryError(f"Network error during SMTP {action}: {e}") from e
        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except Exception as e:
                    logger.warning(f"Error closing SMTP connection: {e}")


def normalize_recipient(address: str) -> str:
    """Validate a single recipient address and return its normalized form.

    Raises:
        ValueError: If the address is empty or malformed
    """
    if not address or not address.strip():
        raise ValueError("Recipient address is empty")

    try:
        return validate_email(address.strip(), check_deliverability=False).normalized
    except EmailNotValidError as e:
        raise ValueError(f"Invalid recipient address '{address}': {e}") from e


def build_email_message(mail: MailMessage, recipient: str) -> EmailMessage:
    """Build a MIME message with a fresh Message-ID for SMTP delivery."""
    message = EmailMessage()
    message["Subject"] = mail.subject
    message["From"] = mail.from_header
    message["To"] = recipient
    message["Message-ID"] = make_msgid(domain=mail.sender_email.rpartition("@")[2] or None)
    message.set_content(mail.html, subtype="html")
    return message
