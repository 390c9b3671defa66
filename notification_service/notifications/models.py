"""Data models and exceptions for the notification service.

This module defines result types and custom exceptions used throughout
the send-with-retry pipeline.
"""

from dataclasses import dataclass
from email.utils import formataddr
from typing import Optional


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when a template file is broken and cannot be rendered."""

    pass


class TransportError(NotificationError):
    """Raised when the mail transport rejects or fails to deliver a message.

    Always treated as retryable by the dispatcher.
    """

    pass


class SMTPDeliveryError(TransportError):
    """Raised when SMTP delivery fails (connection, auth, recipient refused)."""

    pass


class APIDeliveryError(TransportError):
    """Raised when the HTTP mail API rejects a send or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


@dataclass(frozen=True)
class RenderedEmail:
    """Subject line and HTML body produced by the template renderer."""

    subject: str
    html: str


@dataclass(frozen=True)
class MailMessage:
    """A fully rendered message ready for a transport.

    Attributes:
        sender_email: Envelope/From address
        sender_name: Display name shown to the recipient
        recipient: Single recipient address
        subject: Subject line
        html: HTML body
    """

    sender_email: str
    sender_name: str
    recipient: str
    subject: str
    html: str

    @property
    def from_header(self) -> str:
        """From header value, e.g. ``OCRS System <noreply@ocrs.gov.in>``."""
        return formataddr((self.sender_name, self.sender_email))


@dataclass
class DeliveryResult:
    """Outcome of one dispatch attempt.

    Exactly one of three shapes:
    - sent: ``success=True`` with the provider's ``message_id``
    - queued: ``success=False, queued=True``; a retry record was enqueued
    - failed: ``success=False, queued=False``; terminal, nothing enqueued

    Attributes:
        success: Whether the transport accepted the message
        attempts: Number of attempts made for this notification so far
        message_id: Provider message identifier on success
        error: Error message on failure
        queued: Whether a retry was scheduled
    """

    success: bool
    attempts: int
    message_id: Optional[str] = None
    error: Optional[str] = None
    queued: bool = False

    @property
    def status(self) -> str:
        """One of "sent", "queued" or "failed"."""
        if self.success:
            return "sent"
        return "queued" if self.queued else "failed"
