"""Notification pipeline for OCRS citizen emails.

This module provides the send-with-retry pipeline:
- NotificationService: Dispatcher that renders, sends and queues retries
- RetryQueue / RetryRecord: In-memory redelivery queue
- TemplateRenderer: Jinja2-based email template rendering
- Transports: HTTP mail API or SMTP, selected from configuration
- Payload models: Per-template field sets with placeholder-friendly parsing
"""

from .api_client import MailAPIClient
from .models import (
    APIDeliveryError,
    DeliveryResult,
    MailMessage,
    NotificationError,
    NotificationTemplateError,
    RenderedEmail,
    SMTPDeliveryError,
    TransportError,
)
from .payloads import TemplateName, build_template_context
from .retry_queue import RetryQueue, RetryRecord
from .service import NotificationService
from .smtp_client import SMTPClient, SMTPSettings, normalize_recipient
from .templates import TemplateRenderer
from .transport import APITransport, MailTransport, SMTPTransport, create_transport

__all__ = [
    # Main service
    "NotificationService",
    # Retry queue
    "RetryQueue",
    "RetryRecord",
    # Models and results
    "DeliveryResult",
    "MailMessage",
    "RenderedEmail",
    "TemplateName",
    # Exceptions
    "NotificationError",
    "NotificationTemplateError",
    "TransportError",
    "SMTPDeliveryError",
    "APIDeliveryError",
    # Components
    "TemplateRenderer",
    "MailTransport",
    "SMTPTransport",
    "APITransport",
    "SMTPClient",
    "SMTPSettings",
    "MailAPIClient",
    # Utilities
    "build_template_context",
    "create_transport",
    "normalize_recipient",
]
