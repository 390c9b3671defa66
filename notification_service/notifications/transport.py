"""Mail transports and configuration-driven transport selection.

Two transports share one async interface:
- APITransport: the mail provider's HTTP sending API (used when an API
  token is configured)
- SMTPTransport: plain SMTP (used otherwise)

Both wrap blocking clients and run them with ``asyncio.to_thread`` so the
event loop stays free while a send is in flight.
"""

import asyncio
from typing import Optional, Protocol, runtime_checkable

from notification_service.config.environment import EnvironmentConfig
from notification_service.config.models import TransportConfig
from notification_service.logging import get_logger

from .api_client import MailAPIClient
from .models import APIDeliveryError, MailMessage, SMTPDeliveryError
from .smtp_client import SMTPClient, SMTPSettings, build_email_message, normalize_recipient

logger = get_logger(__name__, component="transport")


@runtime_checkable
class MailTransport(Protocol):
    """Capability to deliver a rendered message."""

    name: str

    async def send(self, message: MailMessage) -> str:
        """Deliver message and return the provider message id.

        Raises:
            TransportError: If the transport rejects or fails the send
        """
        ...

    async def verify(self) -> None:
        """Best-effort connectivity check.

        Raises:
            TransportError: If the transport is unreachable or misconfigured
        """
        ...


class SMTPTransport:
    """Delivers messages over SMTP."""

    name = "smtp"

    def __init__(self, client: SMTPClient):
        self.client = client

    async def send(self, message: MailMessage) -> str:
        try:
            recipient = normalize_recipient(message.recipient)
        except ValueError as e:
            raise SMTPDeliveryError(str(e)) from e

        email_message = build_email_message(message, recipient)
        await asyncio.to_thread(self.client.send, email_message)
        return email_message["Message-ID"]

    async def verify(self) -> None:
        await asyncio.to_thread(self.client.verify)


class APITransport:
    """Delivers messages through the mail provider's HTTP API."""

    name = "api"

    def __init__(self, client: MailAPIClient):
        self.client = client

    async def send(self, message: MailMessage) -> str:
        try:
            recipient = normalize_recipient(message.recipient)
        except ValueError as e:
            raise APIDeliveryError(str(e)) from e

        return await asyncio.to_thread(self.client.send, message, recipient)

    async def verify(self) -> None:
        # The sending API has no side-effect-free probe; a token is all we can check
        logger.debug(
            f"Mail API transport configured for {self.client.api_url}",
            extra={"event": "transport.verify.skipped"},
        )


def create_transport(
    env_config: EnvironmentConfig,
    transport_config: Optional[TransportConfig] = None,
) -> MailTransport:
    """Select the mail transport from configuration.

    An API token selects the HTTP API transport; otherwise SMTP is used with
    the configured (or default) host, port and credentials.
    """
    transport_config = transport_config or TransportConfig()

    if env_config.uses_api_transport:
        transport = APITransport(
            MailAPIClient(
                api_token=env_config.api_token,
                api_url=env_config.api_url,
                timeout=transport_config.timeout,
            )
        )
        logger.info(
            "Using mail API transport",
            extra={"event": "transport.selected", "transport": "api", "api_url": env_config.api_url},
        )
        return transport

    settings = SMTPSettings(
        host=env_config.smtp_host,
        port=env_config.smtp_port,
        user=env_config.smtp_user,
        password=env_config.smtp_pass,
        use_tls=transport_config.use_tls,
        timeout=transport_config.timeout,
    )
    logger.info(
        f"Using SMTP transport {settings.host}:{settings.port}",
        extra={
            "event": "transport.selected",
            "transport": "smtp",
            "smtp_host": settings.host,
            "smtp_port": settings.port,
            "smtp_auth": settings.has_credentials,
        },
    )
    return SMTPTransport(SMTPClient(settings))
