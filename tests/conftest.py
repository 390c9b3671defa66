"""Shared fixtures for the notification service test suite."""

from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

from notification_service.config.environment import EnvironmentConfig
from notification_service.config.models import AppConfig
from notification_service.notifications.models import MailMessage, SMTPDeliveryError
from notification_service.notifications.retry_queue import RetryQueue
from notification_service.notifications.service import NotificationService

ENV_VARS = (
    "MAILTRAP_API_TOKEN",
    "MAILTRAP_API_URL",
    "MAILTRAP_HOST",
    "MAILTRAP_PORT",
    "MAILTRAP_USER",
    "MAILTRAP_PASS",
    "FROM_EMAIL",
    "FROM_NAME",
    "CORS_ORIGINS",
    "PORT",
    "LOG_LEVEL",
    "ENVIRONMENT",
)


class FakeTransport:
    """In-memory transport that fails a scripted number of times."""

    name = "fake"

    def __init__(self, failures: int = 0, error: Optional[Exception] = None):
        self.failures = failures
        self.error = error or SMTPDeliveryError("connection refused")
        self.sent: List[MailMessage] = []
        self.attempts = 0
        self.verified = False

    async def send(self, message: MailMessage) -> str:
        self.attempts += 1
        if self.failures > 0:
            self.failures -= 1
            raise self.error
        self.sent.append(message)
        return f"<msg-{len(self.sent)}@ocrs.gov.in>"

    async def verify(self) -> None:
        self.verified = True


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += timedelta(seconds=seconds)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every service environment variable."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


@pytest.fixture
def fixed_now():
    """Reference time used for deterministic rendering."""
    return datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def retry_queue(clock):
    return RetryQueue(delay_seconds=5, clock=clock)


@pytest.fixture
def service(transport, retry_queue):
    return NotificationService(transport=transport, retry_queue=retry_queue)


@pytest.fixture
def env_config():
    return EnvironmentConfig(smtp_user="user", smtp_pass="pass")


@pytest.fixture
def app_config():
    return AppConfig()
