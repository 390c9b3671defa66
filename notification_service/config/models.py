"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class RetryConfig(BaseModel):
    """Redelivery policy for failed sends."""

    max_attempts: int = Field(
        3, ge=1, le=10, description="Total send attempts per notification, first send included"
    )
    delay: str = Field("5s", description="Minimum wait before a failed send is retried")
    sweep_interval: str = Field("10s", description="How often the retry queue is swept")

    model_config = {"extra": "forbid"}

    # Computed fields
    delay_seconds: Optional[int] = None
    sweep_interval_seconds: Optional[int] = None

    @field_validator("delay", "sweep_interval")
    @classmethod
    def validate_duration(cls, v: str) -> str:
        """Validate duration strings (1 second to 1 hour)."""
        try:
            seconds = parse_duration(v)
            validate_duration_range(seconds, min_seconds=1, max_seconds=3600)
            return v
        except DurationParseError as e:
            raise ValueError(str(e)) from e

    @model_validator(mode="after")
    def compute_seconds(self):
        """Compute durations in seconds."""
        self.delay_seconds = parse_duration(self.delay)
        self.sweep_interval_seconds = parse_duration(self.sweep_interval)
        return self


class TransportConfig(BaseModel):
    """Mail transport settings."""

    use_tls: bool = Field(True, description="Use TLS/STARTTLS for SMTP connections")
    timeout: int = Field(
        30, ge=5, le=300, description="Socket/request timeout for the mail transport (seconds)"
    )

    model_config = {"extra": "forbid"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True, "validate_default": True}


class AppConfig(BaseModel):
    """Root configuration object for the notification service."""

    retry: RetryConfig = Field(default_factory=RetryConfig, description="Retry settings")
    transport: TransportConfig = Field(
        default_factory=TransportConfig, description="Mail transport settings"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    model_config = {"extra": "forbid"}
