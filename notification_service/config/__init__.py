"""Configuration management module for the OCRS notification service."""

from .environment import EnvironmentConfig, load_environment_config, parse_cors_origins
from .exceptions import ConfigurationError
from .loader import load_config
from .models import (
    AppConfig,
    LogFormat,
    LogLevel,
    LoggingConfig,
    RetryConfig,
    TransportConfig,
)

__all__ = [
    # Main loader functions
    "load_config",
    "load_environment_config",
    "parse_cors_origins",
    # Configuration models
    "AppConfig",
    "RetryConfig",
    "TransportConfig",
    "LoggingConfig",
    "EnvironmentConfig",
    # Enums
    "LogLevel",
    "LogFormat",
    # Exceptions
    "ConfigurationError",
]
