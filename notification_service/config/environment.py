"""Environment variable loading and validation."""

import os
from typing import List, Optional

from email_validator import EmailNotValidError, validate_email

from .exceptions import ConfigurationError

DEFAULT_API_URL = "https://send.api.mailtrap.io/api/send"
DEFAULT_SMTP_HOST = "sandbox.smtp.mailtrap.io"
DEFAULT_SMTP_PORT = 2525
DEFAULT_FROM_EMAIL = "noreply@ocrs.gov.in"
DEFAULT_FROM_NAME = "OCRS System"
DEFAULT_CORS_ORIGINS = [
    "http://localhost:8080",
    "http://localhost:8081",
    "http://localhost:3001",
]
DEFAULT_PORT = 3000


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        api_token: Optional[str] = None,
        api_url: Optional[str] = None,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_pass: Optional[str] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        cors_origins: Optional[List[str]] = None,
        port: Optional[int] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        """Initialize environment configuration."""
        self.api_token = api_token or None
        self.api_url = api_url or DEFAULT_API_URL
        self.smtp_host = smtp_host or DEFAULT_SMTP_HOST
        self.smtp_port = smtp_port or DEFAULT_SMTP_PORT
        self.smtp_user = smtp_user
        self.smtp_pass = smtp_pass
        self.from_email = from_email or DEFAULT_FROM_EMAIL
        self.from_name = from_name or DEFAULT_FROM_NAME
        self.cors_origins = cors_origins or list(DEFAULT_CORS_ORIGINS)
        self.port = port or DEFAULT_PORT
        self.log_level = log_level
        self.environment = environment or "local"

    @property
    def uses_api_transport(self) -> bool:
        """True when an API token is configured and the HTTP mail API should be used."""
        return bool(self.api_token)


def parse_cors_origins(raw: Optional[str]) -> List[str]:
    """Split a comma-separated origin list, dropping blanks."""
    if not raw:
        return list(DEFAULT_CORS_ORIGINS)
    origins = [origin.strip() for origin in raw.split(",")]
    return [origin for origin in origins if origin] or list(DEFAULT_CORS_ORIGINS)


def load_environment_config() -> EnvironmentConfig:
    """
    Load and validate environment variables.

    All variables are optional:
    - MAILTRAP_API_TOKEN: selects the HTTP mail API transport when set
    - MAILTRAP_API_URL: send endpoint of the mail API
    - MAILTRAP_HOST / MAILTRAP_PORT: SMTP server (default sandbox.smtp.mailtrap.io:2525)
    - MAILTRAP_USER / MAILTRAP_PASS: SMTP credentials (checked at send time)
    - FROM_EMAIL / FROM_NAME: sender identity
    - CORS_ORIGINS: comma-separated allow-list for browser callers
    - PORT: HTTP listening port (default 3000)
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Environment label attached to log records

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If any variable is present but invalid
    """
    errors = []

    api_token = os.getenv("MAILTRAP_API_TOKEN")
    api_url = os.getenv("MAILTRAP_API_URL")
    smtp_host = os.getenv("MAILTRAP_HOST")
    smtp_port_str = os.getenv("MAILTRAP_PORT")
    smtp_user = os.getenv("MAILTRAP_USER")
    smtp_pass = os.getenv("MAILTRAP_PASS")
    from_email = os.getenv("FROM_EMAIL")
    from_name = os.getenv("FROM_NAME")
    cors_origins = os.getenv("CORS_ORIGINS")
    port_str = os.getenv("PORT")
    log_level = os.getenv("LOG_LEVEL")
    environment = os.getenv("ENVIRONMENT")

    smtp_port = _parse_port("MAILTRAP_PORT", smtp_port_str, errors)
    port = _parse_port("PORT", port_str, errors)

    if from_email:
        try:
            validate_email(from_email, check_deliverability=False)
        except EmailNotValidError as e:
            errors.append(f"Invalid email address format in FROM_EMAIL: '{from_email}' - {e}")

    # Validate log level if provided
    if log_level:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if log_level.upper() not in valid_levels:
            errors.append(
                f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(valid_levels)}"
            )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and adjust the values",
                "Verify MAILTRAP_PORT and PORT are numbers between 1 and 65535",
                "Check that FROM_EMAIL is a valid address",
            ],
        )

    return EnvironmentConfig(
        api_token=api_token,
        api_url=api_url,
        smtp_host=smtp_host,
        smtp_port=smtp_port,
        smtp_user=smtp_user,
        smtp_pass=smtp_pass,
        from_email=from_email,
        from_name=from_name,
        cors_origins=parse_cors_origins(cors_origins),
        port=port,
        log_level=log_level.upper() if log_level else None,
        environment=environment,
    )


def _parse_port(name: str, value: Optional[str], errors: List[str]) -> Optional[int]:
    """Parse a port variable, appending a message to errors when invalid."""
    if not value:
        return None

    try:
        port = int(value)
    except ValueError:
        errors.append(f"Invalid {name}: '{value}'. Must be a valid integer.")
        return None

    if port < 1 or port > 65535:
        errors.append(f"Invalid {name}: {port}. Must be between 1 and 65535.")
        return None

    return port
