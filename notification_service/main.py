"""Main entry point for the OCRS notification service."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import sys
import time
from pathlib import Path
from typing import Optional, Tuple

import uvicorn

from notification_service.api import build_notification_service, create_app
from notification_service.config.environment import EnvironmentConfig
from notification_service.config.exceptions import ConfigurationError
from notification_service.config.loader import load_config
from notification_service.config.models import AppConfig
from notification_service.logging import get_logger
from notification_service.logging.config import configure_logging

logger = get_logger(__name__, component="cli")


def load_runtime_config(
    config_path: Optional[Path],
    log_level_override: Optional[str] = None,
    port_override: Optional[int] = None,
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load and prepare runtime configuration.

    Args:
        config_path: Path to configuration file, or None for the default lookup
        log_level_override: Log level from CLI (takes precedence)
        port_override: Listen port from CLI (takes precedence over PORT)

    Returns:
        Tuple of (AppConfig, EnvironmentConfig) with log level and port resolved

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path)

    # Log level priority: CLI > Environment > Config
    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"

    if port_override:
        env_config.port = port_override

    return app_config, env_config


def main(argv=None) -> int:
    """
    Main entry point for the notification service.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    start_time = time.time()
    parser = argparse.ArgumentParser(
        description="OCRS Notification Service - templated citizen email notifications with retry"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml if present, else built-in defaults)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    parser.add_argument(
        "--host",
        default="0.0.0.0",
        help="Interface to bind (default: 0.0.0.0)",
    )
    parser.add_argument(
        "--port",
        type=int,
        default=None,
        help="Port to listen on (overrides PORT, default: 3000)",
    )

    args = parser.parse_args(argv)

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level, args.port)

        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "OCRS Notification Service starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "host": args.host,
                "port": env_config.port,
                "retry_max_attempts": app_config.retry.max_attempts,
                "retry_delay_seconds": app_config.retry.delay_seconds,
                "sweep_interval_seconds": app_config.retry.sweep_interval_seconds,
            },
        )

        service = build_notification_service(env_config, app_config)
        app = create_app(env_config, app_config, service=service)

        # log_config=None keeps uvicorn on the handlers configured above
        uvicorn.run(app, host=args.host, port=env_config.port, log_config=None)

        uptime_seconds = time.time() - start_time
        logger.info(
            "OCRS Notification Service stopped",
            extra={
                "event": "service.stopping",
                "uptime_seconds": round(uptime_seconds, 2),
            },
        )
        return 0

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0
    except Exception as e:
        print(f"Fatal error: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            extra={
                "event": "service.startup.failed",
                "error_type": type(e).__name__,
                "error": str(e),
            },
            exc_info=True,
        )
        return 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
