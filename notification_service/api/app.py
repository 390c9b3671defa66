"""FastAPI application factory for the notification service."""

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from notification_service.config.environment import EnvironmentConfig
from notification_service.config.models import AppConfig
from notification_service.logging import get_logger
from notification_service.notifications import (
    NotificationService,
    RetryQueue,
    create_transport,
)
from notification_service.scheduler import RetrySweeper
from notification_service.utils.timestamps import format_timestamp, utc_now

from .routes import INTERNAL_ERROR_BODY, router

logger = get_logger(__name__, component="api")


def build_notification_service(
    env_config: EnvironmentConfig, app_config: AppConfig
) -> NotificationService:
    """Wire transport, retry queue and dispatcher from configuration."""
    return NotificationService(
        transport=create_transport(env_config, app_config.transport),
        retry_queue=RetryQueue(delay_seconds=app_config.retry.delay_seconds),
        sender_email=env_config.from_email,
        sender_name=env_config.from_name,
        max_attempts=app_config.retry.max_attempts,
    )


def create_app(
    env_config: EnvironmentConfig,
    app_config: AppConfig,
    service: Optional[NotificationService] = None,
    start_scheduler: bool = True,
) -> FastAPI:
    """Build the HTTP application.

    Args:
        env_config: Environment configuration (transport, sender, CORS)
        app_config: Application configuration (retry and transport tuning)
        service: Pre-built dispatcher; built from configuration if None
        start_scheduler: Run the retry sweeper for the app's lifetime
    """
    service = service or build_notification_service(env_config, app_config)
    sweeper = RetrySweeper(
        service.process_retry_queue,
        interval_seconds=app_config.retry.sweep_interval_seconds,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await service.transport.verify()
            logger.info(
                "Mail transport ready",
                extra={"event": "transport.verify.success", "transport": service.transport.name},
            )
        except Exception as e:
            # The service still starts; failed sends go through the retry queue
            logger.warning(
                f"Mail transport verification failed: {e}",
                extra={"event": "transport.verify.failure", "error_type": type(e).__name__},
            )

        if start_scheduler:
            sweeper.start()
        try:
            yield
        finally:
            if sweeper.is_running():
                sweeper.shutdown(wait=False)

    app = FastAPI(title="OCRS Notification Service", lifespan=lifespan)
    app.state.notification_service = service
    app.state.retry_sweeper = sweeper

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(env_config.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        logger.warning(
            f"Rejected malformed request to {request.url.path}",
            extra={"event": "api.request.invalid", "path": request.url.path},
        )
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled error on {request.url.path}: {exc}",
            exc_info=exc,
            extra={"event": "api.request.error", "path": request.url.path},
        )
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)

    @app.get("/health")
    def health():
        return {"status": "Email Service is running", "timestamp": format_timestamp(utc_now())}

    app.include_router(router)
    return app
