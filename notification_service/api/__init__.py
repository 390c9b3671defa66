"""HTTP facade for the notification service."""

from .app import build_notification_service, create_app
from .routes import detect_template, router

__all__ = [
    "build_notification_service",
    "create_app",
    "detect_template",
    "router",
]
