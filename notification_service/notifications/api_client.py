"""HTTP client for the Mailtrap sending API.

Blocking requests-based client; the API transport runs it in a worker
thread. The request/response contract:

    POST {api_url}
    Authorization: Bearer {token}
    {"from": {"email", "name"}, "to": [{"email"}], "subject", "html", "category"}

    200 {"success": true, "message_ids": ["..."]}
    4xx/5xx {"success": false, "errors": ["..."]}
"""

import logging
import threading
from typing import Any, Dict, Optional

import requests

from notification_service.logging import get_logger

from .models import APIDeliveryError, MailMessage

logger = get_logger(__name__, component="transport")


class MailAPIClient:
    """Sends rendered messages through the mail provider's HTTP API.

    Attributes:
        api_url: Send endpoint
        timeout: Request timeout in seconds
    """

    def __init__(
        self,
        api_token: str,
        api_url: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
        category: str = "OCRS Notification",
    ) -> None:
        if not api_token or not api_token.strip():
            raise ValueError("api_token cannot be empty")

        self.api_url = api_url
        self.timeout = timeout
        self.category = category
        self.headers = {
            "Authorization": f"Bearer {api_token.strip()}",
            "Content-Type": "application/json",
            "User-Agent": "OCRSNotificationService/1.0",
        }
        self._session = session
        self._local = threading.local()
        if session is not None:
            session.headers.update(self.headers)

    def get_session(self) -> requests.Session:
        """Session for the calling thread.

        Sends run in worker threads and requests.Session is not thread-safe,
        so each thread gets its own. An injected session is used as-is.
        """
        if self._session is not None:
            return self._session

        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self.headers)
            self._local.session = session
        return session

    def build_body(self, mail: MailMessage, recipient: str) -> Dict[str, Any]:
        """JSON body for one message."""
        return {
            "from": {"email": mail.sender_email, "name": mail.sender_name},
            "to": [{"email": recipient}],
            "subject": mail.subject,
            "html": mail.html,
            "category": self.category,
        }

    def send(self, mail: MailMessage, recipient: str) -> str:
        """Send one message and return the provider's message id.

        Raises:
            APIDeliveryError: On timeout, connection failure, HTTP error
                status, unreadable response or ``success: false``
        """
        try:
            response = self.get_session().post(
                self.api_url,
                json=self.build_body(mail, recipient),
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise APIDeliveryError(f"Mail API request timed out after {self.timeout}s") from e
        except requests.exceptions.RequestException as e:
            raise APIDeliveryError(f"Mail API request failed: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}
        if not isinstance(data, dict):
            data = {}

        if response.status_code >= 400:
            level = logging.WARNING if response.status_code >= 500 else logging.ERROR
            logger.log(
                level,
                f"Mail API returned HTTP {response.status_code}",
                extra={
                    "event": "transport.api.error",
                    "status_code": response.status_code,
                    "url": self.api_url,
                },
            )
            raise APIDeliveryError(
                f"HTTP {response.status_code}: {self._describe_errors(data) or response.reason}",
                status_code=response.status_code,
            )

        if not data.get("success", False):
            raise APIDeliveryError(
                f"Mail API rejected the message: {self._describe_errors(data) or 'no details'}",
                status_code=response.status_code,
            )

        message_ids = data.get("message_ids") or []
        if not message_ids:
            # Accepted, so retrying would deliver twice
            logger.warning(
                "Mail API accepted the message without returning a message id",
                extra={"event": "transport.api.missing_message_id"},
            )
            return ""
        return str(message_ids[0])

    @staticmethod
    def _describe_errors(data: Dict[str, Any]) -> str:
        errors = data.get("errors")
        if isinstance(errors, list):
            return "; ".join(str(error) for error in errors)
        if errors:
            return str(errors)
        return ""
