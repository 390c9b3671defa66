"""Notification service: the send-with-retry dispatcher.

NotificationService turns "recipient + template + data" into either a
confirmed send or a queued retry:
1. Render the template
2. Build the message with the configured sender
3. Hand it to the mail transport
4. On transport failure, enqueue a RetryRecord while attempts remain

It never raises for a delivery failure; callers always get a DeliveryResult.
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from notification_service.config.environment import DEFAULT_FROM_EMAIL, DEFAULT_FROM_NAME
from notification_service.logging import get_logger
from notification_service.logging.context import log_context

from .models import DeliveryResult, MailMessage
from .payloads import TemplateName
from .retry_queue import RetryQueue, RetryRecord
from .templates import TemplateRenderer
from .transport import MailTransport

logger = get_logger(__name__, component="notification")

DEFAULT_MAX_ATTEMPTS = 3


class NotificationService:
    """Dispatches templated notifications and owns their retry lifecycle.

    An attempt_count of n means n attempts were made before this one. A
    failed attempt is re-enqueued with attempt_count n + 1 while
    n + 1 < max_attempts; otherwise the notification is dropped.
    """

    def __init__(
        self,
        transport: MailTransport,
        retry_queue: Optional[RetryQueue] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        sender_email: str = DEFAULT_FROM_EMAIL,
        sender_name: str = DEFAULT_FROM_NAME,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize notification service.

        Args:
            transport: Mail transport chosen at startup
            retry_queue: Queue for failed sends (creates default if None)
            template_renderer: Template renderer instance (creates default if None)
            sender_email: From address
            sender_name: From display name
            max_attempts: Total attempts per notification, first send included
            logger_instance: Logger instance (uses module logger if None)
        """
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got: {max_attempts}")

        self.transport = transport
        self.retry_queue = retry_queue if retry_queue is not None else RetryQueue()
        self.template_renderer = template_renderer or TemplateRenderer()
        self.sender_email = sender_email
        self.sender_name = sender_name
        self.max_attempts = max_attempts
        self.logger = logger_instance or logger

    async def send_email(
        self,
        recipient: str,
        template_name: Union[TemplateName, str, None],
        data: Optional[Mapping[str, Any]] = None,
        attempt_count: int = 0,
        now: Optional[datetime] = None,
    ) -> DeliveryResult:
        """Render and send one notification, queueing a retry on failure.

        Args:
            recipient: Destination address
            template_name: Template identifier (unknown or empty uses generic)
            data: Notification fields
            attempt_count: Attempts already made; only the retry sweep passes this
            now: Reference time for rendering a missing timestamp

        Returns:
            DeliveryResult: sent, queued for retry, or failed terminally
        """
        template = TemplateName.resolve(template_name or TemplateName.GENERIC)
        payload: Dict[str, Any] = dict(data or {})
        attempt = attempt_count + 1

        with log_context(recipient=recipient, template=template.value, attempt=attempt):
            try:
                rendered = self.template_renderer.render(template, payload, now=now)
            except Exception as e:
                # Rendering failures repeat on retry, so they are terminal
                self.logger.error(
                    f"Template rendering failed for {recipient}: {e}",
                    extra={"event": "notification.render.failure"},
                )
                return DeliveryResult(success=False, attempts=attempt_count, error=str(e))

            message = MailMessage(
                sender_email=self.sender_email,
                sender_name=self.sender_name,
                recipient=recipient,
                subject=rendered.subject,
                html=rendered.html,
            )

            try:
                message_id = await self.transport.send(message)
            except Exception as e:
                # Any transport failure is retryable
                return self._handle_failure(recipient, template, payload, attempt, e)

            self.logger.info(
                f"Email sent successfully: {message_id} to {recipient}",
                extra={
                    "event": "notification.send.success",
                    "message_id": message_id,
                    "transport": getattr(self.transport, "name", "unknown"),
                },
            )
            return DeliveryResult(success=True, attempts=attempt, message_id=message_id)

    def _handle_failure(
        self,
        recipient: str,
        template: TemplateName,
        payload: Dict[str, Any],
        attempts_made: int,
        error: Exception,
    ) -> DeliveryResult:
        error_type = type(error).__name__
        self.logger.warning(
            f"Email error (attempt {attempts_made}/{self.max_attempts}) for {recipient}: {error}",
            extra={"event": "notification.send.failure", "error_type": error_type},
        )

        if attempts_made < self.max_attempts:
            self.retry_queue.enqueue(
                RetryRecord(
                    recipient=recipient,
                    template_name=template,
                    payload=payload,
                    attempt_count=attempts_made,
                    enqueued_at=self.retry_queue.now(),
                )
            )
            self.logger.info(
                f"Email queued for retry (attempt {attempts_made}/{self.max_attempts}): {recipient}",
                extra={
                    "event": "notification.retry.queued",
                    "queue_length": len(self.retry_queue),
                },
            )
            return DeliveryResult(
                success=False, attempts=attempts_made, error=str(error), queued=True
            )

        self.logger.error(
            f"Email failed after {attempts_made} attempts: {recipient}",
            extra={"event": "notification.retry.exhausted", "error_type": error_type},
        )
        return DeliveryResult(success=False, attempts=attempts_made, error=str(error))

    async def process_retry_queue(self) -> List[DeliveryResult]:
        """Redeliver every queued record whose delay has elapsed.

        Called by the retry sweeper on each tick. Records enqueued while the
        sweep runs wait for the next tick. A failure on one record is logged
        and never aborts the sweep.

        Returns:
            One DeliveryResult per redelivered record
        """
        if len(self.retry_queue) == 0:
            return []

        ready = self.retry_queue.drain_ready()
        self.logger.info(
            f"Processing retry queue: {len(ready)} ready, {len(self.retry_queue)} waiting",
            extra={
                "event": "retry_queue.sweep.started",
                "ready_count": len(ready),
                "waiting_count": len(self.retry_queue),
            },
        )

        results = []
        for record in ready:
            try:
                result = await self.send_email(
                    record.recipient,
                    record.template_name,
                    record.payload,
                    attempt_count=record.attempt_count,
                )
            except Exception as e:
                self.logger.error(
                    f"Unexpected error redelivering to {record.recipient}: {e}",
                    exc_info=True,
                    extra={"event": "retry_queue.sweep.error"},
                )
                result = DeliveryResult(
                    success=False, attempts=record.attempt_count, error=str(e)
                )
            results.append(result)

        sent = sum(1 for r in results if r.success)
        requeued = sum(1 for r in results if r.queued)
        dropped = len(results) - sent - requeued
        self.logger.info(
            f"Retry sweep complete: {sent} sent, {requeued} requeued, {dropped} dropped",
            extra={
                "event": "retry_queue.sweep.completed",
                "sent": sent,
                "requeued": requeued,
                "dropped": dropped,
                "queue_length": len(self.retry_queue),
            },
        )
        return results

    def queue_status(self) -> Dict[str, Any]:
        """Current retry queue contents for monitoring."""
        return self.retry_queue.status()
