"""Notification API routes under ``/api``."""

from typing import Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from notification_service.logging import get_logger
from notification_service.notifications import DeliveryResult, NotificationService, TemplateName
from notification_service.utils.timestamps import epoch_millis

from .schemas import NotifyRequest, SendRequest

logger = get_logger(__name__, component="api")

router = APIRouter(prefix="/api", tags=["Notifications"])

INTERNAL_ERROR_BODY = {"success": False, "message": "Internal server error"}


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def _starts_with(value: Optional[str], prefix: str) -> bool:
    return bool(value) and value.startswith(prefix)


def _contains(value: Optional[str], needle: str) -> bool:
    return bool(value) and needle in value


def detect_template(body: NotifyRequest) -> TemplateName:
    """Pick a template from the case number prefix and subject wording.

    Missing-person markers win over FIR-filed markers, which win over update
    wording; anything else is generic. Only caseNumber is checked for a
    prefix: firNumber and reference also appear on update notifications.
    """
    if _starts_with(body.case_number, "MP-") or _contains(body.subject, "Missing Person"):
        return TemplateName.MISSING_PERSON_FILED

    if (
        _starts_with(body.case_number, "FIR-")
        or _contains(body.subject, "FIR Filed")
        or _contains(body.subject, "Report Filed")
    ):
        return TemplateName.FIR_FILED

    if _contains(body.subject, "Updated"):
        if (
            body.fir_number
            or _starts_with(body.reference, "FIR-")
            or _starts_with(body.reference, "MP-")
        ):
            return TemplateName.FIR_UPDATE
        return TemplateName.STATUS_UPDATE

    return TemplateName.GENERIC


def _delivery_response(result: DeliveryResult, sent_body: dict) -> JSONResponse:
    if result.success:
        return JSONResponse(status_code=200, content=sent_body)
    if result.queued:
        return JSONResponse(
            status_code=202,
            content={"success": True, "message": "Email queued for retry", "queued": True},
        )
    return JSONResponse(
        status_code=500,
        content={"success": False, "message": "Failed to send email", "error": result.error},
    )


@router.post("/notify")
async def notify(
    body: NotifyRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Send a notification on behalf of a backend service."""
    try:
        template = TemplateName.resolve(body.template) if body.template else detect_template(body)
        result = await service.send_email(
            body.recipient, template, body.notification_data(epoch_millis())
        )
        return _delivery_response(
            result,
            {
                "success": True,
                "message": "Email notification sent",
                "messageId": result.message_id,
                "template": template.value,
            },
        )
    except Exception as e:
        logger.error(f"Notify error: {e}", exc_info=True, extra={"event": "api.notify.error"})
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)


@router.post("/send")
async def send(
    body: SendRequest,
    service: NotificationService = Depends(get_notification_service),
):
    """Send a notification with an explicit template."""
    if not body.to:
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "Recipient email is required"},
        )

    try:
        result = await service.send_email(body.to, body.template, body.data or {})
        return _delivery_response(
            result,
            {"success": True, "message": "Email sent", "messageId": result.message_id},
        )
    except Exception as e:
        logger.error(f"Send error: {e}", exc_info=True, extra={"event": "api.send.error"})
        return JSONResponse(status_code=500, content=INTERNAL_ERROR_BODY)


@router.get("/queue/status")
def queue_status(service: NotificationService = Depends(get_notification_service)):
    """Retry queue contents for monitoring."""
    return {"success": True, **service.queue_status()}
