"""Payload models and context building for notification templates.

Each template kind has its own payload model listing the fields it can
display. Calling services send loosely-typed JSON, so every model:
- accepts camelCase wire names as well as snake_case,
- ignores fields it does not use,
- coerces any non-null scalar to text and treats blank strings as absent.

Validation therefore never fails; missing fields simply render as the
template's placeholder.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

from notification_service.utils.timestamps import format_display_timestamp


class TemplateName(str, Enum):
    """Known notification templates."""

    FIR_FILED = "firFiled"
    FIR_UPDATE = "firUpdate"
    STATUS_UPDATE = "statusUpdate"
    MISSING_PERSON_FILED = "missingPersonFiled"
    MISSING_PERSON_UPDATE = "missingPersonUpdate"
    MISSING_PERSON_REASSIGNED = "missingPersonReassigned"
    GENERIC = "generic"

    @classmethod
    def resolve(cls, name: Union["TemplateName", str, None]) -> "TemplateName":
        """Map an identifier to a template, falling back to GENERIC."""
        if isinstance(name, cls):
            return name
        try:
            return cls(name)
        except ValueError:
            return cls.GENERIC

    @property
    def file_stem(self) -> str:
        """Template file prefix, e.g. ``fir_filed`` for ``firFiled``."""
        return self.name.lower()


class NotificationPayload(BaseModel):
    """Fields shared by every template."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    timestamp: Optional[Any] = None

    @field_validator("*", mode="before")
    @classmethod
    def coerce_to_text(cls, value: Any, info) -> Any:
        if info.field_name == "timestamp" or value is None:
            return value
        text = value.strip() if isinstance(value, str) else str(value)
        return text or None


class FirFiledPayload(NotificationPayload):
    fir_number: Optional[str] = None
    reference: Optional[str] = None
    authority_name: Optional[str] = None


class FirUpdatePayload(NotificationPayload):
    fir_number: Optional[str] = None
    reference: Optional[str] = None
    update_type: Optional[str] = None
    new_status: Optional[str] = None
    previous_status: Optional[str] = None
    authority_id: Optional[str] = None
    authority_name: Optional[str] = None
    comment: Optional[str] = None


class StatusUpdatePayload(NotificationPayload):
    reference: Optional[str] = None
    new_status: Optional[str] = None
    authority_name: Optional[str] = None
    comment: Optional[str] = None


class MissingPersonFiledPayload(NotificationPayload):
    case_number: Optional[str] = None
    status: Optional[str] = None
    missing_person_name: Optional[str] = None
    age: Optional[str] = None
    gender: Optional[str] = None
    height: Optional[str] = None
    complexion: Optional[str] = None
    last_seen_date: Optional[str] = None
    last_seen_location: Optional[str] = None
    description: Optional[str] = None
    authority_name: Optional[str] = None


class MissingPersonUpdatePayload(NotificationPayload):
    case_number: Optional[str] = None
    missing_person_name: Optional[str] = None
    update_type: Optional[str] = None
    previous_status: Optional[str] = None
    new_status: Optional[str] = None
    comment: Optional[str] = None
    authority_name: Optional[str] = None


class MissingPersonReassignedPayload(NotificationPayload):
    case_number: Optional[str] = None
    missing_person_name: Optional[str] = None
    status: Optional[str] = None
    new_authority_name: Optional[str] = None
    previous_authority_name: Optional[str] = None


class GenericPayload(NotificationPayload):
    subject: Optional[str] = None
    message: Optional[str] = None


PAYLOAD_MODELS: Dict[TemplateName, Type[NotificationPayload]] = {
    TemplateName.FIR_FILED: FirFiledPayload,
    TemplateName.FIR_UPDATE: FirUpdatePayload,
    TemplateName.STATUS_UPDATE: StatusUpdatePayload,
    TemplateName.MISSING_PERSON_FILED: MissingPersonFiledPayload,
    TemplateName.MISSING_PERSON_UPDATE: MissingPersonUpdatePayload,
    TemplateName.MISSING_PERSON_REASSIGNED: MissingPersonReassignedPayload,
    TemplateName.GENERIC: GenericPayload,
}


def build_payload(
    template: TemplateName, data: Optional[Mapping[str, Any]]
) -> NotificationPayload:
    """Validate raw notification data into the template's payload model."""
    model = PAYLOAD_MODELS[template]
    if not isinstance(data, Mapping):
        data = {}
    # Only string keys can name a field
    return model.model_validate({k: v for k, v in data.items() if isinstance(k, str)})


def build_template_context(
    template: TemplateName,
    data: Optional[Mapping[str, Any]],
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Build the Jinja context for a template.

    Args:
        template: Resolved template
        data: Raw notification fields (camelCase or snake_case)
        now: Reference time used when ``timestamp`` is missing or unparseable

    Returns:
        Dictionary with every payload field (None when absent) plus
        ``formatted_timestamp`` and ``template``
    """
    payload = build_payload(template, data)
    context = payload.model_dump()
    context["formatted_timestamp"] = format_display_timestamp(payload.timestamp, now=now)
    context["template"] = template.value
    return context
