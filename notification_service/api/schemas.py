"""Request bodies for the notification HTTP API.

Calling services send loosely-typed JSON, so the models accept camelCase
names, ignore unknown fields and coerce scalar values to text rather than
rejecting them.
"""

from typing import Any, Dict, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel


class _LenientBody(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    @field_validator("*", mode="before")
    @classmethod
    def coerce_scalars(cls, value: Any, info) -> Any:
        if info.field_name in ("timestamp", "data") or value is None:
            return value
        if isinstance(value, (dict, list)):
            return value
        text = value.strip() if isinstance(value, str) else str(value)
        return text or None


class NotifyRequest(_LenientBody):
    """Body of ``POST /api/notify``: every field a notification may carry."""

    user_id: Optional[str] = None
    email: Optional[str] = None
    template: Optional[str] = None

    subject: Optional[str] = None
    message: Optional[str] = None

    # FIR fields
    fir_number: Optional[str] = None
    reference: Optional[str] = None
    update_type: Optional[str] = None
    new_status: Optional[str] = None
    previous_status: Optional[str] = None
    authority_id: Optional[str] = None
    authority_name: Optional[str] = None
    comment: Optional[str] = None

    # Missing-person fields
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
    new_authority_name: Optional[str] = None
    previous_authority_name: Optional[str] = None

    timestamp: Optional[Union[int, float, str]] = None

    @property
    def recipient(self) -> str:
        """Explicit email, else a placeholder address derived from userId."""
        return self.email or f"user{self.user_id or ''}@example.com"

    def notification_data(self, now_millis: int) -> Dict[str, Any]:
        """Fields handed to the template, keyed by their camelCase names."""
        data = self.model_dump(by_alias=True, exclude={"user_id", "email", "template"})
        data["firNumber"] = self.fir_number or self.reference
        if self.timestamp in (None, ""):
            data["timestamp"] = now_millis
        return data


class SendRequest(_LenientBody):
    """Body of ``POST /api/send``."""

    to: Optional[str] = None
    template: Optional[str] = None
    data: Optional[Dict[str, Any]] = None
