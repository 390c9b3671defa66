"""Timestamp utilities for UTC handling, parsing and display formatting.

Notification payloads carry timestamps in whatever shape the calling
service produced: epoch milliseconds (JavaScript ``Date.now()``), epoch
seconds, or ISO 8601 strings. Everything is normalised to timezone-aware
UTC here and rendered for citizens in Indian Standard Time.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

# Asia/Kolkata has had a fixed +05:30 offset since 1945
IST = timezone(timedelta(hours=5, minutes=30), "IST")

# Epoch values above this are treated as milliseconds (year ~5138 in seconds)
_EPOCH_MILLIS_THRESHOLD = 100_000_000_000


def utc_now() -> datetime:
    """Get current UTC time as timezone-aware datetime.

    Example:
        >>> utc_now().tzinfo == timezone.utc
        True
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """Ensure a datetime is timezone-aware and in UTC.

    Naive datetimes are treated as UTC; aware ones are converted.
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def parse_iso_datetime(iso_string: str) -> Optional[datetime]:
    """Parse an ISO 8601 datetime string to UTC datetime.

    Supports ``2025-11-04T12:00:00Z``, ``2025-11-04T12:00:00+05:30``,
    ``2025-11-04T12:00:00`` and ``2025-11-04``.

    Returns:
        Timezone-aware datetime in UTC, or None if parsing fails
    """
    if not iso_string or not iso_string.strip():
        return None

    cleaned = iso_string.strip()
    if cleaned.endswith("Z"):
        cleaned = cleaned[:-1] + "+00:00"

    try:
        return ensure_utc(datetime.fromisoformat(cleaned))
    except (ValueError, OverflowError):
        # Offsets can push dates near year 1 or 9999 outside the datetime range
        return None


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Interpret a payload timestamp of unknown shape.

    Args:
        value: datetime, epoch milliseconds/seconds (int, float or digit
            string) or an ISO 8601 string

    Returns:
        Timezone-aware UTC datetime, or None when the value is missing or
        cannot be interpreted
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, datetime):
        try:
            return ensure_utc(value)
        except OverflowError:
            return None

    if isinstance(value, str):
        stripped = value.strip()
        try:
            value = float(stripped)
        except ValueError:
            return parse_iso_datetime(stripped)

    if isinstance(value, (int, float)):
        seconds = value / 1000 if abs(value) >= _EPOCH_MILLIS_THRESHOLD else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    return None


def format_display_timestamp(value: Any, now: Optional[datetime] = None) -> str:
    """Format a payload timestamp for an email body, in IST.

    Output mirrors the en-IN locale, e.g. ``18/10/2026, 2:35:10 pm``.
    Missing or unparseable values fall back to ``now`` (default: current time).
    """
    fallback = ensure_utc(now) or utc_now()
    dt = parse_timestamp(value) or fallback
    try:
        local = dt.astimezone(IST)
    except OverflowError:
        local = fallback.astimezone(IST)
    hour = local.hour % 12 or 12
    meridiem = "am" if local.hour < 12 else "pm"
    return f"{local:%d/%m/%Y}, {hour}:{local:%M:%S} {meridiem}"


def format_timestamp(dt: datetime, include_microseconds: bool = False) -> str:
    """Format a datetime as ISO 8601 UTC with millisecond precision and a 'Z' suffix.

    Example:
        >>> format_timestamp(datetime(2025, 11, 4, 12, 0, 0, tzinfo=timezone.utc))
        '2025-11-04T12:00:00.000Z'
    """
    dt_utc = ensure_utc(dt)
    if dt_utc is None:
        return ""

    if include_microseconds:
        return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.%fZ")
    return dt_utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt_utc.microsecond // 1000:03d}Z"


def epoch_millis(dt: Optional[datetime] = None) -> int:
    """Milliseconds since the Unix epoch for dt (default: now)."""
    dt_utc = ensure_utc(dt) or utc_now()
    return int(dt_utc.timestamp() * 1000)
