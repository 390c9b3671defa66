"""Duration parsing utilities for retry timing configuration."""

import re

_ISO8601_PATTERN = re.compile(
    r"^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+(?:\.\d+)?)S)?)?$"
)
_HUMAN_PATTERN = re.compile(r"(\d+)\s*([smhd])")
_UNIT_SECONDS = {"s": 1, "m": 60, "h": 3600, "d": 86400}


class DurationParseError(ValueError):
    """Raised when a duration string cannot be parsed."""

    pass


def parse_duration(duration_str: str) -> int:
    """
    Parse a duration string to whole seconds.

    Accepts human-readable values ("5s", "10s", "1m30s") and ISO-8601
    durations ("PT5S", "PT1M30S").

    Raises:
        DurationParseError: If the duration string is invalid or zero

    Examples:
        >>> parse_duration("5s")
        5
        >>> parse_duration("PT10S")
        10
        >>> parse_duration("1m30s")
        90
    """
    if not isinstance(duration_str, str):
        raise DurationParseError(f"Duration must be a string, got: {duration_str!r}")

    cleaned = duration_str.strip()
    if not cleaned:
        raise DurationParseError("Duration string cannot be empty")

    if cleaned.upper().startswith("P"):
        total = _parse_iso8601(cleaned.upper())
    else:
        total = _parse_human_readable(cleaned.lower())

    if total == 0:
        raise DurationParseError(f"Duration cannot be zero: '{duration_str}'")
    return total


def _parse_iso8601(value: str) -> int:
    match = _ISO8601_PATTERN.match(value)
    if not match:
        raise DurationParseError(
            f"Invalid ISO-8601 duration format: '{value}'. "
            "Expected format like 'PT5S', 'PT1M30S' or 'P1D'"
        )

    days, hours, minutes, seconds = match.groups()
    return (
        int(days or 0) * _UNIT_SECONDS["d"]
        + int(hours or 0) * _UNIT_SECONDS["h"]
        + int(minutes or 0) * _UNIT_SECONDS["m"]
        + int(float(seconds or 0))
    )


def _parse_human_readable(value: str) -> int:
    matches = _HUMAN_PATTERN.findall(value)
    if not matches:
        raise DurationParseError(
            f"Invalid duration format: '{value}'. "
            "Expected format like '5s', '10s', '1m' or combinations like '1m30s'"
        )

    # Every character must belong to a number+unit pair
    parsed = "".join(f"{num}{unit}" for num, unit in matches)
    if parsed != re.sub(r"\s+", "", value):
        raise DurationParseError(
            f"Invalid characters in duration: '{value}'. "
            "Use only digits and units: s (seconds), m (minutes), h (hours), d (days)"
        )

    return sum(int(num) * _UNIT_SECONDS[unit] for num, unit in matches)


def validate_duration_range(
    duration_seconds: int,
    min_seconds: int = 1,
    max_seconds: int = 3600,
) -> None:
    """
    Validate that a duration is within an acceptable range.

    Raises:
        DurationParseError: If duration is outside the valid range
    """
    if duration_seconds < min_seconds:
        raise DurationParseError(
            f"Duration too short: {duration_seconds}s. Minimum is {min_seconds}s."
        )
    if duration_seconds > max_seconds:
        raise DurationParseError(
            f"Duration too long: {duration_seconds}s. Maximum is {max_seconds}s."
        )
