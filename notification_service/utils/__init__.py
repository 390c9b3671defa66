"""Utility functions for time handling."""

from .timestamps import (
    IST,
    ensure_utc,
    epoch_millis,
    format_display_timestamp,
    format_timestamp,
    parse_iso_datetime,
    parse_timestamp,
    utc_now,
)

__all__ = [
    "IST",
    "utc_now",
    "ensure_utc",
    "parse_iso_datetime",
    "parse_timestamp",
    "format_display_timestamp",
    "format_timestamp",
    "epoch_millis",
]
