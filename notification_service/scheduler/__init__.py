"""Scheduling module for the periodic retry-queue sweep."""

from .service import RetrySweeper

__all__ = [
    "RetrySweeper",
]
