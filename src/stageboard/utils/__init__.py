"""Utility functions."""

from .datetime import now_utc, parse_datetime, relative_due

__all__ = [
    "now_utc",
    "parse_datetime",
    "relative_due",
]
