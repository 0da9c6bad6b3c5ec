"""Utilities for datetime handling."""

from datetime import UTC, datetime


def now_utc() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(UTC)


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse an optional API timestamp; naive values are taken as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt


def relative_due(due: datetime, now: datetime | None = None) -> str:
    """Short due-date label: today, tomorrow, in 3d, 2d late, or a date."""
    now = now or now_utc()
    days = (due.date() - now.date()).days
    if days == 0:
        return "today"
    if days == 1:
        return "tomorrow"
    if 1 < days <= 14:
        return f"in {days}d"
    if -14 <= days < 0:
        return f"{-days}d late"
    return due.strftime("%d %b")
