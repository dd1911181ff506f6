from __future__ import annotations

from datetime import UTC, datetime


def now_utc() -> datetime:
    """Get current UTC time with timezone."""
    return datetime.now(UTC)


def to_utc(dt: datetime | None) -> datetime | None:
    """Convert datetime to UTC, handling naive datetimes."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def iso(dt: datetime | None) -> str | None:
    """Convert datetime to ISO format string."""
    if dt is None:
        return None
    return to_utc(dt).isoformat()


def elapsed_ms(start: datetime | None, end: datetime | None = None) -> float | None:
    """Milliseconds between two datetimes (end defaults to now)."""
    if start is None:
        return None
    end = end or now_utc()
    return (to_utc(end) - to_utc(start)).total_seconds() * 1000.0
