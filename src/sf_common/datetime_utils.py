"""UTC datetime utilities."""

from datetime import date, datetime, time, timezone


def utc_now() -> datetime:
    """Return timezone-aware UTC now."""
    return datetime.now(timezone.utc)


def start_of_day(day: date) -> datetime:
    """00:00:00 UTC of the given calendar day."""
    return datetime.combine(day, time(0, 0, 0), tzinfo=timezone.utc)


def end_of_day(day: date) -> datetime:
    """23:59:59 UTC of the given calendar day (inclusive upper bound)."""
    return datetime.combine(day, time(23, 59, 59), tzinfo=timezone.utc)
