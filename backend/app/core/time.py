"""Time utilities for timezone-aware UTC datetimes and calendar dates."""

from datetime import UTC, date, datetime, timedelta


def utc_now() -> datetime:
    """Return a timezone-aware UTC datetime for defaults and onupdate hooks."""
    return datetime.now(UTC)


def utc_today() -> date:
    return utc_now().date()


def parse_date(value) -> date | None:
    """Coerce a date, datetime or ISO string to a date; None when it cannot be read."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        return None


def add_days(value, days: int) -> date:
    """Shift a date by whole days, falling back to today for unreadable input."""
    base = parse_date(value) or utc_today()
    return base + timedelta(days=int(days or 0))
