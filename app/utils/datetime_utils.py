"""
Datetime utilities.

Provides timezone-aware datetime functions. Calendar dates used by the
daily batches are always UTC dates.
"""

from datetime import UTC, date, datetime, time


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def utc_today() -> date:
    """Current UTC calendar date."""
    return utc_now().date()


def ensure_aware(value: datetime) -> datetime:
    """
    Attach UTC to naive datetimes.

    Some drivers (SQLite) return naive values for timezone-aware columns.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def start_of_day(value: date) -> datetime:
    """Midnight UTC at the start of the given date."""
    return datetime.combine(value, time.min, tzinfo=UTC)


def parse_date(value: str | date | datetime | None) -> date:
    """
    Coerce a run date argument to a date.

    Args:
        value: ISO date string, date, datetime or None (today)

    Returns:
        Calendar date
    """
    if value is None:
        return utc_today()
    if isinstance(value, datetime):
        return ensure_aware(value).astimezone(UTC).date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)
