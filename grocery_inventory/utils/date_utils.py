# grocery_inventory/utils/date_utils.py
from datetime import date, datetime, timedelta
from typing import Optional, Union

DateLike = Union[date, datetime, str]


def convert_to_date(value: Optional[DateLike]) -> Optional[date]:
    """Convert a date, datetime or ISO string to a date.

    Datetimes are truncated to their calendar date (local midnight).

    Args:
        value: Value to convert

    Returns:
        Date object, or None for None/empty input
    """
    if value is None or value == '':
        return None

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            raise ValueError(f"Invalid date string: {value}")

    raise ValueError(f"Cannot convert {type(value).__name__} to date")


def days_between(start: DateLike, end: DateLike) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative when end is earlier)."""
    return (convert_to_date(end) - convert_to_date(start)).days


def today() -> date:
    """Local calendar date; only called at the service edge, never in core."""
    return date.today()


def lookback_start(reference: DateLike, days: int) -> date:
    """First day of a ``days``-long window ending on ``reference`` (inclusive)."""
    return convert_to_date(reference) - timedelta(days=max(days, 1) - 1)


def date_range(start: DateLike, end: DateLike):
    """Yield each date from start to end inclusive."""
    current = convert_to_date(start)
    last = convert_to_date(end)
    while current <= last:
        yield current
        current += timedelta(days=1)
