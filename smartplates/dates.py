"""
Calendar date helpers shared by the models and the calendar reconciler.

Dates are compared as "YYYY-MM-DD" keys rather than timestamps so that a
meal stored at 23:00 UTC and a grid cell built at local midnight land on
the same calendar day.
"""

from datetime import date, datetime, timedelta
from typing import Union

DateLike = Union[date, datetime, str]


def to_date(value: DateLike) -> date:
    """
    Coerce a date-like value to a calendar date.

    Args:
        value: date, datetime, or ISO string ("2025-10-20" or
            "2025-10-20T18:30:00", optionally with offset or "Z")

    Returns:
        The calendar date. Aware datetimes are converted to local time first.

    Raises:
        ValueError: If a string is not ISO formatted
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    if len(text) == 10:
        return date.fromisoformat(text)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return to_date(datetime.fromisoformat(text))


def to_calendar_date_key(value: DateLike) -> str:
    """Return the "YYYY-MM-DD" key for a date-like value."""
    return to_date(value).isoformat()


def week_start(value: DateLike) -> date:
    """Return the Monday of the week containing `value`."""
    day = to_date(value)
    return day - timedelta(days=day.weekday())
