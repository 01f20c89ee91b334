"""Calendar Days - Pure helpers for local calendar-day arithmetic.

Every comparison in the core happens on local calendar days, so timestamps
are reduced here before anything else looks at them.
"""

from datetime import date, datetime, time, timedelta

# Weekday numbering used by weekly cadences: 1=Sunday .. 7=Saturday
SUNDAY = 1
MONDAY = 2
TUESDAY = 3
WEDNESDAY = 4
THURSDAY = 5
FRIDAY = 6
SATURDAY = 7


def to_local_day(value: date | datetime) -> date:
    """Reduce a date or timestamp to its calendar day in the host timezone.

    Aware datetimes are converted to local time first so that a UTC
    timestamp late in the evening lands on the same day the user saw.

    Args:
        value: A date, naive datetime (assumed local) or aware datetime

    Returns:
        The local calendar day
    """
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone()
        return value.date()
    return value


def start_of_day(value: date | datetime) -> datetime:
    """Return local midnight of the day containing ``value``."""
    return datetime.combine(to_local_day(value), time.min)


def weekday_number(value: date | datetime) -> int:
    """Weekday number of a day, 1=Sunday .. 7=Saturday."""
    return to_local_day(value).isoweekday() % 7 + 1


def days_between(start: date, end: date) -> int:
    """Whole calendar days from ``start`` to ``end`` (negative if end is earlier)."""
    return (to_local_day(end) - to_local_day(start)).days


def previous_day(day: date) -> date:
    """The calendar day before ``day``."""
    return day - timedelta(days=1)
