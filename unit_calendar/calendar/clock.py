"""Calendar date and time-of-day helpers.

Schedules are stored as plain strings: dates as YYYY-MM-DD and times as
HH:MM (24 hour). Zero-padded strings in these formats sort the same way the
values do, so callers may compare them directly.

Weeks start on Sunday.
"""

from __future__ import annotations

from datetime import date, datetime, time, timedelta
from zoneinfo import ZoneInfo

from unit_calendar.config.settings import settings

DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%H:%M"

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]


def now_local(tz_name: str | None = None) -> datetime:
    """Current wall-clock time in the calendar timezone."""
    return datetime.now(ZoneInfo(tz_name or settings.calendar_timezone))


def format_date(value: datetime | date) -> str:
    """Format a date or datetime as YYYY-MM-DD."""
    return value.strftime(DATE_FORMAT)


def format_time(value: datetime | time) -> str:
    """Format a datetime or time as HH:MM."""
    return value.strftime(TIME_FORMAT)


def parse_date(value: str) -> date:
    """Parse a YYYY-MM-DD string.

    Raises:
        ValueError: If the string is not a valid calendar date
    """
    return datetime.strptime(value, DATE_FORMAT).date()


def parse_time(value: str) -> time:
    """Parse an HH:MM string.

    Raises:
        ValueError: If the string is not a valid 24 hour time
    """
    return datetime.strptime(value, TIME_FORMAT).time()


def is_valid_time(value: str) -> bool:
    if len(value) != 5:
        return False
    try:
        parse_time(value)
    except ValueError:
        return False
    return True


def is_valid_date(value: str) -> bool:
    if len(value) != 10:
        return False
    try:
        parse_date(value)
    except ValueError:
        return False
    return True


def combine(date_str: str, time_str: str) -> datetime:
    """Combine YYYY-MM-DD and HH:MM strings into a naive datetime."""
    return datetime.combine(parse_date(date_str), parse_time(time_str))


def add_days(value: date, days: int) -> date:
    return value + timedelta(days=days)


def start_of_week(value: date) -> date:
    """Return the Sunday that starts the week containing value."""
    # date.weekday() is Monday=0 .. Sunday=6
    days_since_sunday = (value.weekday() + 1) % 7
    return value - timedelta(days=days_since_sunday)


def day_name(day_of_week: int) -> str:
    """Name of a Sunday-first weekday index, "Unknown" when out of range."""
    if 0 <= day_of_week < len(DAY_NAMES):
        return DAY_NAMES[day_of_week]
    return "Unknown"
