"""
Calendar date helpers.

Pure functions used by the aggregator windows, the validator and the
calendar view. Dates are datetime.date; strings are ISO "YYYY-MM-DD".
"""

from datetime import date, datetime, timedelta
from typing import List, Union

from src.models.errors import FormatError
from src.scheduling.time_utils import to_minutes


CALENDAR_DAYS = 42  # 6 full weeks

DateLike = Union[date, str]


def parse_date(date_str: str) -> date:
    """
    Parse an ISO "YYYY-MM-DD" string.

    Raises:
        FormatError: If the string is not a valid calendar date
    """
    if not isinstance(date_str, str):
        raise FormatError(f"Invalid date: {date_str!r} (expected YYYY-MM-DD)")
    try:
        return datetime.strptime(date_str.strip(), "%Y-%m-%d").date()
    except ValueError as e:
        raise FormatError(f"Invalid date: {date_str!r} (expected YYYY-MM-DD)") from e


def to_date(value: DateLike) -> date:
    """Accept a date, a datetime or an ISO string and return a date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return parse_date(value)


def format_iso_date(value: date) -> str:
    return value.strftime("%Y-%m-%d")


def format_date(value: date, today: date = None) -> str:
    """
    Short display label: "Today", "Yesterday", "Tomorrow" or "MM-DD".
    """
    today = today or date.today()
    delta = (value - today).days
    if delta == 0:
        return "Today"
    if delta == -1:
        return "Yesterday"
    if delta == 1:
        return "Tomorrow"
    return value.strftime("%m-%d")


def combine_date_time(day: DateLike, time_str: str) -> datetime:
    """Join a date and an "HH:MM" time into a naive datetime."""
    minutes = to_minutes(time_str)
    return datetime.combine(to_date(day), datetime.min.time()) + timedelta(minutes=minutes)


def shift_years(value: date, years: int) -> date:
    """Same month/day `years` away; Feb 29 falls back to Feb 28."""
    try:
        return value.replace(year=value.year + years)
    except ValueError:
        return value.replace(year=value.year + years, day=28)


def is_same_day(first: date, second: date) -> bool:
    return (first.year, first.month, first.day) == (second.year, second.month, second.day)


def is_same_month(first: date, second: date) -> bool:
    return (first.year, first.month) == (second.year, second.month)


def is_same_year(first: date, second: date) -> bool:
    return first.year == second.year


def month_bounds(year: int, month: int) -> tuple:
    """First and last day of a calendar month."""
    first = date(year, month, 1)
    if month == 12:
        next_first = date(year + 1, 1, 1)
    else:
        next_first = date(year, month + 1, 1)
    return first, next_first - timedelta(days=1)


def generate_calendar_days(month: date) -> List[date]:
    """
    Dates for a month view: 42 consecutive days (6 weeks) starting on
    the Sunday on or before the 1st of the month.

    Examples:
        >>> days = generate_calendar_days(date(2024, 5, 15))
        >>> days[0], days[-1]
        (datetime.date(2024, 4, 28), datetime.date(2024, 6, 8))
    """
    first = month.replace(day=1)
    # date.weekday(): Monday=0 ... Sunday=6
    offset = (first.weekday() + 1) % 7
    start = first - timedelta(days=offset)
    return [start + timedelta(days=i) for i in range(CALENDAR_DAYS)]
