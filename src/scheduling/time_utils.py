"""
Wall-clock time arithmetic.

Times are "HH:MM" strings with minute precision. Durations are hours as
floats. Nothing here wraps at midnight: 23:00 plus 3 hours is "26:00".
"""

import re
from decimal import Decimal, ROUND_HALF_UP
from typing import List

from src.models.errors import FormatError


TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):[0-5][0-9]$')

MINUTES_PER_HOUR = 60
MINUTES_PER_DAY = 24 * MINUTES_PER_HOUR


def round_half_up(value: float, places: int = 2) -> float:
    """
    Round half away from zero (2.675 -> 2.68, -0.125 -> -0.13).

    The built-in round() uses banker's rounding, which is not what
    the income figures are expected to show.
    """
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(repr(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def is_valid_time(time_str: object) -> bool:
    """Check a value is an "HH:MM" string with hour 0-23 and minute 0-59."""
    return isinstance(time_str, str) and bool(TIME_PATTERN.match(time_str))


def to_minutes(time_str: str) -> int:
    """
    Convert "HH:MM" to minutes since midnight.

    Args:
        time_str: Wall-clock time

    Returns:
        Minutes since midnight

    Raises:
        FormatError: If the string is not a valid HH:MM time

    Examples:
        >>> to_minutes("09:30")
        570
        >>> to_minutes("7:05")
        425
    """
    if not is_valid_time(time_str):
        raise FormatError(f"Invalid time format: {time_str!r} (expected HH:MM)")

    hours, minutes = time_str.split(":")
    return int(hours) * MINUTES_PER_HOUR + int(minutes)


def format_minutes(total_minutes: int) -> str:
    """Format minutes since midnight as zero-padded "HH:MM" (hours may exceed 23)."""
    hours, minutes = divmod(int(total_minutes), MINUTES_PER_HOUR)
    return f"{hours:02d}:{minutes:02d}"


def add_hours(time_str: str, hours: float) -> str:
    """
    Add a duration in hours to a wall-clock time.

    Examples:
        >>> add_hours("09:00", 1.5)
        '10:30'
        >>> add_hours("23:00", 3)
        '26:00'
    """
    return format_minutes(to_minutes(time_str) + round(hours * MINUTES_PER_HOUR))


def end_minutes(start_time: str, hours: float) -> int:
    """Minute offset at which a lesson of the given length ends."""
    return to_minutes(start_time) + round(hours * MINUTES_PER_HOUR)


def compute_duration_hours(start_time: str, end_time: str) -> float:
    """
    Hours between two times, clamped at zero and rounded to 2 places.

    Examples:
        >>> compute_duration_hours("09:00", "10:45")
        1.75
        >>> compute_duration_hours("10:00", "09:00")
        0.0
    """
    diff = max(0, to_minutes(end_time) - to_minutes(start_time))
    return round_half_up(diff / MINUTES_PER_HOUR)


def format_duration(hours: float) -> str:
    """
    Human readable duration.

    Examples:
        >>> format_duration(1.5)
        '1h 30m'
        >>> format_duration(0.75)
        '45m'
        >>> format_duration(2)
        '2h'
    """
    if hours <= 0:
        return "0h"

    total = round(hours * MINUTES_PER_HOUR)
    full_hours, minutes = divmod(total, MINUTES_PER_HOUR)

    if full_hours == 0:
        return f"{minutes}m"
    if minutes == 0:
        return f"{full_hours}h"
    return f"{full_hours}h {minutes}m"


def generate_time_options(
    interval: int = 15,
    start_hour: int = 6,
    end_hour: int = 22
) -> List[str]:
    """
    Build the list of selectable start times for a form.

    Arguments are clamped: interval to 1-60 minutes, hours to 0-23 with
    end_hour never before start_hour.

    Examples:
        >>> generate_time_options(30, 9, 10)
        ['09:00', '09:30', '10:00', '10:30']
    """
    interval = max(1, min(60, interval))
    start = max(0, min(23, start_hour))
    end = max(start, min(23, end_hour))

    options = []
    for hour in range(start, end + 1):
        for minute in range(0, MINUTES_PER_HOUR, interval):
            options.append(f"{hour:02d}:{minute:02d}")
    return options
