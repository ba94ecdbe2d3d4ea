"""Time-of-day helpers shared by the scheduling engine.

Times of day travel through the engine as ``HH:MM`` strings and are compared
as integer minutes since midnight. Intervals are half-open, so a session
ending at 10:00 does not collide with one starting at 10:00.
"""

import re
from datetime import date

TIME_PATTERN = re.compile(r'^([01]?[0-9]|2[0-3]):([0-5][0-9])$')

DAY_NAMES = (
    'MONDAY',
    'TUESDAY',
    'WEDNESDAY',
    'THURSDAY',
    'FRIDAY',
    'SATURDAY',
    'SUNDAY',
)


class MalformedTimeError(ValueError):
    """Raised when a time-of-day string is not a 24-hour HH:MM value."""


def time_to_minutes(value: str) -> int:
    if not isinstance(value, str):
        raise MalformedTimeError(f'Expected an HH:MM string, got {value!r}.')

    match = TIME_PATTERN.match(value.strip())
    if match is None:
        raise MalformedTimeError(f'Invalid time format (HH:MM): {value!r}.')

    hours, minutes = match.groups()
    return int(hours) * 60 + int(minutes)


def minutes_to_time(minutes: int) -> str:
    # End bounds may reach past midnight (e.g. 24:00), start times never do.
    if minutes < 0:
        raise MalformedTimeError(f'{minutes} minutes is before midnight.')

    hours, mins = divmod(minutes, 60)
    return f'{hours:02d}:{mins:02d}'


def normalize_time(value: str) -> str:
    """Return ``value`` zero-padded, e.g. ``9:05`` becomes ``09:05``."""
    return minutes_to_time(time_to_minutes(value))


def intervals_overlap(a_start: int, a_end: int, b_start: int, b_end: int) -> bool:
    return a_start < b_end and a_end > b_start


def day_of_week(value: date) -> str:
    return DAY_NAMES[value.weekday()]


def slot_key(start_time: str, end_time: str) -> str:
    return f'{start_time}-{end_time}'
