# barber_booking/timeutils.py

import re
from datetime import date, datetime

from .errors import FormatError

MINUTES_PER_DAY = 24 * 60

_TIME_24 = re.compile(r"^(\d{1,2}):(\d{2})$")
_TIME_12 = re.compile(r"^(\d{1,2}):(\d{2})\s*([AaPp][Mm])$")


def time_to_minutes(time: str) -> int:
    """Parse ``HH:MM`` (24-hour) into minutes since midnight."""
    if not isinstance(time, str):
        raise FormatError(f"Time must be a string, got {type(time).__name__}")
    match = _TIME_24.match(time.strip())
    if match is None:
        raise FormatError(f"Invalid time {time!r}, expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise FormatError(f"Invalid time {time!r}, out of range")
    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    # no wraparound: an end time past midnight belongs to another day
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise FormatError(f"{minutes} minutes is outside a single day")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def add_minutes(time: str, delta: int) -> str:
    return minutes_to_time(time_to_minutes(time) + delta)


def to_12_hour(time24: str) -> str:
    total = time_to_minutes(time24)
    hours, minutes = divmod(total, 60)
    period = "PM" if hours >= 12 else "AM"
    if hours == 0:
        hours = 12
    elif hours > 12:
        hours -= 12
    return f"{hours:02d}:{minutes:02d} {period}"


def to_24_hour(time12: str) -> str:
    if not isinstance(time12, str):
        raise FormatError(f"Time must be a string, got {type(time12).__name__}")
    match = _TIME_12.match(time12.strip())
    if match is None:
        raise FormatError(f"Invalid time {time12!r}, expected HH:MM AM|PM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    period = match.group(3).upper()
    if not 1 <= hours <= 12 or minutes > 59:
        raise FormatError(f"Invalid time {time12!r}, out of range")

    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0
    return f"{hours:02d}:{minutes:02d}"


def is_12_hour(value: str) -> bool:
    upper = value.upper()
    return "AM" in upper or "PM" in upper


def normalize_time(value: str) -> str:
    """Return the canonical 24-hour ``HH:MM`` form of a 12h or 24h time."""
    if isinstance(value, str) and is_12_hour(value):
        return to_24_hour(value)
    return minutes_to_time(time_to_minutes(value))


def day_of_week(on_date: date) -> int:
    # 0 = Sunday ... 6 = Saturday
    return on_date.isoweekday() % 7


def calendar_day(value) -> date:
    """Reduce a date, datetime or ISO string to its y/m/d calendar day."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip()).date()
        except ValueError:
            raise FormatError(f"Invalid date {value!r}")
    raise FormatError(f"Cannot interpret {value!r} as a date")
