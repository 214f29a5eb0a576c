"""
Calendar and time-of-day helpers.

Dates travel as ``YYYY-MM-DD`` strings and times as ``HH:MM`` (24h). The
weekday is always derived from the (year, month, day) integers with a pure
arithmetic algorithm so no timezone conversion can shift the date.

Weekday numbering: 0=Sunday .. 6=Saturday.
"""

import re
from datetime import date, timedelta
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from agenda.core.exceptions import ValidationException

SUNDAY = 0
SATURDAY = 6
MINUTES_PER_DAY = 24 * 60

# "23:59" as a block end means the block runs until midnight
END_OF_DAY = "23:59"

DAY_TYPE_LABELS = {
    SATURDAY: "SÁBADO",
    SUNDAY: "DOMINGO",
}

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

_DATE_RE = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

# Sakamoto's month offsets
_MONTH_OFFSETS = [0, 3, 2, 5, 0, 3, 5, 1, 4, 6, 2, 4]


def day_of_week(year: int, month: int, day: int) -> int:
    """
    Weekday of a proleptic Gregorian date, 0=Sunday .. 6=Saturday.

    Args:
        year: Four digit year
        month: 1..12
        day: 1..31

    Returns:
        Weekday index
    """
    if month < 3:
        year -= 1
    return (year + year // 4 - year // 100 + year // 400 + _MONTH_OFFSETS[month - 1] + day) % 7


def weekday_of(value: date) -> int:
    return day_of_week(value.year, value.month, value.day)


def is_weekend(value: date) -> bool:
    return weekday_of(value) in (SATURDAY, SUNDAY)


def day_type(value: date) -> Optional[str]:
    """Portuguese weekend label ("SÁBADO" / "DOMINGO"), None on weekdays."""
    return DAY_TYPE_LABELS.get(weekday_of(value))


def next_business_day(value: date) -> date:
    """First Monday..Friday strictly after the given date."""
    candidate = value + timedelta(days=1)
    while is_weekend(candidate):
        candidate += timedelta(days=1)
    return candidate


def add_months(value: date, months: int) -> date:
    """Add calendar months, clamping to the last day of shorter months."""
    return value + relativedelta(months=months)


def add_years(value: date, years: int) -> date:
    """Add years; 29 February clamps to 28 February in common years."""
    return value + relativedelta(years=years)


def parse_date(value: Union[str, date], field: str = "date") -> date:
    """
    Parse a strict ``YYYY-MM-DD`` date.

    Args:
        value: Date string (date objects are returned unchanged)
        field: Field name reported on failure

    Returns:
        The calendar date

    Raises:
        ValidationException: If the value is not a real calendar date
    """
    if isinstance(value, date):
        return value
    match = _DATE_RE.match(value or "")
    if not match:
        raise ValidationException(f"Invalid {field} '{value}': expected YYYY-MM-DD", field=field)
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError as e:
        raise ValidationException(f"Invalid {field} '{value}': {e}", field=field) from e


def parse_time(value: str, field: str = "start_time") -> int:
    """
    Parse a strict ``HH:MM`` 24h time into minutes since midnight.

    Raises:
        ValidationException: If the value is malformed
    """
    match = _TIME_RE.match(value or "")
    if not match:
        raise ValidationException(f"Invalid {field} '{value}': expected HH:MM", field=field)
    return int(match.group(1)) * 60 + int(match.group(2))


def parse_block_end(value: str, field: str = "end_time") -> int:
    """Parse a block end time; "23:59" maps to midnight (1440)."""
    if value == END_OF_DAY:
        return MINUTES_PER_DAY
    return parse_time(value, field)


def format_minutes(minutes: int) -> str:
    """
    Format minutes since midnight as ``HH:MM``.

    Midnight at the end of the day (1440) is rendered as "23:59", the same
    convention used for block ends.
    """
    if minutes >= MINUTES_PER_DAY:
        return END_OF_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def end_minutes(start_minutes: int, duration_minutes: int) -> int:
    """
    End of ``[start, start + duration)``, which must not pass midnight.

    Raises:
        ValidationException: If the duration is not positive or the
            interval runs into the next day
    """
    if isinstance(duration_minutes, bool) or not isinstance(duration_minutes, int) or duration_minutes <= 0:
        raise ValidationException("duration_minutes must be a positive integer", field="duration_minutes")
    end = start_minutes + duration_minutes
    if end > MINUTES_PER_DAY:
        raise ValidationException(
            "Appointment must end by midnight of its own date",
            field="duration_minutes",
            details={"start_minutes": start_minutes, "duration_minutes": duration_minutes},
        )
    return end


def intervals_overlap(start1: int, end1: int, start2: int, end2: int) -> bool:
    """Half-open overlap: touching endpoints do not overlap."""
    return start1 < end2 and end1 > start2
