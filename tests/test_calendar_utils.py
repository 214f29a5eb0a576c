from datetime import date, timedelta

import pytest

from agenda.core.exceptions import ValidationException
from agenda.services.calendar_utils import (
    add_months,
    add_years,
    day_of_week,
    day_type,
    end_minutes,
    format_minutes,
    intervals_overlap,
    is_weekend,
    next_business_day,
    parse_block_end,
    parse_date,
    parse_time,
)


def test_day_of_week_matches_reference_calendar():
    current = date(1600, 1, 1)
    last = date(2400, 12, 31)
    while current <= last:
        # date.weekday() is Monday=0; ours is Sunday=0
        expected = (current.weekday() + 1) % 7
        assert day_of_week(current.year, current.month, current.day) == expected, current
        current += timedelta(days=3)


@pytest.mark.parametrize("year", [1900, 2000, 2024, 2025, 2100])
def test_day_of_week_around_leap_days(year):
    for day in (date(year, 2, 28), date(year, 3, 1), date(year, 12, 31), date(year, 1, 1)):
        assert day_of_week(day.year, day.month, day.day) == (day.weekday() + 1) % 7


def test_known_dates():
    assert day_of_week(2025, 8, 9) == 6
    assert day_of_week(2025, 8, 10) == 0
    assert day_of_week(2025, 8, 11) == 1


def test_weekend_labels():
    assert is_weekend(date(2025, 8, 9))
    assert day_type(date(2025, 8, 9)) == "SÁBADO"
    assert day_type(date(2025, 8, 10)) == "DOMINGO"
    assert day_type(date(2025, 8, 11)) is None


def test_next_business_day_skips_weekend():
    assert next_business_day(date(2025, 8, 8)) == date(2025, 8, 11)
    assert next_business_day(date(2025, 8, 9)) == date(2025, 8, 11)
    assert next_business_day(date(2025, 8, 11)) == date(2025, 8, 12)


def test_month_arithmetic_clamps_to_month_end():
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2025, 1, 31), 2) == date(2025, 3, 31)
    assert add_years(date(2024, 2, 29), 1) == date(2025, 2, 28)


@pytest.mark.parametrize("value", ["2025-8-9", "09/08/2025", "2025-02-30", "", "2025-13-01"])
def test_parse_date_rejects_malformed(value):
    with pytest.raises(ValidationException):
        parse_date(value)


@pytest.mark.parametrize("value", ["9:00", "24:00", "12:60", "noon", ""])
def test_parse_time_rejects_malformed(value):
    with pytest.raises(ValidationException):
        parse_time(value)


def test_time_conversions():
    assert parse_time("00:00") == 0
    assert parse_time("13:45") == 825
    assert parse_block_end("23:59") == 1440
    assert parse_block_end("18:00") == 1080
    assert format_minutes(780) == "13:00"
    assert format_minutes(1440) == "23:59"


def test_end_minutes_validates_duration():
    assert end_minutes(540, 60) == 600
    assert end_minutes(1380, 60) == 1440
    with pytest.raises(ValidationException):
        end_minutes(540, 0)
    with pytest.raises(ValidationException):
        end_minutes(540, -15)
    with pytest.raises(ValidationException):
        end_minutes(1410, 60)


def test_half_open_overlap():
    assert intervals_overlap(540, 600, 570, 630)
    assert not intervals_overlap(540, 600, 600, 660)
    assert not intervals_overlap(600, 660, 540, 600)
