from datetime import date, datetime, timezone

import pytest

from agenda.core.clock import Clock, FixedClock, SystemClock
from agenda.core.exceptions import ValidationException


def test_base_clock_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Clock()


def test_fixed_clock_converts_to_local_zone():
    clock = FixedClock(datetime(2025, 8, 8, 2, 30))

    assert clock.utcnow().tzinfo == timezone.utc
    # 02:30 UTC is still Thursday evening in Sao Paulo
    assert clock.today("America/Sao_Paulo") == date(2025, 8, 7)
    assert clock.today() == date(2025, 8, 8)


def test_fixed_clock_advance():
    clock = FixedClock(datetime(2025, 8, 8, 15, 0, tzinfo=timezone.utc))
    clock.advance(minutes=25)

    assert clock.now().minute == 25


def test_system_clock_is_aware():
    assert SystemClock().utcnow().tzinfo is not None


def test_unknown_zone_raises():
    with pytest.raises(ValidationException):
        FixedClock(datetime(2025, 8, 8)).now("Mars/Olympus")
