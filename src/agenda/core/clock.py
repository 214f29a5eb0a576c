"""
Clock abstraction.

Every "what time is it" question in the services goes through a Clock so
tests can pin the current instant. Clocks return timezone-aware datetimes.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from agenda.core.exceptions import ValidationException


def get_zone(tz_name: str) -> ZoneInfo:
    """Resolve an IANA zone name, raising ValidationException if unknown."""
    try:
        return ZoneInfo(tz_name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationException(f"Unknown timezone: {tz_name}", field="timezone") from e


class Clock(ABC):
    """Base clock. Subclasses implement utcnow()."""

    @abstractmethod
    def utcnow(self) -> datetime:
        """Current instant as an aware UTC datetime."""

    def now(self, tz_name: Optional[str] = None) -> datetime:
        """Current instant, converted to the given IANA zone (UTC if omitted)."""
        current = self.utcnow()
        if tz_name:
            return current.astimezone(get_zone(tz_name))
        return current

    def today(self, tz_name: Optional[str] = None) -> date:
        return self.now(tz_name).date()


class SystemClock(Clock):
    """Wall clock."""

    def utcnow(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """
    Clock pinned to a given instant.

    Naive datetimes are interpreted as UTC. The instant can be moved with
    set() or advance() to simulate elapsed time.
    """

    def __init__(self, instant: datetime):
        self.set(instant)

    def set(self, instant: datetime) -> None:
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=timezone.utc)
        self._instant = instant.astimezone(timezone.utc)

    def advance(self, **delta) -> None:
        self._instant = self._instant + timedelta(**delta)

    def utcnow(self) -> datetime:
        return self._instant
