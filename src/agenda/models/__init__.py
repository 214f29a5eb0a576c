"""
ORM models package.

Importing this package registers every table on Base.metadata.
"""

from agenda.models.base import Base, TimestampMixin
from agenda.models.enums import (
    AppointmentStatus,
    RecurrencePattern,
    RuleType,
    TimerState,
    Violation,
)
from agenda.models.user import User
from agenda.models.work_schedule import WorkSchedule, WorkScheduleRule
from agenda.models.appointment import Appointment

__all__ = [
    "Base",
    "TimestampMixin",
    "AppointmentStatus",
    "RecurrencePattern",
    "RuleType",
    "TimerState",
    "Violation",
    "User",
    "WorkSchedule",
    "WorkScheduleRule",
    "Appointment",
]
