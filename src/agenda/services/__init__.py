"""
Service layer.

Scheduling engine (rules, validator, conflict detector, scheduler,
recurrence expander) and the supporting timer service.
"""

from agenda.services.work_schedule_rules import WorkScheduleRules, ResolvedSchedule, RuleBlock
from agenda.services.work_schedule_validator import WorkScheduleValidator, ValidationResult
from agenda.services.conflict_detector import ConflictDetector, find_conflicts
from agenda.services.appointment_scheduler import (
    AppointmentScheduler,
    Accepted,
    ConfirmationRequired,
    Rejected,
)
from agenda.services.recurrence_expander import RecurringAppointmentService, expand
from agenda.services.timer_service import TimerService

__all__ = [
    "WorkScheduleRules",
    "ResolvedSchedule",
    "RuleBlock",
    "WorkScheduleValidator",
    "ValidationResult",
    "ConflictDetector",
    "find_conflicts",
    "AppointmentScheduler",
    "Accepted",
    "ConfirmationRequired",
    "Rejected",
    "RecurringAppointmentService",
    "expand",
    "TimerService",
]
