"""
Work schedule validation.

Classifies a proposed (date, start, duration) against the weekend policy
and the user's weekly rule blocks:

- pomodoro sessions are always valid
- Saturday/Sunday is a ``weekend`` violation; valid only with an explicit
  override, in which case the appointment is overtime
- every rule block overlapping ``[start, end)`` is considered, and time not
  covered by any block counts as unavailable; the most restrictive block wins
- a weekday without any rule is ``outside_hours`` but overridable
"""

from dataclasses import dataclass, asdict
from datetime import date
from typing import List, Optional, Union, Dict, Any

from agenda.models.enums import RuleType, Violation
from agenda.services.base_service import BaseService
from agenda.services.calendar_utils import (
    DAY_NAMES,
    day_type,
    end_minutes,
    format_minutes,
    next_business_day,
    parse_date,
    parse_time,
    weekday_of,
    SATURDAY,
    SUNDAY,
)
from agenda.services.work_schedule_rules import RuleBlock, WorkScheduleRules


@dataclass
class ValidationResult:
    """Verdict of the work schedule validator."""

    is_valid: bool
    is_within_work_hours: bool
    is_overtime: bool
    violation: Optional[str]
    message: str
    suggested_time: Optional[str] = None
    suggested_date: Optional[str] = None
    day_type: Optional[str] = None
    overridable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _violation_for(block: Optional[RuleBlock]) -> str:
    if block is not None and block.rule_type == RuleType.LUNCH.value:
        return Violation.LUNCH_BREAK.value
    return Violation.OUTSIDE_HOURS.value


def find_blocking_segment(blocks: List[RuleBlock], start: int, end: int):
    """
    Earliest hard-blocked part of ``[start, end)``.

    A hard block is a non-working rule without overlap permission, or time
    not covered by any rule.

    Args:
        blocks: The day's blocks, sorted by start
        start: Interval start in minutes
        end: Interval end in minutes

    Returns:
        (found, block) where block is the offending rule, or None when the
        offending time is not covered by any rule
    """
    overlapping = [b for b in blocks if b.start < end and b.end > start]
    hard = next((b for b in overlapping if b.is_hard_block), None)

    gap_at = None
    cursor = start
    for block in overlapping:
        if block.start > cursor:
            gap_at = cursor
            break
        cursor = max(cursor, block.end)
    if gap_at is None and cursor < end:
        gap_at = cursor

    if hard is not None and (gap_at is None or max(hard.start, start) <= gap_at):
        return True, hard
    if gap_at is not None:
        return True, None
    return False, None


def suggest_start(blocks: List[RuleBlock], start: int) -> Optional[str]:
    """Start of the first working block that begins after the requested start."""
    for block in blocks:
        if block.is_working_time and block.start > start:
            return block.start_time
    return None


class WorkScheduleValidator(BaseService):
    """Evaluates appointments against business hours and the weekend policy."""

    def __init__(self, rules: WorkScheduleRules):
        super().__init__(rules.uow, rules.clock, service_name="WORK_SCHEDULE_VALIDATOR")
        self.rules = rules

    def validate(
        self,
        user_id: Optional[int],
        appointment_date: Union[str, date],
        start_time: str,
        duration_minutes: int,
        is_pomodoro: bool = False,
        allow_weekend_override: bool = False
    ) -> ValidationResult:
        """
        Validate a proposed appointment against the user's work schedule.

        Args:
            user_id: Owner whose schedule applies (None uses the defaults)
            appointment_date: ``YYYY-MM-DD``
            start_time: ``HH:MM``
            duration_minutes: Positive duration ending by midnight
            is_pomodoro: Personal focus session, exempt from all checks
            allow_weekend_override: Caller confirmed a weekend appointment

        Returns:
            ValidationResult

        Raises:
            ValidationException: On malformed date, time or duration
        """
        day = parse_date(appointment_date)
        start = parse_time(start_time)
        end = end_minutes(start, duration_minutes)

        if is_pomodoro:
            return ValidationResult(
                is_valid=True,
                is_within_work_hours=True,
                is_overtime=False,
                violation=None,
                message="Pomodoro sessions are not checked against work hours",
            )

        weekday = weekday_of(day)
        if weekday in (SATURDAY, SUNDAY):
            return self._weekend_result(day, allow_weekend_override)

        blocks = self.rules.resolve(user_id).rules_for(weekday)
        if not blocks:
            return ValidationResult(
                is_valid=False,
                is_within_work_hours=False,
                is_overtime=False,
                violation=Violation.OUTSIDE_HOURS.value,
                message=f"No working hours configured for {DAY_NAMES[weekday]}",
                overridable=True,
            )

        blocked, block = find_blocking_segment(blocks, start, end)
        if blocked:
            violation = _violation_for(block)
            suggested = suggest_start(blocks, start)
            if violation == Violation.LUNCH_BREAK.value:
                message = f"Appointment overlaps the lunch break ({block.start_time}-{block.end_time})"
            else:
                message = (
                    f"Appointment {format_minutes(start)}-{format_minutes(end)} "
                    f"falls outside working hours"
                )
            if suggested:
                message += f"; next available start is {suggested}"
            self.logger.info(f"Rejected by work schedule: {day.isoformat()} {start_time} ({violation})")
            return ValidationResult(
                is_valid=False,
                is_within_work_hours=False,
                is_overtime=False,
                violation=violation,
                message=message,
                suggested_time=suggested,
            )

        overlapping = [b for b in blocks if b.start < end and b.end > start]
        if any(not b.is_working_time for b in overlapping):
            return ValidationResult(
                is_valid=True,
                is_within_work_hours=False,
                is_overtime=True,
                violation=Violation.AFTER_HOURS.value,
                message="Appointment falls in after-hours time and will be recorded as overtime",
            )

        return ValidationResult(
            is_valid=True,
            is_within_work_hours=True,
            is_overtime=False,
            violation=None,
            message="Appointment is within working hours",
        )

    def _weekend_result(self, day: date, allow_weekend_override: bool) -> ValidationResult:
        label = day_type(day)
        if allow_weekend_override:
            return ValidationResult(
                is_valid=True,
                is_within_work_hours=False,
                is_overtime=True,
                violation=Violation.WEEKEND.value,
                message=f"Weekend appointment ({label}) confirmed as overtime",
                day_type=label,
                overridable=True,
            )
        return ValidationResult(
            is_valid=False,
            is_within_work_hours=False,
            is_overtime=False,
            violation=Violation.WEEKEND.value,
            message=f"{day.isoformat()} is a {label}; confirm to schedule it as overtime",
            suggested_date=next_business_day(day).isoformat(),
            day_type=label,
            overridable=True,
        )
