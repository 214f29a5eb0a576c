"""
Time conflict detection.

``find_conflicts`` is a pure function over a list of already-loaded
appointments; ``ConflictDetector`` loads the same-day candidates through the
repository and also proposes nearby free start times.
"""

from datetime import date
from typing import Iterable, List, Optional, Sequence, Union, Collection

from agenda.core.config import Settings, get_settings
from agenda.models.appointment import Appointment
from agenda.models.enums import AppointmentStatus
from agenda.services.base_service import BaseService
from agenda.services.calendar_utils import (
    MINUTES_PER_DAY,
    end_minutes,
    format_minutes,
    intervals_overlap,
    parse_date,
    parse_time,
    weekday_of,
)
from agenda.services.work_schedule_rules import RuleBlock, WorkScheduleRules


def occupies_calendar(appointment: Appointment) -> bool:
    """Templates and cancelled rows never take up calendar time."""
    return (
        not appointment.is_recurring_template
        and appointment.status != AppointmentStatus.CANCELLED.value
    )


def appointment_interval(appointment: Appointment):
    start = parse_time(appointment.start_time)
    return start, min(start + appointment.duration_minutes, MINUTES_PER_DAY)


def find_conflicts(
    appointment_date: Union[str, date],
    start_time: str,
    duration_minutes: int,
    existing: Iterable[Appointment],
    exclude_ids: Optional[Collection[int]] = None
) -> List[Appointment]:
    """
    Appointments on the same date whose interval overlaps the candidate.

    Intervals are half-open, so an appointment ending at 10:00 does not
    conflict with one starting at 10:00.

    Args:
        appointment_date: Candidate date
        start_time: Candidate start ``HH:MM``
        duration_minutes: Candidate duration
        existing: Appointments to check against (any dates)
        exclude_ids: IDs to ignore, e.g. the appointment being edited

    Returns:
        Conflicting appointments ordered by start time
    """
    day = parse_date(appointment_date)
    start = parse_time(start_time)
    end = end_minutes(start, duration_minutes)
    excluded = set(exclude_ids or ())

    conflicts = []
    for appointment in existing:
        if appointment.date != day or appointment.id in excluded:
            continue
        if not occupies_calendar(appointment):
            continue
        other_start, other_end = appointment_interval(appointment)
        if intervals_overlap(start, end, other_start, other_end):
            conflicts.append(appointment)
    return sorted(conflicts, key=lambda a: (a.start_time, a.id or 0))


def _working_spans(blocks: Sequence[RuleBlock]) -> List[List[int]]:
    spans: List[List[int]] = []
    for block in sorted((b for b in blocks if b.is_working_time), key=lambda b: b.start):
        if spans and block.start <= spans[-1][1]:
            spans[-1][1] = max(spans[-1][1], block.end)
        else:
            spans.append([block.start, block.end])
    return spans


def suggest_free_slots(
    duration_minutes: int,
    blocks: Sequence[RuleBlock],
    occupied: Iterable[Appointment],
    around: int,
    step: int = 15,
    limit: int = 5
) -> List[str]:
    """
    Conflict-free start times inside working blocks, nearest first.

    Args:
        duration_minutes: Length the slot must accommodate
        blocks: The day's rule blocks
        occupied: Appointments already on that day
        around: Requested start in minutes; suggestions are sorted by distance
        step: Grid size in minutes
        limit: Maximum number of suggestions

    Returns:
        List of ``HH:MM`` start times
    """
    busy = [appointment_interval(a) for a in occupied if occupies_calendar(a)]
    candidates = []
    for span_start, span_end in _working_spans(blocks):
        first = span_start + (-span_start % step)
        for start in range(first, span_end - duration_minutes + 1, step):
            end = start + duration_minutes
            if any(intervals_overlap(start, end, s, e) for s, e in busy):
                continue
            candidates.append(start)
    candidates.sort(key=lambda start: (abs(start - around), start))
    return [format_minutes(start) for start in candidates[:limit]]


class ConflictDetector(BaseService):
    """Loads same-day appointments and reports overlaps and free slots."""

    def __init__(self, rules: WorkScheduleRules, settings: Optional[Settings] = None):
        super().__init__(rules.uow, rules.clock, service_name="CONFLICT_DETECTOR")
        self.rules = rules
        self.settings = settings or get_settings()

    def find_conflicts(
        self,
        appointment_date: Union[str, date],
        start_time: str,
        duration_minutes: int,
        exclude_id: Optional[int] = None,
        existing: Optional[List[Appointment]] = None
    ) -> List[Appointment]:
        """
        Overlapping appointments on a date.

        Args:
            appointment_date: Candidate date
            start_time: Candidate start ``HH:MM``
            duration_minutes: Candidate duration
            exclude_id: Appointment to ignore (the one being edited)
            existing: Already-loaded same-day rows; read from the store if omitted

        Returns:
            Conflicting appointments
        """
        day = parse_date(appointment_date)
        if existing is None:
            existing = self._ensure_uow().appointments.get_occupying(day)
        exclude = [exclude_id] if exclude_id is not None else None
        conflicts = find_conflicts(day, start_time, duration_minutes, existing, exclude)
        if conflicts:
            self.logger.info(
                f"{len(conflicts)} conflict(s) for {day.isoformat()} {start_time}+{duration_minutes}min: "
                f"{[c.id for c in conflicts]}"
            )
        return conflicts

    def suggest_free_slots(
        self,
        user_id: Optional[int],
        appointment_date: Union[str, date],
        start_time: str,
        duration_minutes: int,
        exclude_id: Optional[int] = None,
        existing: Optional[List[Appointment]] = None
    ) -> List[str]:
        """Nearby conflict-free start times within the user's working hours."""
        day = parse_date(appointment_date)
        around = parse_time(start_time)
        if existing is None:
            existing = self._ensure_uow().appointments.get_occupying(day)
        occupied = [a for a in existing if a.date == day and a.id != exclude_id]
        blocks = self.rules.resolve(user_id).rules_for(weekday_of(day))
        return suggest_free_slots(
            duration_minutes,
            blocks,
            occupied,
            around,
            step=self.settings.slot_step_minutes,
            limit=self.settings.max_free_slot_suggestions,
        )
