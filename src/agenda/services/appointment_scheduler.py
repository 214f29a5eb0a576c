"""
Appointment scheduling decisions.

Runs the work schedule validator and the conflict detector and turns their
findings into one of three outcomes:

- Accepted: the appointment was (or may be) placed on the calendar
- ConfirmationRequired: weekend soft-block, retry with the override flag
- Rejected: work-hours violation or unresolved conflict

Outcomes are values, never exceptions. Malformed input raises
ValidationException before any decision is made.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Any, Dict, List, Optional, Union

from agenda.core.clock import Clock
from agenda.core.config import Settings, get_settings
from agenda.core.exceptions import ValidationException
from agenda.models.appointment import Appointment
from agenda.models.enums import AppointmentStatus, Violation
from agenda.repositories.unit_of_work import UnitOfWork
from agenda.services.base_service import BaseService
from agenda.services.calendar_utils import end_minutes, format_minutes, parse_date, parse_time
from agenda.services.conflict_detector import ConflictDetector
from agenda.services.work_schedule_rules import WorkScheduleRules
from agenda.services.work_schedule_validator import ValidationResult, WorkScheduleValidator

# Fields that move an appointment in time and trigger re-validation
SCHEDULING_FIELDS = ("date", "start_time", "duration_minutes", "is_pomodoro")

EDITABLE_FIELDS = (
    "title",
    "description",
    "status",
    "assigned_user_id",
    "allow_overlap",
) + SCHEDULING_FIELDS


@dataclass
class Accepted:
    """The appointment fits (or was confirmed to fit) the calendar."""

    is_within_work_hours: bool
    is_overtime: bool
    work_schedule_violation: Optional[str]
    validation: ValidationResult
    conflicts: List[Appointment] = field(default_factory=list)
    appointment: Optional[Appointment] = None
    outcome: str = "accepted"


@dataclass
class ConfirmationRequired:
    """Weekend appointment awaiting explicit user consent."""

    reason: str
    message: str
    day_type: Optional[str]
    suggested_date: Optional[str]
    validation: ValidationResult
    outcome: str = "confirmation_required"


@dataclass
class Rejected:
    """The appointment cannot be placed without changing the input."""

    reason: str
    message: str
    validation: Optional[ValidationResult] = None
    violation: Optional[str] = None
    suggested_time: Optional[str] = None
    conflicts: List[Appointment] = field(default_factory=list)
    free_slots: List[str] = field(default_factory=list)
    outcome: str = "rejected"


Outcome = Union[Accepted, ConfirmationRequired, Rejected]

REASON_WEEKEND = "weekend"
REASON_WORK_SCHEDULE = "work_schedule_violation"
REASON_CONFLICT = "time_conflict"


class AppointmentScheduler(BaseService):
    """
    Creates, edits and deletes single appointments.

    Every write runs in the Unit of Work: the date is locked, the same-day
    appointments are read, the decision is made and the row is committed in
    one transaction.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None
    ):
        super().__init__(uow, clock, service_name="APPOINTMENT_SCHEDULER")
        self.settings = settings or get_settings()
        self.rules = WorkScheduleRules(uow, self.clock, self.settings)
        self.validator = WorkScheduleValidator(self.rules)
        self.detector = ConflictDetector(self.rules, self.settings)

    # ========================================================================
    # Decision
    # ========================================================================

    def decide(
        self,
        user_id: Optional[int],
        appointment_date: Union[str, date],
        start_time: str,
        duration_minutes: int,
        is_pomodoro: bool = False,
        allow_overlap: bool = False,
        allow_weekend_override: bool = False,
        existing: Optional[List[Appointment]] = None,
        exclude_id: Optional[int] = None
    ) -> Outcome:
        """
        Decide whether an appointment may be placed. Nothing is written.

        Args:
            user_id: Owner whose work schedule applies
            appointment_date: ``YYYY-MM-DD``
            start_time: ``HH:MM``
            duration_minutes: Positive duration ending by midnight
            is_pomodoro: Focus session, exempt from hours and conflict checks
            allow_overlap: User consents to overlapping / overtime placement
            allow_weekend_override: User confirmed a weekend appointment
            existing: Same-day appointments; loaded from the store if omitted
            exclude_id: Appointment being edited

        Returns:
            Accepted, ConfirmationRequired or Rejected

        Raises:
            ValidationException: On malformed date, time or duration
        """
        day = parse_date(appointment_date)
        validation = self.validator.validate(
            user_id, day, start_time, duration_minutes,
            is_pomodoro=is_pomodoro,
            allow_weekend_override=allow_weekend_override,
        )

        if validation.violation == Violation.WEEKEND.value and not allow_weekend_override:
            self.logger.warning(f"Weekend appointment on {day.isoformat()} requires confirmation")
            return ConfirmationRequired(
                reason=REASON_WEEKEND,
                message=validation.message,
                day_type=validation.day_type,
                suggested_date=validation.suggested_date,
                validation=validation,
            )

        is_within_work_hours = validation.is_within_work_hours
        is_overtime = validation.is_overtime
        if not validation.is_valid:
            if not (validation.overridable and allow_overlap):
                self.logger.warning(
                    f"Rejected {day.isoformat()} {start_time}: {validation.violation}"
                )
                return Rejected(
                    reason=REASON_WORK_SCHEDULE,
                    message=validation.message,
                    validation=validation,
                    violation=validation.violation,
                    suggested_time=validation.suggested_time,
                    free_slots=self._free_slots(user_id, day, start_time, duration_minutes, existing, exclude_id),
                )
            is_within_work_hours = False
            is_overtime = True

        if existing is None:
            existing = self._ensure_uow().appointments.get_occupying(day)

        conflicts = []
        if not is_pomodoro:
            conflicts = self.detector.find_conflicts(
                day, start_time, duration_minutes, exclude_id=exclude_id, existing=existing
            )
        if conflicts and not allow_overlap:
            titles = ", ".join(f"'{c.title}' ({c.start_time}-{c.end_time})" for c in conflicts)
            return Rejected(
                reason=REASON_CONFLICT,
                message=f"Time conflict with {titles}",
                validation=validation,
                conflicts=conflicts,
                free_slots=self._free_slots(user_id, day, start_time, duration_minutes, existing, exclude_id),
            )
        if conflicts and not is_within_work_hours:
            is_overtime = True

        return Accepted(
            is_within_work_hours=is_within_work_hours,
            is_overtime=is_overtime,
            work_schedule_violation=validation.violation,
            validation=validation,
            conflicts=conflicts,
        )

    def _free_slots(self, user_id, day, start_time, duration_minutes, existing, exclude_id) -> List[str]:
        return self.detector.suggest_free_slots(
            user_id, day, start_time, duration_minutes, exclude_id=exclude_id, existing=existing
        )

    @staticmethod
    def _occupying(uow: UnitOfWork, day: date, recurring_task_id: Optional[int]) -> List[Appointment]:
        """Same-day occupying rows, minus siblings of the given series."""
        existing = uow.appointments.get_occupying(day)
        if recurring_task_id is None:
            return existing
        return [a for a in existing if a.recurring_task_id != recurring_task_id]

    # ========================================================================
    # Writes
    # ========================================================================

    def create_appointment(
        self,
        fields: Dict[str, Any],
        allow_overlap: bool = False,
        allow_weekend_override: bool = False
    ) -> Outcome:
        """
        Create a single appointment if the decision accepts it.

        Args:
            fields: Appointment columns; requires title, date, start_time and
                duration_minutes. Extra columns (recurrence linkage) are
                stored as given.
            allow_overlap: User consents to overlap / overtime placement
            allow_weekend_override: User confirmed a weekend appointment

        Returns:
            Outcome; Accepted carries the persisted appointment
        """
        uow = self._ensure_uow()
        self._validate_required(fields.get("title"), "title")
        day = parse_date(fields.get("date"))
        start_time = fields.get("start_time")
        duration = fields.get("duration_minutes")
        end = end_minutes(parse_time(start_time), duration)
        is_pomodoro = bool(fields.get("is_pomodoro", False))

        with uow:
            uow.appointments.lock_date(day)
            existing = self._occupying(uow, day, fields.get("recurring_task_id"))
            outcome = self.decide(
                fields.get("assigned_user_id"), day, start_time, duration,
                is_pomodoro=is_pomodoro,
                allow_overlap=allow_overlap,
                allow_weekend_override=allow_weekend_override,
                existing=existing,
            )
            if not isinstance(outcome, Accepted):
                uow.rollback()
                return outcome

            values = dict(fields)
            values.update(
                date=day,
                end_time=format_minutes(end),
                is_pomodoro=is_pomodoro,
                allow_overlap=allow_overlap,
                is_within_work_hours=outcome.is_within_work_hours,
                is_overtime=outcome.is_overtime,
                work_schedule_violation=outcome.work_schedule_violation,
            )
            values.setdefault("status", AppointmentStatus.SCHEDULED.value)
            appointment = uow.appointments.add(Appointment(**values))
            uow.commit()

        uow.refresh(appointment)
        outcome.appointment = appointment
        self.logger.info(
            f"Scheduled appointment {appointment.id} on {day.isoformat()} "
            f"{appointment.start_time}-{appointment.end_time}"
            + (" (overtime)" if appointment.is_overtime else "")
        )
        return outcome

    def update_appointment(
        self,
        appointment_id: int,
        changes: Dict[str, Any],
        allow_overlap: Optional[bool] = None,
        allow_weekend_override: bool = False
    ) -> Outcome:
        """
        Edit an appointment, re-running the decision when it moves in time.

        The appointment's own row is excluded from conflict scanning. An
        accepted edit that changes the date or start time increments
        reschedule_count.

        Args:
            appointment_id: Row to edit
            changes: Partial column values (None means "leave unchanged")
            allow_overlap: Consent flag; defaults to the stored one
            allow_weekend_override: User confirmed a weekend appointment

        Returns:
            Outcome; Accepted carries the updated appointment

        Raises:
            NotFoundException: If the appointment does not exist
        """
        uow = self._ensure_uow()
        appointment = uow.appointments.get_or_fail(appointment_id)
        changes = {k: v for k, v in changes.items() if k in EDITABLE_FIELDS and v is not None}
        if allow_overlap is None:
            allow_overlap = changes.get("allow_overlap", appointment.allow_overlap)
        changes["allow_overlap"] = allow_overlap

        new_date = parse_date(changes.get("date", appointment.date))
        new_start = changes.get("start_time", appointment.start_time)
        new_duration = changes.get("duration_minutes", appointment.duration_minutes)
        new_pomodoro = changes.get("is_pomodoro", appointment.is_pomodoro)
        end = end_minutes(parse_time(new_start), new_duration)

        moved = new_date != appointment.date or new_start != appointment.start_time
        reactivated = (
            appointment.status == AppointmentStatus.CANCELLED.value
            and changes.get("status", AppointmentStatus.CANCELLED.value) != AppointmentStatus.CANCELLED.value
        )
        needs_decision = (
            moved
            or new_duration != appointment.duration_minutes
            or new_pomodoro != appointment.is_pomodoro
            or allow_overlap != appointment.allow_overlap
            or reactivated
        ) and not appointment.is_recurring_template

        with uow:
            outcome = None
            if needs_decision:
                uow.appointments.lock_date(new_date)
                outcome = self.decide(
                    appointment.assigned_user_id, new_date, new_start, new_duration,
                    is_pomodoro=new_pomodoro,
                    allow_overlap=allow_overlap,
                    allow_weekend_override=allow_weekend_override,
                    existing=self._occupying(uow, new_date, appointment.recurring_task_id),
                    exclude_id=appointment.id,
                )
                if not isinstance(outcome, Accepted):
                    uow.rollback()
                    return outcome
                appointment.is_within_work_hours = outcome.is_within_work_hours
                appointment.is_overtime = outcome.is_overtime
                appointment.work_schedule_violation = outcome.work_schedule_violation

            for key, value in changes.items():
                setattr(appointment, key, value)
            appointment.date = new_date
            appointment.end_time = format_minutes(end)
            if moved:
                appointment.reschedule_count = (appointment.reschedule_count or 0) + 1
            if (
                changes.get("status") == AppointmentStatus.COMPLETED.value
                and appointment.completed_at is None
            ):
                appointment.completed_at = self.clock.now()
            uow.commit()

        uow.refresh(appointment)
        if outcome is None:
            outcome = Accepted(
                is_within_work_hours=appointment.is_within_work_hours,
                is_overtime=appointment.is_overtime,
                work_schedule_violation=appointment.work_schedule_violation,
                validation=ValidationResult(
                    is_valid=True,
                    is_within_work_hours=appointment.is_within_work_hours,
                    is_overtime=appointment.is_overtime,
                    violation=appointment.work_schedule_violation,
                    message="Schedule unchanged",
                ),
            )
        outcome.appointment = appointment
        self.logger.info(
            f"Updated appointment {appointment.id}"
            + (f" (rescheduled to {new_date.isoformat()} {new_start})" if moved else "")
        )
        return outcome

    def delete_appointment(self, appointment_id: int) -> None:
        """
        Delete one appointment; recurring siblings are untouched.

        Raises:
            NotFoundException: If the appointment does not exist
        """
        uow = self._ensure_uow()
        appointment = uow.appointments.get_or_fail(appointment_id)
        uow.appointments.delete(appointment)
        self.logger.info(f"Deleted appointment {appointment_id}")

    # ========================================================================
    # Reads
    # ========================================================================

    def get_appointment(self, appointment_id: int) -> Appointment:
        return self._ensure_uow().appointments.get_or_fail(appointment_id)

    def list_appointments(
        self,
        appointment_date: Optional[str] = None,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        user_id: Optional[int] = None
    ) -> List[Appointment]:
        """
        List appointments by date, by date range or by user.

        Recurring templates are never listed as calendar entries.
        """
        repo = self._ensure_uow().appointments
        if appointment_date:
            day = parse_date(appointment_date)
            rows = repo.get_by_date(day)
            if user_id is not None:
                rows = [r for r in rows if r.assigned_user_id == user_id]
            return rows
        if start_date or end_date:
            if not (start_date and end_date):
                raise ValidationException("start_date and end_date must be given together", field="end_date")
            return repo.get_in_range(parse_date(start_date, "start_date"), parse_date(end_date, "end_date"), user_id)
        if user_id is not None:
            return repo.get_by_user(user_id)
        return [row for row in repo.list_where() if not row.is_recurring_template]
