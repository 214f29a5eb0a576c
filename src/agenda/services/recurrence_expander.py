"""
Recurring appointment expansion.

A series is stored as flat rows: one template row (is_recurring_template)
plus one row per accepted occurrence, all sharing recurring_task_id, which
is the template's id.

Expansion works in two steps:

1. ``expand`` lists the candidate dates of the pattern. Occurrence ``n`` is
   computed from the start date (start + n * interval units), so month-end
   dates clamp per month without drifting.
2. ``RecurringAppointmentService.create_recurring`` moves weekend candidates
   to the next business day not already used by the series and hands each
   occurrence to the scheduler. A rejected occurrence is skipped and
   reported; the rest of the series continues.
"""

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Any, Collection, Dict, List, Optional, Tuple, Union

from agenda.core.clock import Clock
from agenda.core.config import Settings, get_settings
from agenda.core.exceptions import NotFoundException, ValidationException
from agenda.models.appointment import Appointment
from agenda.models.enums import RecurrencePattern
from agenda.repositories.unit_of_work import UnitOfWork
from agenda.services.appointment_scheduler import Accepted, AppointmentScheduler
from agenda.services.base_service import BaseService
from agenda.services.calendar_utils import (
    add_months,
    add_years,
    end_minutes,
    format_minutes,
    is_weekend,
    next_business_day,
    parse_date,
    parse_time,
)

# Series-level fields copied from the template onto every instance
SERIES_FIELDS = ("title", "description", "start_time", "duration_minutes", "assigned_user_id", "is_pomodoro")

STATUS_CREATED = "created"
STATUS_SKIPPED = "skipped"


def occurrence_date(start: date, pattern: str, interval: int, n: int) -> date:
    """Date of the n-th occurrence (n=0 is the start date)."""
    if pattern == RecurrencePattern.DAILY.value:
        return start + timedelta(days=n * interval)
    if pattern == RecurrencePattern.WEEKLY.value:
        return start + timedelta(weeks=n * interval)
    if pattern == RecurrencePattern.MONTHLY.value:
        return add_months(start, n * interval)
    if pattern == RecurrencePattern.YEARLY.value:
        return add_years(start, n * interval)
    raise ValidationException(f"Invalid recurrence pattern '{pattern}'", field="recurrence_pattern")


def validate_recurrence(
    start: date,
    pattern: str,
    interval: int,
    end_date: Optional[date],
    count: Optional[int],
    max_interval: int = 365,
    max_occurrences: int = 1000
) -> None:
    """
    Check recurrence parameters.

    Raises:
        ValidationException: Unknown pattern, interval out of range, or a
            terminator that is missing, doubled or out of range
    """
    if pattern not in {p.value for p in RecurrencePattern}:
        raise ValidationException(f"Invalid recurrence pattern '{pattern}'", field="recurrence_pattern")
    if isinstance(interval, bool) or not isinstance(interval, int) or not 1 <= interval <= max_interval:
        raise ValidationException(
            f"recurrence_interval must be between 1 and {max_interval}", field="recurrence_interval"
        )
    if (end_date is None) == (count is None):
        raise ValidationException(
            "Exactly one of recurrence_end_date or recurrence_end_count is required",
            field="recurrence_end_date",
        )
    if count is not None and (isinstance(count, bool) or not isinstance(count, int) or not 1 <= count <= max_occurrences):
        raise ValidationException(
            f"recurrence_end_count must be between 1 and {max_occurrences}", field="recurrence_end_count"
        )
    if end_date is not None and end_date <= start:
        raise ValidationException("recurrence_end_date must be after the start date", field="recurrence_end_date")


def expand(
    start: Union[str, date],
    pattern: str,
    interval: int = 1,
    end_date: Optional[Union[str, date]] = None,
    count: Optional[int] = None,
    max_interval: int = 365,
    max_occurrences: int = 1000
) -> List[date]:
    """
    Candidate dates of a recurrence, weekends included.

    Args:
        start: First occurrence date
        pattern: daily | weekly | monthly | yearly
        interval: Units between occurrences
        end_date: Last allowed date (inclusive); exclusive with count
        count: Number of occurrences; exclusive with end_date
        max_interval: Largest accepted interval
        max_occurrences: Hard cap on generated dates

    Returns:
        Candidate dates in order

    Raises:
        ValidationException: On invalid parameters
    """
    start = parse_date(start)
    end_date = parse_date(end_date, "recurrence_end_date") if end_date is not None else None
    validate_recurrence(start, pattern, interval, end_date, count, max_interval, max_occurrences)

    limit = count if count is not None else max_occurrences
    dates = []
    n = 0
    while len(dates) < limit:
        candidate = occurrence_date(start, pattern, interval, n)
        if end_date is not None and candidate > end_date:
            break
        dates.append(candidate)
        n += 1
    return dates


def roll_forward(candidate: date, taken: Collection[date]) -> Tuple[date, Optional[date]]:
    """
    Move a weekend candidate to the next business day the series has not used.

    Args:
        candidate: Date produced by the pattern
        taken: Dates already holding an accepted instance of the series

    Returns:
        (final date, original date or None when not moved)
    """
    if not is_weekend(candidate):
        return candidate, None
    final = next_business_day(candidate)
    while final in taken:
        final = next_business_day(final)
    return final, candidate


@dataclass
class OccurrenceReport:
    """What happened to one occurrence of a series."""

    sequence: int
    candidate_date: date
    scheduled_date: date
    status: str
    original_date: Optional[date] = None
    was_rescheduled_from_weekend: bool = False
    appointment_id: Optional[int] = None
    reason: Optional[str] = None
    message: Optional[str] = None
    conflicts: List[int] = field(default_factory=list)


@dataclass
class RecurringSeries:
    """Template plus instances of one series."""

    template: Appointment
    instances: List[Appointment]
    occurrences: List[OccurrenceReport] = field(default_factory=list)

    @property
    def recurring_task_id(self) -> int:
        return self.template.recurring_task_id


@dataclass
class InstanceUpdateReport:
    appointment_id: int
    outcome: str
    message: Optional[str] = None


class RecurringAppointmentService(BaseService):
    """Creates, lists, edits and deletes recurring series."""

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None,
        scheduler: Optional[AppointmentScheduler] = None
    ):
        super().__init__(uow, clock, service_name="RECURRENCE_EXPANDER")
        self.settings = settings or get_settings()
        self.scheduler = scheduler or AppointmentScheduler(uow, self.clock, self.settings)

    def create_recurring(
        self,
        fields: Dict[str, Any],
        pattern: str,
        interval: int = 1,
        end_date: Optional[Union[str, date]] = None,
        count: Optional[int] = None,
        allow_overlap: bool = False,
        allow_weekend_override: bool = False
    ) -> RecurringSeries:
        """
        Create a recurring series.

        The template row is committed first, then every occurrence is
        scheduled and committed on its own. A failure midway leaves the
        already committed rows in place; they can be removed through the
        series id.

        Args:
            fields: Appointment columns of the template (title, date,
                start_time, duration_minutes, ...)
            pattern: daily | weekly | monthly | yearly
            interval: Units between occurrences
            end_date: Last allowed date (exclusive with count)
            count: Number of occurrences (exclusive with end_date)
            allow_overlap: Consent to overlap, applied to every occurrence
            allow_weekend_override: Forwarded to the scheduler

        Returns:
            RecurringSeries with the per-occurrence report

        Raises:
            ValidationException: On malformed fields or recurrence parameters
        """
        uow = self._ensure_uow()
        self._validate_required(fields.get("title"), "title")
        start = parse_date(fields.get("date"))
        end = end_minutes(parse_time(fields.get("start_time")), fields.get("duration_minutes"))
        end_date = parse_date(end_date, "recurrence_end_date") if end_date is not None else None
        candidates = expand(
            start, pattern, interval, end_date, count,
            max_interval=self.settings.max_recurrence_interval,
            max_occurrences=self.settings.max_recurrence_occurrences,
        )

        with self._timed_operation("create_recurring"):
            template = self._create_template(fields, start, end, pattern, interval, end_date, count, allow_overlap)
            series_id = template.id
            self.logger.info(
                f"Expanding series {series_id}: {pattern} every {interval}, "
                f"{len(candidates)} candidate date(s) from {start.isoformat()}"
            )

            taken = set()
            instances: List[Appointment] = []
            reports: List[OccurrenceReport] = []
            for sequence, candidate in enumerate(candidates, start=1):
                final, original = roll_forward(candidate, taken)
                instance_fields = {key: fields.get(key) for key in SERIES_FIELDS if key in fields}
                instance_fields.update(
                    date=final,
                    is_recurring=True,
                    recurrence_pattern=pattern,
                    recurrence_interval=interval,
                    recurrence_end_date=end_date,
                    recurrence_end_count=count,
                    parent_task_id=series_id,
                    recurring_task_id=series_id,
                    original_date=original,
                    was_rescheduled_from_weekend=original is not None,
                )
                outcome = self.scheduler.create_appointment(
                    instance_fields,
                    allow_overlap=template.allow_overlap,
                    allow_weekend_override=allow_weekend_override,
                )
                report = OccurrenceReport(
                    sequence=sequence,
                    candidate_date=candidate,
                    scheduled_date=final,
                    status=STATUS_SKIPPED,
                    original_date=original,
                    was_rescheduled_from_weekend=original is not None,
                )
                if isinstance(outcome, Accepted):
                    taken.add(final)
                    instances.append(outcome.appointment)
                    report.status = STATUS_CREATED
                    report.appointment_id = outcome.appointment.id
                else:
                    report.reason = outcome.reason
                    report.message = outcome.message
                    report.conflicts = [c.id for c in getattr(outcome, "conflicts", [])]
                    self.logger.warning(
                        f"Series {series_id}: skipped occurrence {sequence} on {final.isoformat()} ({outcome.reason})"
                    )
                reports.append(report)

        self.logger.info(
            f"Series {series_id}: {len(instances)} created, {len(reports) - len(instances)} skipped"
        )
        return RecurringSeries(template=template, instances=instances, occurrences=reports)

    def _create_template(self, fields, start, end, pattern, interval, end_date, count, allow_overlap) -> Appointment:
        uow = self._ensure_uow()
        values = {key: fields.get(key) for key in SERIES_FIELDS if key in fields}
        values.update(
            date=start,
            end_time=format_minutes(end),
            allow_overlap=allow_overlap,
            is_recurring=True,
            is_recurring_template=True,
            recurrence_pattern=pattern,
            recurrence_interval=interval,
            recurrence_end_date=end_date,
            recurrence_end_count=count,
        )
        with uow:
            template = uow.appointments.add(Appointment(**values))
            template.recurring_task_id = template.id
            uow.commit()
        uow.refresh(template)
        return template

    def get_series(self, recurring_task_id: int) -> RecurringSeries:
        """
        Template and instances of a series.

        Raises:
            NotFoundException: If no row carries this series id
        """
        rows = self._ensure_uow().appointments.get_by_recurring_task_id(recurring_task_id)
        template = next((row for row in rows if row.is_recurring_template), None)
        if template is None:
            raise NotFoundException("RecurringSeries", recurring_task_id)
        return RecurringSeries(
            template=template,
            instances=[row for row in rows if not row.is_recurring_template],
        )

    def update_series(
        self,
        recurring_task_id: int,
        changes: Dict[str, Any],
        allow_overlap: Optional[bool] = None
    ) -> List[InstanceUpdateReport]:
        """
        Apply series-level changes to the template and every instance.

        Each instance goes through the scheduler, so a changed start time is
        re-validated per date; instances whose edit is not accepted keep
        their previous values and are reported.

        Returns:
            One report per instance
        """
        uow = self._ensure_uow()
        series = self.get_series(recurring_task_id)
        changes = {k: v for k, v in changes.items() if k in SERIES_FIELDS and v is not None}
        if "start_time" in changes or "duration_minutes" in changes:
            start = changes.get("start_time", series.template.start_time)
            end = end_minutes(parse_time(start), changes.get("duration_minutes", series.template.duration_minutes))
            changes_for_template = dict(changes, end_time=format_minutes(end))
        else:
            changes_for_template = dict(changes)
        if allow_overlap is not None:
            changes_for_template["allow_overlap"] = allow_overlap
        if changes_for_template:
            uow.appointments.update_by_id(series.template.id, changes_for_template)

        reports = []
        for instance in series.instances:
            outcome = self.scheduler.update_appointment(instance.id, changes, allow_overlap=allow_overlap)
            reports.append(InstanceUpdateReport(
                appointment_id=instance.id,
                outcome=outcome.outcome,
                message=None if isinstance(outcome, Accepted) else outcome.message,
            ))
        self.logger.info(
            f"Series {recurring_task_id}: updated {sum(r.outcome == 'accepted' for r in reports)}"
            f"/{len(reports)} instance(s)"
        )
        return reports

    def delete_series(self, recurring_task_id: int) -> int:
        """
        Delete the template and every instance of a series.

        Returns:
            Number of rows deleted

        Raises:
            NotFoundException: If no row carries this series id
        """
        uow = self._ensure_uow()
        with uow:
            deleted = uow.appointments.delete_by_recurring_task_id(recurring_task_id)
            if deleted == 0:
                raise NotFoundException("RecurringSeries", recurring_task_id)
            uow.commit()
        return deleted

    def delete_instance(self, appointment_id: int, delete_all: bool = False) -> int:
        """
        Delete one occurrence, or its whole series when delete_all is set.

        Returns:
            Number of rows deleted
        """
        appointment = self._ensure_uow().appointments.get_or_fail(appointment_id)
        if delete_all and appointment.recurring_task_id is not None:
            return self.delete_series(appointment.recurring_task_id)
        self.scheduler.delete_appointment(appointment_id)
        return 1
