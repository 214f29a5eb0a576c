"""
Per-appointment work timer.

State machine: stopped -> running <-> paused, and any state -> stopped on
complete or reset. Elapsed time is counted in whole minutes and each
running session contributes between 0 and 1440 minutes.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from agenda.core.clock import Clock
from agenda.core.config import Settings, get_settings
from agenda.core.exceptions import InvalidStateException
from agenda.models.appointment import Appointment
from agenda.models.enums import AppointmentStatus, TimerState
from agenda.repositories.unit_of_work import UnitOfWork
from agenda.services.base_service import BaseService
from agenda.services.calendar_utils import MINUTES_PER_DAY, parse_time


@dataclass
class TimerStatus:
    appointment_id: int
    timer_state: str
    current_time_minutes: int
    accumulated_time_minutes: int
    timer_started_at: Optional[datetime]
    timer_paused_at: Optional[datetime]
    status: str


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class TimerService(BaseService):
    """Start, pause, resume, complete and reset appointment timers."""

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None
    ):
        super().__init__(uow, clock, service_name="TIMER_SERVICE")
        self.settings = settings or get_settings()

    def elapsed_minutes(self, started_at: Optional[datetime]) -> int:
        """Whole minutes since started_at, clamped to 0..1440."""
        if started_at is None:
            return 0
        seconds = (self.clock.utcnow() - _as_utc(started_at)).total_seconds()
        return max(0, min(int(seconds // 60), MINUTES_PER_DAY))

    def start(self, appointment_id: int) -> Appointment:
        """
        Start the timer.

        Raises:
            NotFoundException: If the appointment does not exist
            InvalidStateException: If the timer is already running
        """
        appointment = self._get(appointment_id)
        if appointment.timer_state == TimerState.RUNNING.value:
            raise InvalidStateException("Timer is already running", {"appointment_id": appointment_id})
        appointment.timer_state = TimerState.RUNNING.value
        appointment.timer_started_at = self.clock.utcnow()
        appointment.timer_paused_at = None
        return self._save(appointment, "started")

    def pause(self, appointment_id: int) -> Appointment:
        """
        Pause a running timer, banking the elapsed minutes.

        Raises:
            InvalidStateException: If the timer is not running
        """
        appointment = self._get(appointment_id)
        if appointment.timer_state != TimerState.RUNNING.value:
            raise InvalidStateException("Timer is not running", {"appointment_id": appointment_id})
        accumulated = (appointment.accumulated_time_minutes or 0) + self.elapsed_minutes(appointment.timer_started_at)
        appointment.timer_state = TimerState.PAUSED.value
        appointment.timer_paused_at = self.clock.utcnow()
        appointment.accumulated_time_minutes = accumulated
        appointment.actual_time_minutes = accumulated
        return self._save(appointment, "paused")

    def resume(self, appointment_id: int) -> Appointment:
        """
        Resume a paused timer.

        Raises:
            InvalidStateException: If the timer is not paused
        """
        appointment = self._get(appointment_id)
        if appointment.timer_state != TimerState.PAUSED.value:
            raise InvalidStateException("Timer is not paused", {"appointment_id": appointment_id})
        appointment.timer_state = TimerState.RUNNING.value
        appointment.timer_started_at = self.clock.utcnow()
        appointment.timer_paused_at = None
        return self._save(appointment, "resumed")

    def complete(self, appointment_id: int) -> Appointment:
        """
        Complete the appointment and stop its timer.

        The actual time is the banked time plus the running session, if any.
        When the timer was never used the planned duration is recorded.
        """
        appointment = self._get(appointment_id)
        final = appointment.accumulated_time_minutes or 0
        if appointment.timer_state == TimerState.RUNNING.value:
            final += self.elapsed_minutes(appointment.timer_started_at)
        if final == 0 and appointment.timer_started_at is None and appointment.timer_paused_at is None:
            final = appointment.duration_minutes
        appointment.status = AppointmentStatus.COMPLETED.value
        appointment.completed_at = self.clock.utcnow()
        appointment.timer_state = TimerState.STOPPED.value
        appointment.actual_time_minutes = final
        appointment.accumulated_time_minutes = final
        appointment.timer_started_at = None
        appointment.timer_paused_at = None
        return self._save(appointment, f"completed ({final} min)")

    def reset(self, appointment_id: int) -> Appointment:
        appointment = self._get(appointment_id)
        appointment.timer_state = TimerState.STOPPED.value
        appointment.timer_started_at = None
        appointment.timer_paused_at = None
        appointment.accumulated_time_minutes = 0
        appointment.actual_time_minutes = 0
        return self._save(appointment, "reset")

    def status(self, appointment_id: int) -> TimerStatus:
        appointment = self._get(appointment_id)
        current = appointment.accumulated_time_minutes or 0
        if appointment.timer_state == TimerState.RUNNING.value:
            current += self.elapsed_minutes(appointment.timer_started_at)
        return TimerStatus(
            appointment_id=appointment.id,
            timer_state=appointment.timer_state,
            current_time_minutes=current,
            accumulated_time_minutes=appointment.accumulated_time_minutes or 0,
            timer_started_at=appointment.timer_started_at,
            timer_paused_at=appointment.timer_paused_at,
            status=appointment.status,
        )

    def auto_complete_pomodoros(self, tz_name: Optional[str] = None) -> List[Appointment]:
        """
        Complete today's pomodoros whose scheduled end has passed.

        "Today" and the current minute are taken in the given zone (the
        configured default timezone if omitted). Auto-completed sessions
        record their planned duration as actual time.

        Returns:
            The appointments that were completed
        """
        uow = self._ensure_uow()
        now = self.clock.now(tz_name or self.settings.default_timezone)
        current_minute = now.hour * 60 + now.minute

        completed = []
        with uow:
            for pomodoro in uow.appointments.get_pomodoros_on(now.date()):
                end = parse_time(pomodoro.start_time) + pomodoro.duration_minutes
                if current_minute > end:
                    pomodoro.status = AppointmentStatus.COMPLETED.value
                    pomodoro.completed_at = self.clock.utcnow()
                    pomodoro.actual_time_minutes = pomodoro.duration_minutes
                    completed.append(pomodoro)
            uow.commit()

        self.logger.info(f"Auto-completed {len(completed)} pomodoro(s) for {now.date().isoformat()}")
        return completed

    def _get(self, appointment_id: int) -> Appointment:
        return self._ensure_uow().appointments.get_or_fail(appointment_id)

    def _save(self, appointment: Appointment, action: str) -> Appointment:
        appointment = self._ensure_uow().appointments.save(appointment)
        self.logger.info(f"Timer {action} for appointment {appointment.id}")
        return appointment
