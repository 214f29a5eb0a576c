"""
Appointment Repository

Data access layer for appointments: lookups by date, date range, user and
recurring series, plus the per-date lock used to serialise scheduling writes.
"""

from datetime import date
from typing import List, Optional
from sqlalchemy import text
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
import logging

from agenda.models.appointment import Appointment
from agenda.models.enums import AppointmentStatus
from agenda.repositories.base import BaseRepository
from agenda.core.exceptions import DatabaseException

logger = logging.getLogger("APPOINTMENT_REPOSITORY")


class AppointmentRepository(BaseRepository[Appointment]):
    """Repository for appointments."""

    def __init__(self, db: Session):
        super().__init__(Appointment, db)

    def lock_date(self, day: date) -> None:
        """
        Serialise scheduling writes for one calendar date.

        Takes a transaction-scoped advisory lock on PostgreSQL so that the
        read of same-day appointments and the following insert cannot
        interleave with another request. Other dialects rely on their own
        write serialisation and skip the lock.

        Args:
            day: Date whose appointments are about to be checked
        """
        if self.db.get_bind().dialect.name != "postgresql":
            return
        try:
            self.db.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": day.toordinal()})
        except SQLAlchemyError as e:
            raise DatabaseException(f"Failed to lock appointments of {day.isoformat()}") from e

    def get_by_date(self, day: date, include_templates: bool = False) -> List[Appointment]:
        """
        Appointments on a date ordered by start time.

        Args:
            day: Calendar date
            include_templates: Also return recurring template rows

        Returns:
            List of appointments
        """
        try:
            query = self.db.query(Appointment).filter(Appointment.date == day)
            if not include_templates:
                query = query.filter(Appointment.is_recurring_template.is_(False))
            return query.order_by(Appointment.start_time, Appointment.id).all()
        except SQLAlchemyError as e:
            raise DatabaseException(f"Failed to list appointments of {day.isoformat()}") from e

    def get_occupying(self, day: date) -> List[Appointment]:
        """Rows that occupy calendar time on a date (no templates, no cancelled)."""
        return [
            appointment for appointment in self.get_by_date(day)
            if appointment.status != AppointmentStatus.CANCELLED.value
        ]

    def get_in_range(
        self,
        start_date: date,
        end_date: date,
        user_id: Optional[int] = None
    ) -> List[Appointment]:
        """
        Appointments between two dates (inclusive), templates excluded.

        Args:
            start_date: First date of the range
            end_date: Last date of the range
            user_id: Restrict to one assigned user

        Returns:
            List ordered by date and start time
        """
        try:
            query = self.db.query(Appointment).filter(
                Appointment.date >= start_date,
                Appointment.date <= end_date,
                Appointment.is_recurring_template.is_(False),
            )
            if user_id is not None:
                query = query.filter(Appointment.assigned_user_id == user_id)
            return query.order_by(Appointment.date, Appointment.start_time, Appointment.id).all()
        except SQLAlchemyError as e:
            raise DatabaseException("Failed to list appointments in range") from e

    def get_by_user(self, user_id: int) -> List[Appointment]:
        try:
            return (
                self.db.query(Appointment)
                .filter(
                    Appointment.assigned_user_id == user_id,
                    Appointment.is_recurring_template.is_(False),
                )
                .order_by(Appointment.date, Appointment.start_time, Appointment.id)
                .all()
            )
        except SQLAlchemyError as e:
            raise DatabaseException(f"Failed to list appointments of user {user_id}") from e

    def get_by_recurring_task_id(self, recurring_task_id: int) -> List[Appointment]:
        """Template and instances of a series, template first, then by date."""
        try:
            return (
                self.db.query(Appointment)
                .filter(Appointment.recurring_task_id == recurring_task_id)
                .order_by(
                    Appointment.is_recurring_template.desc(),
                    Appointment.date,
                    Appointment.start_time,
                    Appointment.id,
                )
                .all()
            )
        except SQLAlchemyError as e:
            raise DatabaseException(f"Failed to list recurring series {recurring_task_id}") from e

    def delete_by_recurring_task_id(self, recurring_task_id: int) -> int:
        """
        Remove every row of a series (template and instances), flush only.

        Returns:
            Number of rows deleted
        """
        try:
            deleted = (
                self.db.query(Appointment)
                .filter(Appointment.recurring_task_id == recurring_task_id)
                .delete(synchronize_session="fetch")
            )
            self.db.flush()
            logger.info(f"Deleted {deleted} rows of recurring series {recurring_task_id}")
            return deleted
        except SQLAlchemyError as e:
            self.db.rollback()
            raise DatabaseException(f"Failed to delete recurring series {recurring_task_id}") from e

    def get_pomodoros_on(self, day: date) -> List[Appointment]:
        """Pomodoro sessions on a date that are not completed or cancelled."""
        try:
            return (
                self.db.query(Appointment)
                .filter(
                    Appointment.date == day,
                    Appointment.is_pomodoro.is_(True),
                    Appointment.status.notin_([
                        AppointmentStatus.COMPLETED.value,
                        AppointmentStatus.CANCELLED.value,
                    ]),
                )
                .order_by(Appointment.start_time)
                .all()
            )
        except SQLAlchemyError as e:
            raise DatabaseException(f"Failed to list pomodoros of {day.isoformat()}") from e
