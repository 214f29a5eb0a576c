"""
Unit of Work

One session shared by every repository, so a scheduling decision reads the
same-day appointments, takes the date lock and inserts the accepted row in a
single transaction.

Usage:
    with UnitOfWork(db) as uow:
        uow.appointments.lock_date(day)
        existing = uow.appointments.get_occupying(day)
        uow.appointments.add(appointment)
        uow.commit()
    # rolled back if the block raises before commit
"""

from sqlalchemy.orm import Session
import logging

from agenda.repositories.user_repository import UserRepository
from agenda.repositories.work_schedule_repository import (
    WorkScheduleRepository,
    WorkScheduleRuleRepository,
)
from agenda.repositories.appointment_repository import AppointmentRepository

logger = logging.getLogger("UNIT_OF_WORK")


class UnitOfWork:
    """
    Transaction boundary for the scheduling services.

    Attributes:
        db: Session every repository below is bound to
        users: UserRepository
        work_schedules: WorkScheduleRepository
        rules: WorkScheduleRuleRepository
        appointments: AppointmentRepository
    """

    def __init__(self, db: Session):
        self.db = db
        self._committed = False

        self.users = UserRepository(db)
        self.work_schedules = WorkScheduleRepository(db)
        self.rules = WorkScheduleRuleRepository(db)
        self.appointments = AppointmentRepository(db)

    def commit(self) -> None:
        """
        Commit the transaction; on failure roll back and re-raise.
        """
        try:
            self.db.commit()
            self._committed = True
            logger.debug("Transaction committed")
        except Exception as e:
            logger.error(f"Commit failed, rolling back: {e}")
            self.rollback()
            raise

    def rollback(self) -> None:
        self.db.rollback()
        self._committed = False
        logger.debug("Transaction rolled back")

    def flush(self) -> None:
        """Send pending inserts so generated ids become available."""
        self.db.flush()

    def refresh(self, obj) -> None:
        self.db.refresh(obj)

    def __enter__(self):
        self._committed = False
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if exc_type is not None and not self._committed:
            logger.warning(f"{exc_type.__name__} inside transaction, rolling back")
            self.rollback()
        return False
