"""
Work Schedule Repository

Data access layer for work schedules and their weekly rules.
"""

from typing import List, Optional
from sqlalchemy.orm import Session, selectinload
from sqlalchemy.exc import SQLAlchemyError
import logging

from agenda.models.work_schedule import WorkSchedule, WorkScheduleRule
from agenda.repositories.base import BaseRepository
from agenda.core.exceptions import DatabaseException

logger = logging.getLogger("WORK_SCHEDULE_REPOSITORY")


class WorkScheduleRepository(BaseRepository[WorkSchedule]):
    """Repository for work schedules."""

    def __init__(self, db: Session):
        super().__init__(WorkSchedule, db)

    def get_active_for_user(self, user_id: int) -> Optional[WorkSchedule]:
        """
        Get the active schedule of a user, rules eagerly loaded.

        When several active schedules exist the most recent one wins.

        Args:
            user_id: Owner of the schedule

        Returns:
            WorkSchedule or None when the user has no active schedule
        """
        try:
            return (
                self.db.query(WorkSchedule)
                .options(selectinload(WorkSchedule.rules))
                .filter(WorkSchedule.user_id == user_id, WorkSchedule.is_active.is_(True))
                .order_by(WorkSchedule.id.desc())
                .first()
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to load active work schedule for user {user_id}: {e}")
            raise DatabaseException(f"Failed to load work schedule for user {user_id}") from e

    def get_by_user(self, user_id: int) -> List[WorkSchedule]:
        return self.list_where(user_id=user_id)


class WorkScheduleRuleRepository(BaseRepository[WorkScheduleRule]):
    """Repository for work schedule rules."""

    def __init__(self, db: Session):
        super().__init__(WorkScheduleRule, db)

    def get_by_schedule(self, work_schedule_id: int) -> List[WorkScheduleRule]:
        """Rules of a schedule ordered by weekday, then start time."""
        try:
            return (
                self.db.query(WorkScheduleRule)
                .filter(WorkScheduleRule.work_schedule_id == work_schedule_id)
                .order_by(WorkScheduleRule.day_of_week, WorkScheduleRule.start_time)
                .all()
            )
        except SQLAlchemyError as e:
            raise DatabaseException(f"Failed to list rules of work schedule {work_schedule_id}") from e
