"""
Work schedule ORM models.

A user owns a WorkSchedule (display name + IANA timezone) made of weekly
WorkScheduleRule blocks. Only the active schedule is consulted when
validating appointments.
"""

from sqlalchemy import Column, Integer, String, Boolean, Text, ForeignKey, DateTime
from sqlalchemy.orm import relationship

from agenda.models.base import Base, TimestampMixin, utcnow


class WorkSchedule(TimestampMixin, Base):
    """Weekly business-hours template for one user."""

    __tablename__ = "work_schedules"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    timezone = Column(String, nullable=False, default="America/Sao_Paulo")
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    user = relationship("User", back_populates="work_schedules")
    rules = relationship(
        "WorkScheduleRule",
        back_populates="work_schedule",
        cascade="all, delete-orphan",
        order_by="WorkScheduleRule.day_of_week",
    )


class WorkScheduleRule(Base):
    """
    One time block of a weekday.

    Attributes:
        day_of_week: 0=Sunday .. 6=Saturday
        start_time: "HH:MM", local to the schedule timezone
        end_time: "HH:MM"; "23:59" means end of day
        rule_type: work | lunch | break | unavailable
        is_working_time: Counts as regular business hours
        allow_overlap: Appointments may be placed here as overtime (encaixe)
    """

    __tablename__ = "work_schedule_rules"

    id = Column(Integer, primary_key=True, index=True)
    work_schedule_id = Column(
        Integer,
        ForeignKey("work_schedules.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    day_of_week = Column(Integer, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    rule_type = Column(String, nullable=False)
    is_working_time = Column(Boolean, default=True, nullable=False)
    allow_overlap = Column(Boolean, default=False, nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    work_schedule = relationship("WorkSchedule", back_populates="rules")
