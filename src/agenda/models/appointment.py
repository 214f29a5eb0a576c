"""
Appointment ORM model.

An appointment is a timed block on a single calendar date. Recurring series
are stored as flat rows: one template row (is_recurring_template=True) plus
one row per accepted occurrence, all sharing recurring_task_id.
"""

from sqlalchemy import Column, Integer, String, DateTime, Text, Date, Boolean, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship

from agenda.models.base import Base, TimestampMixin
from agenda.models.enums import AppointmentStatus, TimerState


class Appointment(TimestampMixin, Base):
    """Schedulable unit tied to a date, a start time and a duration."""

    __tablename__ = "appointments"
    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="ck_appointments_positive_duration"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=True)

    date = Column(Date, nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    end_time = Column(String(5), nullable=False)
    status = Column(String, nullable=False, default=AppointmentStatus.SCHEDULED.value, index=True)
    assigned_user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Scheduling flags
    is_pomodoro = Column(Boolean, default=False, nullable=False)
    allow_overlap = Column(Boolean, default=False, nullable=False)
    is_within_work_hours = Column(Boolean, default=True, nullable=False)
    is_overtime = Column(Boolean, default=False, nullable=False)
    work_schedule_violation = Column(String, nullable=True)
    reschedule_count = Column(Integer, default=0, nullable=False)
    completed_at = Column(DateTime(timezone=True), nullable=True)

    # Timer
    timer_state = Column(String, nullable=False, default=TimerState.STOPPED.value)
    timer_started_at = Column(DateTime(timezone=True), nullable=True)
    timer_paused_at = Column(DateTime(timezone=True), nullable=True)
    accumulated_time_minutes = Column(Integer, default=0, nullable=False)
    actual_time_minutes = Column(Integer, nullable=True)

    # Recurrence
    is_recurring = Column(Boolean, default=False, nullable=False)
    recurrence_pattern = Column(String, nullable=True)
    recurrence_interval = Column(Integer, nullable=True)
    recurrence_end_date = Column(Date, nullable=True)
    recurrence_end_count = Column(Integer, nullable=True)
    parent_task_id = Column(Integer, nullable=True)
    recurring_task_id = Column(Integer, nullable=True, index=True)
    is_recurring_template = Column(Boolean, default=False, nullable=False)
    original_date = Column(Date, nullable=True)
    was_rescheduled_from_weekend = Column(Boolean, default=False, nullable=False)

    assigned_user = relationship("User")

    def __repr__(self) -> str:
        return f"<Appointment id={self.id} date={self.date} {self.start_time}-{self.end_time}>"
