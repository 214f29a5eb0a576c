"""
User ORM model.

Stores basic user records for schedule and appointment ownership.
"""

from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship

from agenda.models.base import Base, TimestampMixin


class User(TimestampMixin, Base):
    """User record with basic identity fields."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    work_schedules = relationship(
        "WorkSchedule",
        back_populates="user",
        cascade="all, delete-orphan",
    )
