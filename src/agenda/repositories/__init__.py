"""
Repository layer.

Data access objects for every table plus the UnitOfWork that shares one
session between them.
"""

from agenda.repositories.base import BaseRepository
from agenda.repositories.user_repository import UserRepository
from agenda.repositories.work_schedule_repository import (
    WorkScheduleRepository,
    WorkScheduleRuleRepository,
)
from agenda.repositories.appointment_repository import AppointmentRepository
from agenda.repositories.unit_of_work import UnitOfWork

__all__ = [
    "BaseRepository",
    "UserRepository",
    "WorkScheduleRepository",
    "WorkScheduleRuleRepository",
    "AppointmentRepository",
    "UnitOfWork",
]
