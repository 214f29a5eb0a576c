"""
FastAPI dependency providers.

Routers never build services themselves; they ask for them here so tests
can swap the database session and the clock through dependency overrides.
"""

from typing import Generator
from contextlib import contextmanager
from sqlalchemy.orm import Session
from fastapi import Depends

from agenda.core.clock import Clock, SystemClock
from agenda.core.config import get_settings, Settings
from agenda.core.database import get_db, get_engine, SessionLocal
import logging

logger = logging.getLogger('CORE_DEPENDENCIES')

_system_clock = SystemClock()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Context manager for database sessions outside request handling.

    Example:
        with get_db_context() as db:
            uow = UnitOfWork(db)
            ...
    """
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ============================================================================
# Configuration Dependencies
# ============================================================================

def get_app_settings() -> Settings:
    return get_settings()


def get_clock() -> Clock:
    """
    Get the time provider.

    Returns:
        Clock: The system clock (overridden with a FixedClock in tests)
    """
    return _system_clock


# ============================================================================
# Unit of Work Dependencies
# ============================================================================

def get_uow(db: Session = Depends(get_db)):
    """
    Get Unit of Work instance for coordinating transactions.

    Args:
        db: Database session (automatically injected)

    Returns:
        UnitOfWork: Coordinated repository access
    """
    from agenda.repositories import UnitOfWork
    return UnitOfWork(db)


# ============================================================================
# Service Dependencies
# ============================================================================

def get_work_schedule_rules(
    uow=Depends(get_uow),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings)
):
    from agenda.services.work_schedule_rules import WorkScheduleRules
    return WorkScheduleRules(uow, clock, settings)


def get_appointment_scheduler(
    uow=Depends(get_uow),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings)
):
    """
    Get AppointmentScheduler instance.

    Returns:
        AppointmentScheduler: Single appointment decisions and writes

    Example:
        @router.post("/appointments")
        async def create(
            request: CreateAppointmentRequest,
            scheduler: AppointmentScheduler = Depends(get_appointment_scheduler)
        ):
            return scheduler.create_appointment(request.model_dump())
    """
    from agenda.services.appointment_scheduler import AppointmentScheduler
    return AppointmentScheduler(uow, clock, settings)


def get_recurring_service(
    scheduler=Depends(get_appointment_scheduler),
):
    from agenda.services.recurrence_expander import RecurringAppointmentService
    return RecurringAppointmentService(scheduler.uow, scheduler.clock, scheduler.settings, scheduler)


def get_timer_service(
    uow=Depends(get_uow),
    clock: Clock = Depends(get_clock),
    settings: Settings = Depends(get_app_settings)
):
    from agenda.services.timer_service import TimerService
    return TimerService(uow, clock, settings)
