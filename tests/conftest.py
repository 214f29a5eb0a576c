"""
Shared fixtures: in-memory SQLite, a pinned clock and a TestClient whose
database session and clock are swapped through dependency overrides.
"""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from agenda.core.clock import FixedClock
from agenda.core.config import get_settings
from agenda.core.database import get_db
from agenda.core.dependencies import get_clock
from agenda.main import create_app
from agenda.models import Base
from agenda.repositories import UnitOfWork
from agenda.services.appointment_scheduler import AppointmentScheduler
from agenda.services.recurrence_expander import RecurringAppointmentService
from agenda.services.timer_service import TimerService
from agenda.services.work_schedule_rules import WorkScheduleRules
from agenda.services.work_schedule_validator import WorkScheduleValidator


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    yield session
    session.close()


@pytest.fixture
def clock():
    # 12:00 in America/Sao_Paulo on Friday 2025-08-08
    return FixedClock(datetime(2025, 8, 8, 15, 0, tzinfo=timezone.utc))


@pytest.fixture
def settings():
    return get_settings()


@pytest.fixture
def uow(db):
    return UnitOfWork(db)


@pytest.fixture
def rules(uow, clock, settings):
    return WorkScheduleRules(uow, clock, settings)


@pytest.fixture
def validator(rules):
    return WorkScheduleValidator(rules)


@pytest.fixture
def scheduler(uow, clock, settings):
    return AppointmentScheduler(uow, clock, settings)


@pytest.fixture
def recurring(scheduler):
    return RecurringAppointmentService(scheduler.uow, scheduler.clock, scheduler.settings, scheduler)


@pytest.fixture
def timer(uow, clock, settings):
    return TimerService(uow, clock, settings)


@pytest.fixture
def user(uow):
    return uow.users.create_user({"name": "Ana Souza", "email": "ana@example.com"})


@pytest.fixture
def client(db, clock):
    app = create_app(initialize_database=False)

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: clock
    with TestClient(app) as test_client:
        yield test_client
