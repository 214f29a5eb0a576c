import pytest

from agenda.core.exceptions import InvalidStateException, NotFoundException
from tests.factories import FRIDAY, MONDAY, appointment_fields


@pytest.fixture
def appointment(scheduler):
    return scheduler.create_appointment(appointment_fields(MONDAY, "09:00", 60)).appointment


def test_start_pause_resume_complete(timer, clock, appointment):
    timer.start(appointment.id)
    clock.advance(minutes=20)
    paused = timer.pause(appointment.id)
    assert paused.timer_state == "paused"
    assert paused.accumulated_time_minutes == 20

    clock.advance(minutes=30)
    assert timer.status(appointment.id).current_time_minutes == 20

    timer.resume(appointment.id)
    clock.advance(minutes=15)
    assert timer.status(appointment.id).current_time_minutes == 35

    completed = timer.complete(appointment.id)
    assert completed.status == "completed"
    assert completed.timer_state == "stopped"
    assert completed.actual_time_minutes == 35
    assert completed.completed_at is not None


def test_complete_without_timer_records_planned_duration(timer, appointment):
    completed = timer.complete(appointment.id)

    assert completed.actual_time_minutes == 60


def test_invalid_transitions(timer, appointment):
    with pytest.raises(InvalidStateException):
        timer.pause(appointment.id)
    with pytest.raises(InvalidStateException):
        timer.resume(appointment.id)

    timer.start(appointment.id)
    with pytest.raises(InvalidStateException):
        timer.start(appointment.id)


def test_reset_clears_time(timer, clock, appointment):
    timer.start(appointment.id)
    clock.advance(minutes=10)
    timer.pause(appointment.id)

    reset = timer.reset(appointment.id)

    assert reset.timer_state == "stopped"
    assert reset.accumulated_time_minutes == 0
    assert timer.status(appointment.id).current_time_minutes == 0


def test_elapsed_time_is_clamped_to_a_day(timer, clock, appointment):
    timer.start(appointment.id)
    clock.advance(days=3)

    assert timer.status(appointment.id).current_time_minutes == 1440


def test_missing_appointment(timer):
    with pytest.raises(NotFoundException):
        timer.start(404)


def test_auto_complete_finished_pomodoros(timer, scheduler):
    # the clock reads 12:00 local time on FRIDAY
    finished = scheduler.create_appointment(appointment_fields(FRIDAY, "11:00", 25, is_pomodoro=True)).appointment
    running = scheduler.create_appointment(appointment_fields(FRIDAY, "11:45", 25, is_pomodoro=True)).appointment
    regular = scheduler.create_appointment(appointment_fields(FRIDAY, "08:00", 60)).appointment

    completed = timer.auto_complete_pomodoros()

    assert [a.id for a in completed] == [finished.id]
    assert scheduler.get_appointment(finished.id).actual_time_minutes == 25
    assert scheduler.get_appointment(running.id).status == "scheduled"
    assert scheduler.get_appointment(regular.id).status == "scheduled"
