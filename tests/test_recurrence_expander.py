from datetime import date

import pytest

from agenda.core.exceptions import NotFoundException, ValidationException
from agenda.services.recurrence_expander import expand, roll_forward
from tests.factories import FRIDAY, MONDAY, SATURDAY, SUNDAY, TUESDAY, WEDNESDAY, THURSDAY, appointment_fields


class TestExpand:

    def test_daily_count(self):
        dates = expand(MONDAY, "daily", count=3)
        assert dates == [MONDAY, TUESDAY, WEDNESDAY]

    def test_weekly_until_end_date_is_inclusive(self):
        dates = expand("2025-08-11", "weekly", end_date="2025-09-01")
        assert dates == [date(2025, 8, 11), date(2025, 8, 18), date(2025, 8, 25), date(2025, 9, 1)]

    def test_monthly_clamps_without_drift(self):
        dates = expand("2025-01-31", "monthly", count=4)
        assert dates == [date(2025, 1, 31), date(2025, 2, 28), date(2025, 3, 31), date(2025, 4, 30)]

    def test_yearly_from_leap_day(self):
        dates = expand("2024-02-29", "yearly", count=2)
        assert dates == [date(2024, 2, 29), date(2025, 2, 28)]

    def test_interval(self):
        dates = expand(MONDAY, "daily", interval=2, count=3)
        assert dates == [MONDAY, WEDNESDAY, date(2025, 8, 15)]

    @pytest.mark.parametrize("kwargs", [
        {"pattern": "hourly", "count": 3},
        {"pattern": "daily", "interval": 0, "count": 3},
        {"pattern": "daily", "interval": 366, "count": 3},
        {"pattern": "daily"},
        {"pattern": "daily", "count": 3, "end_date": "2025-09-01"},
        {"pattern": "daily", "count": 0},
        {"pattern": "daily", "count": 1001},
        {"pattern": "daily", "end_date": "2025-08-11"},
    ])
    def test_invalid_parameters(self, kwargs):
        with pytest.raises(ValidationException):
            expand(MONDAY, **kwargs)


class TestRollForward:

    def test_weekday_is_kept(self):
        assert roll_forward(MONDAY, set()) == (MONDAY, None)

    def test_weekend_moves_to_next_free_business_day(self):
        assert roll_forward(SATURDAY, set()) == (MONDAY, SATURDAY)
        assert roll_forward(SUNDAY, {MONDAY}) == (TUESDAY, SUNDAY)


def test_daily_series_from_friday(recurring):
    series = recurring.create_recurring(appointment_fields(FRIDAY, "09:00", 60), "daily", count=7)

    reports = series.occurrences
    assert len(reports) == 7
    assert [r.scheduled_date for r in reports] == [
        FRIDAY, MONDAY, TUESDAY, MONDAY, TUESDAY, WEDNESDAY, THURSDAY,
    ]
    assert [r.status for r in reports] == ["created"] * 7
    assert reports[1].original_date == SATURDAY
    assert reports[2].original_date == SUNDAY

    # rolled occurrences share Monday and Tuesday with the regular ones
    assert len(series.instances) == 7
    assert [i.date for i in series.instances].count(MONDAY) == 2
    moved = [i for i in series.instances if i.was_rescheduled_from_weekend]
    assert [i.original_date for i in moved] == [SATURDAY, SUNDAY]
    assert all(i.recurring_task_id == series.recurring_task_id for i in series.instances)
    assert series.template.is_recurring_template
    assert series.template.recurring_task_id == series.template.id


def test_series_never_lands_on_weekends(recurring):
    series = recurring.create_recurring(appointment_fields(MONDAY, "09:00", 30), "daily", count=10)

    assert all(i.date.weekday() < 5 for i in series.instances)


def test_weekly_series_creates_every_occurrence(recurring, scheduler):
    series = recurring.create_recurring(appointment_fields(MONDAY, "14:00", 60), "weekly", count=4)

    assert len(series.instances) == 4
    assert {i.date.weekday() for i in series.instances} == {0}
    # the template is not a calendar entry
    assert len(scheduler.list_appointments(appointment_date=MONDAY.isoformat())) == 1


def test_template_does_not_block_its_own_start_date(recurring, scheduler):
    recurring.create_recurring(appointment_fields(MONDAY, "09:00", 60), "weekly", count=2)

    series_rows = scheduler.list_appointments(appointment_date=MONDAY.isoformat())

    assert len(series_rows) == 1
    assert not series_rows[0].is_recurring_template


def test_occurrence_on_lunch_is_skipped(recurring):
    series = recurring.create_recurring(appointment_fields(MONDAY, "12:00", 30), "daily", count=2)

    assert series.instances == []
    assert {r.reason for r in series.occurrences} == {"work_schedule_violation"}
    # the template survives so the series can be deleted as a whole
    assert recurring.get_series(series.recurring_task_id).template.id == series.template.id


def test_get_and_delete_series(recurring, scheduler):
    series = recurring.create_recurring(appointment_fields(MONDAY, "09:00", 60), "daily", count=3)

    fetched = recurring.get_series(series.recurring_task_id)
    assert len(fetched.instances) == 3

    deleted = recurring.delete_series(series.recurring_task_id)
    assert deleted == 4
    assert scheduler.list_appointments() == []
    with pytest.raises(NotFoundException):
        recurring.get_series(series.recurring_task_id)
    with pytest.raises(NotFoundException):
        recurring.delete_series(series.recurring_task_id)


def test_delete_single_instance_keeps_siblings(recurring):
    series = recurring.create_recurring(appointment_fields(MONDAY, "09:00", 60), "daily", count=3)
    first = series.instances[0]

    assert recurring.delete_instance(first.id) == 1

    remaining = recurring.get_series(series.recurring_task_id).instances
    assert [i.date for i in remaining] == [TUESDAY, WEDNESDAY]


def test_delete_instance_with_delete_all(recurring):
    series = recurring.create_recurring(appointment_fields(MONDAY, "09:00", 60), "daily", count=3)

    assert recurring.delete_instance(series.instances[1].id, delete_all=True) == 4


def test_update_series_moves_every_instance(recurring):
    series = recurring.create_recurring(appointment_fields(MONDAY, "09:00", 60), "daily", count=3)

    reports = recurring.update_series(series.recurring_task_id, {"start_time": "10:00", "title": "Sync"})

    assert [r.outcome for r in reports] == ["accepted"] * 3
    updated = recurring.get_series(series.recurring_task_id)
    assert updated.template.start_time == "10:00"
    assert updated.template.end_time == "11:00"
    assert all(i.start_time == "10:00" and i.title == "Sync" for i in updated.instances)
    assert all(i.reschedule_count == 1 for i in updated.instances)


def test_update_series_reports_rejected_instances(recurring, scheduler):
    series = recurring.create_recurring(appointment_fields(MONDAY, "09:00", 60), "daily", count=2)
    scheduler.create_appointment(appointment_fields(TUESDAY, "15:00", 60, title="Review"))

    reports = recurring.update_series(series.recurring_task_id, {"start_time": "15:00"})

    assert [r.outcome for r in reports] == ["accepted", "rejected"]
    assert "Review" in reports[1].message


def test_series_still_conflicts_with_other_appointments(recurring, scheduler):
    scheduler.create_appointment(appointment_fields(MONDAY, "09:00", 60, title="Standup"))

    series = recurring.create_recurring(appointment_fields(FRIDAY, "09:00", 60), "daily", count=7)

    skipped = [r for r in series.occurrences if r.status == "skipped"]
    # both rolled occurrences and the regular Monday hit the standup
    assert [r.scheduled_date for r in skipped] == [MONDAY, MONDAY, MONDAY]
    assert {r.reason for r in skipped} == {"time_conflict"}
    assert [i.date for i in series.instances] == [FRIDAY, TUESDAY, WEDNESDAY, THURSDAY]


def test_update_series_moves_instances_sharing_a_day(recurring):
    series = recurring.create_recurring(appointment_fields(FRIDAY, "09:00", 60), "daily", count=7)

    reports = recurring.update_series(series.recurring_task_id, {"start_time": "14:00"})

    assert [r.outcome for r in reports] == ["accepted"] * 7
    updated = recurring.get_series(series.recurring_task_id).instances
    assert all(i.start_time == "14:00" for i in updated)
