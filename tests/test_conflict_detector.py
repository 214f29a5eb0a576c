from agenda.services.conflict_detector import find_conflicts, suggest_free_slots
from agenda.services.work_schedule_rules import default_schedule
from tests.factories import MONDAY, TUESDAY, appointment_fields, make_appointment


def test_overlapping_appointment_is_reported():
    existing = [make_appointment(1, MONDAY, "09:00", 60)]

    conflicts = find_conflicts(MONDAY, "09:30", 30, existing)

    assert [c.id for c in conflicts] == [1]


def test_conflict_is_symmetric():
    a = make_appointment(1, MONDAY, "09:00", 60)
    b = make_appointment(2, MONDAY, "09:45", 30)

    assert find_conflicts(MONDAY, b.start_time, b.duration_minutes, [a]) == [a]
    assert find_conflicts(MONDAY, a.start_time, a.duration_minutes, [b]) == [b]


def test_touching_intervals_do_not_conflict():
    existing = [
        make_appointment(1, MONDAY, "09:00", 60),
        make_appointment(2, MONDAY, "11:00", 30),
    ]

    assert find_conflicts(MONDAY, "10:00", 60, existing) == []


def test_other_dates_are_ignored():
    existing = [make_appointment(1, TUESDAY, "09:00", 60)]

    assert find_conflicts(MONDAY, "09:00", 60, existing) == []


def test_cancelled_templates_and_excluded_rows_are_ignored():
    existing = [
        make_appointment(1, MONDAY, "09:00", 60, status="cancelled"),
        make_appointment(2, MONDAY, "09:00", 60, is_recurring_template=True),
        make_appointment(3, MONDAY, "09:00", 60),
    ]

    assert find_conflicts(MONDAY, "09:00", 60, existing, exclude_ids=[3]) == []


def test_conflicts_are_ordered_by_start():
    existing = [
        make_appointment(1, MONDAY, "10:00", 30),
        make_appointment(2, MONDAY, "09:00", 90),
    ]

    conflicts = find_conflicts(MONDAY, "09:00", 120, existing)

    assert [c.id for c in conflicts] == [2, 1]


def test_free_slots_are_nearest_first_and_inside_working_hours():
    blocks = default_schedule("America/Sao_Paulo").rules_for(1)
    occupied = [make_appointment(1, MONDAY, "09:00", 60)]

    slots = suggest_free_slots(60, blocks, occupied, around=9 * 60)

    assert slots == ["08:00", "10:00", "10:15", "10:30", "10:45"]


def test_free_slots_skip_lunch():
    blocks = default_schedule("America/Sao_Paulo").rules_for(1)

    slots = suggest_free_slots(60, blocks, [], around=12 * 60 + 15, limit=3)

    assert "12:00" not in slots
    assert "12:15" not in slots
    assert slots == ["13:00", "13:15", "11:00"]


def test_no_free_slots_on_days_without_working_blocks():
    blocks = default_schedule("America/Sao_Paulo").rules_for(6)

    assert suggest_free_slots(30, blocks, [], around=600) == []


def test_detector_reads_same_day_rows(scheduler):
    scheduler.create_appointment(appointment_fields(MONDAY, "09:00", 60))
    scheduler.create_appointment(appointment_fields(TUESDAY, "09:00", 60))

    conflicts = scheduler.detector.find_conflicts(MONDAY, "09:15", 15)

    assert len(conflicts) == 1
    assert conflicts[0].date == MONDAY
