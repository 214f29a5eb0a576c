import pytest

from agenda.core.exceptions import DuplicateException, NotFoundException, ValidationException
from agenda.services.work_schedule_rules import DEFAULT_SCHEDULE_NAME
from tests.factories import MONDAY, SATURDAY


def test_user_without_schedule_falls_back_to_defaults(rules, user):
    assert rules.get_user_work_schedule(user.id) is None

    resolved = rules.resolve(user.id)

    assert resolved.is_default
    assert resolved.timezone == "America/Sao_Paulo"
    assert [b.start_time for b in resolved.rules_for(1)] == ["08:00", "12:00", "13:00", "18:00"]
    assert resolved.rules_for(6)[0].rule_type == "unavailable"


def test_after_hours_block_is_typed_overtime(rules, user):
    resolved = rules.resolve(user.id)
    after_hours = resolved.rules_for(1)[-1]

    assert after_hours.rule_type == "overtime"
    assert not after_hours.is_working_time and after_hours.allow_overlap
    assert rules.describe(resolved)["Monday"] == [
        "08:00-12:00 (work)", "12:00-13:00 (lunch)", "13:00-18:00 (work)", "18:00-23:59 (overtime)",
    ]


def test_seed_default_schedule_creates_rows(rules, user):
    schedule = rules.seed_default_schedule(user.id)

    assert schedule.name == DEFAULT_SCHEDULE_NAME
    assert len(schedule.rules) == 22

    resolved = rules.get_user_work_schedule(user.id)
    assert not resolved.is_default
    assert resolved.schedule_id == schedule.id
    lunch = [b for b in resolved.rules_for(3) if b.rule_type == "lunch"]
    assert lunch[0].start == 720 and lunch[0].end == 780
    assert resolved.rules_for(5)[-1].end == 1440


def test_seed_twice_is_duplicate(rules, user):
    rules.seed_default_schedule(user.id)
    with pytest.raises(DuplicateException):
        rules.seed_default_schedule(user.id)


def test_seed_for_unknown_user(rules):
    with pytest.raises(NotFoundException):
        rules.seed_default_schedule(999)


def test_new_active_schedule_replaces_previous(rules, user):
    first = rules.create_schedule(user.id, "First")
    second = rules.create_schedule(user.id, "Second", rules=[
        {"day_of_week": 1, "start_time": "10:00", "end_time": "16:00", "rule_type": "work"},
    ])

    rules.uow.refresh(first)
    assert not first.is_active
    assert rules.get_user_work_schedule(user.id).schedule_id == second.id


def test_available_time_slots_sorted_by_start(rules, user):
    schedule = rules.create_schedule(user.id, "Custom")
    rules.add_rule(schedule.id, {"day_of_week": 1, "start_time": "13:00", "end_time": "17:00", "rule_type": "work"})
    rules.add_rule(schedule.id, {"day_of_week": 1, "start_time": "09:00", "end_time": "12:00", "rule_type": "work"})

    slots = rules.available_time_slots(user.id, MONDAY)

    assert [s.start_time for s in slots] == ["09:00", "13:00"]
    assert rules.available_time_slots(user.id, SATURDAY) == []


@pytest.mark.parametrize("rule", [
    {"day_of_week": 7, "start_time": "08:00", "end_time": "12:00", "rule_type": "work"},
    {"day_of_week": 1, "start_time": "12:00", "end_time": "08:00", "rule_type": "work"},
    {"day_of_week": 1, "start_time": "8:00", "end_time": "12:00", "rule_type": "work"},
    {"day_of_week": 1, "start_time": "08:00", "end_time": "12:00", "rule_type": "nap"},
])
def test_invalid_rules_are_rejected(rules, user, rule):
    schedule = rules.create_schedule(user.id, "Custom")
    with pytest.raises(ValidationException):
        rules.add_rule(schedule.id, rule)


def test_unknown_timezone_is_rejected(rules, user):
    with pytest.raises(ValidationException):
        rules.create_schedule(user.id, "Somewhere", timezone="Mars/Olympus_Mons")


def test_update_and_delete_rule(rules, user):
    schedule = rules.seed_default_schedule(user.id)
    lunch = next(r for r in schedule.rules if r.day_of_week == 1 and r.rule_type == "lunch")

    updated = rules.update_rule(lunch.id, {"start_time": "11:30", "end_time": "12:30"})
    assert updated.start_time == "11:30"

    rules.delete_rule(lunch.id)
    with pytest.raises(NotFoundException):
        rules.delete_rule(lunch.id)
