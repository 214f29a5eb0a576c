"""
Work schedule resolution and management.

Turns a user's stored WorkSchedule into a ResolvedSchedule: rule blocks in
minutes, grouped by weekday for constant-time lookup. Users without an active
schedule fall back to the built-in standard business hours.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional, Any

from agenda.core.clock import Clock, get_zone
from agenda.core.config import Settings, get_settings
from agenda.core.exceptions import DuplicateException, NotFoundException, ValidationException
from agenda.models.enums import RuleType
from agenda.models.work_schedule import WorkSchedule, WorkScheduleRule
from agenda.repositories.unit_of_work import UnitOfWork
from agenda.services.base_service import BaseService
from agenda.services.calendar_utils import (
    DAY_NAMES,
    END_OF_DAY,
    parse_block_end,
    parse_time,
    weekday_of,
)

DEFAULT_SCHEDULE_NAME = "Standard Business Hours"

_WEEKDAYS = (1, 2, 3, 4, 5)

# (day_of_week, start, end, rule_type, is_working_time, allow_overlap, description)
DEFAULT_RULES = (
    [(day, "08:00", "12:00", RuleType.WORK, True, False, "Morning shift") for day in _WEEKDAYS]
    + [(day, "12:00", "13:00", RuleType.LUNCH, False, False, "Lunch break") for day in _WEEKDAYS]
    + [(day, "13:00", "18:00", RuleType.WORK, True, False, "Afternoon shift") for day in _WEEKDAYS]
    + [(day, "18:00", END_OF_DAY, RuleType.OVERTIME, False, True, "After hours (overtime)") for day in _WEEKDAYS]
    + [
        (0, "00:00", END_OF_DAY, RuleType.UNAVAILABLE, False, False, "Weekend - Sunday"),
        (6, "00:00", END_OF_DAY, RuleType.UNAVAILABLE, False, False, "Weekend - Saturday"),
    ]
)


@dataclass(frozen=True)
class RuleBlock:
    """A rule converted to minutes since midnight."""

    day_of_week: int
    start: int
    end: int
    start_time: str
    end_time: str
    rule_type: str
    is_working_time: bool
    allow_overlap: bool
    description: str = ""

    @property
    def is_hard_block(self) -> bool:
        """Non-working time that cannot be booked even with consent."""
        return not self.is_working_time and not self.allow_overlap

    @classmethod
    def build(cls, day_of_week, start_time, end_time, rule_type, is_working_time, allow_overlap, description=None):
        rule_type = rule_type.value if isinstance(rule_type, RuleType) else rule_type
        return cls(
            day_of_week=day_of_week,
            start=parse_time(start_time, "start_time"),
            end=parse_block_end(end_time, "end_time"),
            start_time=start_time,
            end_time=end_time,
            rule_type=rule_type,
            is_working_time=bool(is_working_time),
            allow_overlap=bool(allow_overlap),
            description=description or "",
        )

    @classmethod
    def from_rule(cls, rule: WorkScheduleRule) -> "RuleBlock":
        return cls.build(
            rule.day_of_week,
            rule.start_time,
            rule.end_time,
            rule.rule_type,
            rule.is_working_time,
            rule.allow_overlap,
            rule.description,
        )


@dataclass
class ResolvedSchedule:
    """A schedule with its blocks grouped by weekday."""

    name: str
    timezone: str
    rules_by_day: Dict[int, List[RuleBlock]] = field(default_factory=dict)
    schedule_id: Optional[int] = None
    user_id: Optional[int] = None
    is_default: bool = False

    def rules_for(self, day_of_week: int) -> List[RuleBlock]:
        return self.rules_by_day.get(day_of_week, [])

    @classmethod
    def from_blocks(cls, blocks: List[RuleBlock], **kwargs) -> "ResolvedSchedule":
        grouped: Dict[int, List[RuleBlock]] = defaultdict(list)
        for block in blocks:
            grouped[block.day_of_week].append(block)
        for day_blocks in grouped.values():
            day_blocks.sort(key=lambda b: (b.start, b.end))
        return cls(rules_by_day=dict(grouped), **kwargs)


def default_schedule(timezone: str, user_id: Optional[int] = None) -> ResolvedSchedule:
    """The built-in standard business hours."""
    blocks = [RuleBlock.build(*rule) for rule in DEFAULT_RULES]
    return ResolvedSchedule.from_blocks(
        blocks,
        name=DEFAULT_SCHEDULE_NAME,
        timezone=timezone,
        user_id=user_id,
        is_default=True,
    )


class WorkScheduleRules(BaseService):
    """
    Reads and maintains per-user weekly work schedules.

    Reads are pure; the management methods (create, rule CRUD, seeding)
    commit their own changes.
    """

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Optional[Clock] = None,
        settings: Optional[Settings] = None
    ):
        super().__init__(uow, clock, service_name="WORK_SCHEDULE_RULES")
        self.settings = settings or get_settings()

    # ========================================================================
    # Resolution
    # ========================================================================

    def get_user_work_schedule(self, user_id: Optional[int]) -> Optional[ResolvedSchedule]:
        """
        Load the active schedule of a user.

        Args:
            user_id: Owner; None means "no user", which has no schedule

        Returns:
            ResolvedSchedule, or None when the user has no active schedule
        """
        if user_id is None:
            return None
        schedule = self._ensure_uow().work_schedules.get_active_for_user(user_id)
        if schedule is None:
            return None
        return ResolvedSchedule.from_blocks(
            [RuleBlock.from_rule(rule) for rule in schedule.rules],
            name=schedule.name,
            timezone=schedule.timezone,
            schedule_id=schedule.id,
            user_id=user_id,
        )

    def resolve(self, user_id: Optional[int]) -> ResolvedSchedule:
        """User's schedule, or the built-in default when none is configured."""
        resolved = self.get_user_work_schedule(user_id)
        if resolved is None:
            self.logger.debug(f"No active work schedule for user {user_id}, using defaults")
            return default_schedule(self.settings.default_timezone, user_id)
        return resolved

    def available_time_slots(self, user_id: Optional[int], day: date) -> List[RuleBlock]:
        """Blocks of the given date's weekday, sorted by start time."""
        return list(self.resolve(user_id).rules_for(weekday_of(day)))

    # ========================================================================
    # Management
    # ========================================================================

    def get_schedule(self, schedule_id: int) -> WorkSchedule:
        return self._ensure_uow().work_schedules.get_or_fail(schedule_id)

    def list_schedules(self, user_id: int) -> List[WorkSchedule]:
        return self._ensure_uow().work_schedules.get_by_user(user_id)

    def create_schedule(
        self,
        user_id: int,
        name: str,
        timezone: Optional[str] = None,
        is_active: bool = True,
        rules: Optional[List[Dict[str, Any]]] = None
    ) -> WorkSchedule:
        """
        Create a schedule (and optionally its rules) for a user.

        Activating a new schedule deactivates the user's previous ones, so
        only one schedule is consulted at a time.

        Raises:
            NotFoundException: If the user does not exist
            ValidationException: If the timezone or a rule is malformed
        """
        uow = self._ensure_uow()
        uow.users.get_or_fail(user_id)
        timezone = timezone or self.settings.default_timezone
        get_zone(timezone)
        self._validate_required(name, "name")

        with uow:
            if is_active:
                for existing in uow.work_schedules.get_by_user(user_id):
                    existing.is_active = False
            schedule = uow.work_schedules.add(
                WorkSchedule(user_id=user_id, name=name, timezone=timezone, is_active=is_active)
            )
            for rule_data in rules or []:
                uow.rules.add(self._build_rule(schedule.id, rule_data))
            uow.commit()
        uow.refresh(schedule)
        self.logger.info(f"Created work schedule {schedule.id} for user {user_id} with {len(rules or [])} rules")
        return schedule

    def update_schedule(self, schedule_id: int, changes: Dict[str, Any]) -> WorkSchedule:
        uow = self._ensure_uow()
        schedule = uow.work_schedules.get_or_fail(schedule_id)
        if changes.get("timezone") is not None:
            get_zone(changes["timezone"])
        with uow:
            if changes.get("is_active"):
                for other in uow.work_schedules.get_by_user(schedule.user_id):
                    if other.id != schedule.id:
                        other.is_active = False
            for key, value in changes.items():
                if value is not None and hasattr(schedule, key):
                    setattr(schedule, key, value)
            uow.commit()
        uow.refresh(schedule)
        return schedule

    def delete_schedule(self, schedule_id: int) -> None:
        uow = self._ensure_uow()
        schedule = uow.work_schedules.get_or_fail(schedule_id)
        uow.work_schedules.delete(schedule)
        self.logger.info(f"Deleted work schedule {schedule_id}")

    def add_rule(self, schedule_id: int, rule_data: Dict[str, Any]) -> WorkScheduleRule:
        uow = self._ensure_uow()
        uow.work_schedules.get_or_fail(schedule_id)
        return uow.rules.create(self._build_rule(schedule_id, rule_data))

    def update_rule(self, rule_id: int, changes: Dict[str, Any]) -> WorkScheduleRule:
        uow = self._ensure_uow()
        rule = uow.rules.get_or_fail(rule_id)
        merged = {
            "day_of_week": rule.day_of_week,
            "start_time": rule.start_time,
            "end_time": rule.end_time,
            "rule_type": rule.rule_type,
            "is_working_time": rule.is_working_time,
            "allow_overlap": rule.allow_overlap,
            "description": rule.description,
        }
        merged.update({key: value for key, value in changes.items() if value is not None})
        self._check_rule(merged)
        return uow.rules.update_by_id(rule_id, merged)

    def delete_rule(self, rule_id: int) -> None:
        uow = self._ensure_uow()
        if not uow.rules.delete_by_id(rule_id):
            raise NotFoundException("WorkScheduleRule", rule_id)

    def seed_default_schedule(
        self,
        user_id: int,
        name: str = DEFAULT_SCHEDULE_NAME,
        timezone: Optional[str] = None
    ) -> WorkSchedule:
        """
        Materialise the standard business hours as real rows for a user.

        Raises:
            NotFoundException: If the user does not exist
            DuplicateException: If the user already has an active schedule
        """
        uow = self._ensure_uow()
        if uow.work_schedules.get_active_for_user(user_id) is not None:
            raise DuplicateException("WorkSchedule", "user_id", user_id)
        rules = [
            {
                "day_of_week": day,
                "start_time": start,
                "end_time": end,
                "rule_type": rule_type.value,
                "is_working_time": working,
                "allow_overlap": overlap,
                "description": description,
            }
            for day, start, end, rule_type, working, overlap, description in DEFAULT_RULES
        ]
        return self.create_schedule(user_id, name, timezone=timezone, rules=rules)

    def describe(self, resolved: ResolvedSchedule) -> Dict[str, List[str]]:
        """Human readable "HH:MM-HH:MM (type)" lines per weekday name."""
        return {
            DAY_NAMES[day]: [f"{b.start_time}-{b.end_time} ({b.rule_type})" for b in blocks]
            for day, blocks in sorted(resolved.rules_by_day.items())
        }

    # ========================================================================
    # Helpers
    # ========================================================================

    def _check_rule(self, data: Dict[str, Any]) -> RuleBlock:
        day = data.get("day_of_week")
        if not isinstance(day, int) or not 0 <= day <= 6:
            raise ValidationException("day_of_week must be between 0 (Sunday) and 6 (Saturday)", field="day_of_week")
        rule_type = data.get("rule_type")
        if rule_type not in {member.value for member in RuleType}:
            raise ValidationException(f"Invalid rule_type '{rule_type}'", field="rule_type")
        block = RuleBlock.build(
            day,
            data.get("start_time"),
            data.get("end_time"),
            rule_type,
            data.get("is_working_time", True),
            data.get("allow_overlap", False),
            data.get("description"),
        )
        if block.start >= block.end:
            raise ValidationException("start_time must be before end_time", field="end_time")
        return block

    def _build_rule(self, schedule_id: int, data: Dict[str, Any]) -> WorkScheduleRule:
        block = self._check_rule(data)
        return WorkScheduleRule(
            work_schedule_id=schedule_id,
            day_of_week=block.day_of_week,
            start_time=block.start_time,
            end_time=block.end_time,
            rule_type=block.rule_type,
            is_working_time=block.is_working_time,
            allow_overlap=block.allow_overlap,
            description=data.get("description"),
        )
