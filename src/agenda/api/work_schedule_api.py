"""
Work Schedules API

Schedule and rule CRUD, the schedule actually applied to a user, the
blocks of a given date and seeding of the standard business hours.
"""

from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
import logging

from agenda.api.errors import to_http_exception
from agenda.core.dependencies import get_work_schedule_rules
from agenda.core.exceptions import ApplicationException
from agenda.schemas.work_schedule import (
    CreateWorkScheduleRequest,
    CreateWorkScheduleRuleRequest,
    ResolvedScheduleResponse,
    SeedDefaultScheduleRequest,
    TimeSlotListResponse,
    TimeSlotResponse,
    UpdateWorkScheduleRequest,
    UpdateWorkScheduleRuleRequest,
    WorkScheduleResponse,
    WorkScheduleRuleResponse,
)
from agenda.services.calendar_utils import parse_date, weekday_of
from agenda.services.work_schedule_rules import DEFAULT_SCHEDULE_NAME, WorkScheduleRules

logger = logging.getLogger("WORK_SCHEDULE_API")

router = APIRouter(
    prefix="/work-schedules",
    tags=["Work Schedules"]
)


@router.get("", response_model=List[WorkScheduleResponse])
async def list_work_schedules(
    user_id: int,
    rules: WorkScheduleRules = Depends(get_work_schedule_rules)
):
    return [WorkScheduleResponse.model_validate(s) for s in rules.list_schedules(user_id)]


@router.post("", response_model=WorkScheduleResponse, status_code=status.HTTP_201_CREATED)
async def create_work_schedule(
    request: CreateWorkScheduleRequest,
    rules: WorkScheduleRules = Depends(get_work_schedule_rules)
):
    try:
        schedule = rules.create_schedule(
            request.user_id,
            request.name,
            timezone=request.timezone,
            is_active=request.is_active,
            rules=[rule.model_dump() for rule in request.rules],
        )
    except ApplicationException as e:
        raise to_http_exception(e)
    return WorkScheduleResponse.model_validate(schedule)


@router.post("/default", response_model=WorkScheduleResponse, status_code=status.HTTP_201_CREATED)
async def seed_default_work_schedule(
    request: SeedDefaultScheduleRequest,
    rules: WorkScheduleRules = Depends(get_work_schedule_rules)
):
    """Create the standard business hours (Mon-Fri 08-12, 13-18) for a user."""
    try:
        schedule = rules.seed_default_schedule(
            request.user_id,
            name=request.name or DEFAULT_SCHEDULE_NAME,
            timezone=request.timezone,
        )
    except ApplicationException as e:
        raise to_http_exception(e)
    return WorkScheduleResponse.model_validate(schedule)


@router.get("/resolved", response_model=ResolvedScheduleResponse)
async def get_resolved_schedule(
    user_id: Optional[int] = None,
    rules: WorkScheduleRules = Depends(get_work_schedule_rules)
):
    """The schedule validation applies to a user: their own or the default."""
    try:
        resolved = rules.resolve(user_id)
    except ApplicationException as e:
        raise to_http_exception(e)
    return ResolvedScheduleResponse(
        name=resolved.name,
        timezone=resolved.timezone,
        is_default=resolved.is_default,
        schedule_id=resolved.schedule_id,
        user_id=resolved.user_id,
        days={
            day: [TimeSlotResponse.model_validate(block) for block in blocks]
            for day, blocks in resolved.rules_by_day.items()
        },
    )


@router.get("/slots", response_model=TimeSlotListResponse)
async def get_time_slots(
    date: str,
    user_id: Optional[int] = None,
    rules: WorkScheduleRules = Depends(get_work_schedule_rules)
):
    """Blocks of the given date's weekday, sorted by start time."""
    try:
        day = parse_date(date)
        blocks = rules.available_time_slots(user_id, day)
    except ApplicationException as e:
        raise to_http_exception(e)
    return TimeSlotListResponse(
        date=day.isoformat(),
        day_of_week=weekday_of(day),
        slots=[TimeSlotResponse.model_validate(block) for block in blocks],
    )


@router.get("/{schedule_id}", response_model=WorkScheduleResponse)
async def get_work_schedule(
    schedule_id: int,
    rules: WorkScheduleRules = Depends(get_work_schedule_rules)
):
    schedule = rules.uow.work_schedules.get(schedule_id)
    if not schedule:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Work schedule not found")
    return WorkScheduleResponse.model_validate(schedule)


@router.patch("/{schedule_id}", response_model=WorkScheduleResponse)
async def update_work_schedule(
    schedule_id: int,
    request: UpdateWorkScheduleRequest,
    rules: WorkScheduleRules = Depends(get_work_schedule_rules)
):
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    try:
        schedule = rules.update_schedule(schedule_id, updates)
    except ApplicationException as e:
        raise to_http_exception(e)
    return WorkScheduleResponse.model_validate(schedule)


@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_work_schedule(
    schedule_id: int,
    rules: WorkScheduleRules = Depends(get_work_schedule_rules)
):
    try:
        rules.delete_schedule(schedule_id)
    except ApplicationException as e:
        raise to_http_exception(e)


@router.post(
    "/{schedule_id}/rules",
    response_model=WorkScheduleRuleResponse,
    status_code=status.HTTP_201_CREATED
)
async def add_work_schedule_rule(
    schedule_id: int,
    request: CreateWorkScheduleRuleRequest,
    rules: WorkScheduleRules = Depends(get_work_schedule_rules)
):
    try:
        rule = rules.add_rule(schedule_id, request.model_dump())
    except ApplicationException as e:
        raise to_http_exception(e)
    return WorkScheduleRuleResponse.model_validate(rule)


@router.patch("/rules/{rule_id}", response_model=WorkScheduleRuleResponse)
async def update_work_schedule_rule(
    rule_id: int,
    request: UpdateWorkScheduleRuleRequest,
    rules: WorkScheduleRules = Depends(get_work_schedule_rules)
):
    updates = request.model_dump(exclude_unset=True)
    if not updates:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update")
    try:
        rule = rules.update_rule(rule_id, updates)
    except ApplicationException as e:
        raise to_http_exception(e)
    return WorkScheduleRuleResponse.model_validate(rule)


@router.delete("/rules/{rule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_work_schedule_rule(
    rule_id: int,
    rules: WorkScheduleRules = Depends(get_work_schedule_rules)
):
    try:
        rules.delete_rule(rule_id)
    except ApplicationException as e:
        raise to_http_exception(e)
