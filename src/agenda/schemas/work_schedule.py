"""
Work Schedule Pydantic Schemas
"""

from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator

from agenda.models.enums import RuleType


VALID_RULE_TYPES = {member.value for member in RuleType}


def _check_rule_type(v):
    if v is None:
        return v
    if v not in VALID_RULE_TYPES:
        raise ValueError("rule_type must be work, overtime, lunch, break, or unavailable")
    return v


class WorkScheduleRuleBase(BaseModel):
    """Base rule fields. Times are HH:MM; an end of 23:59 means midnight."""

    day_of_week: int = Field(..., ge=0, le=6, description="0=Sunday .. 6=Saturday")
    start_time: str = Field(..., min_length=5, max_length=5)
    end_time: str = Field(..., min_length=5, max_length=5)
    rule_type: str = Field(..., description="work, overtime, lunch, break, or unavailable")
    is_working_time: bool = True
    allow_overlap: bool = False
    description: Optional[str] = None

    @field_validator("rule_type")
    @classmethod
    def validate_rule_type(cls, v):
        return _check_rule_type(v)


class CreateWorkScheduleRuleRequest(WorkScheduleRuleBase):
    """Request schema for adding a rule to a schedule."""


class UpdateWorkScheduleRuleRequest(BaseModel):
    """Request schema for updating a rule."""

    day_of_week: Optional[int] = Field(None, ge=0, le=6)
    start_time: Optional[str] = Field(None, min_length=5, max_length=5)
    end_time: Optional[str] = Field(None, min_length=5, max_length=5)
    rule_type: Optional[str] = None
    is_working_time: Optional[bool] = None
    allow_overlap: Optional[bool] = None
    description: Optional[str] = None

    @field_validator("rule_type")
    @classmethod
    def validate_rule_type(cls, v):
        return _check_rule_type(v)


class WorkScheduleRuleResponse(WorkScheduleRuleBase):
    """Response schema for a rule."""

    id: int
    work_schedule_id: int

    model_config = ConfigDict(from_attributes=True)


class CreateWorkScheduleRequest(BaseModel):
    """Request schema for creating a work schedule."""

    user_id: int
    name: str = Field(..., min_length=1, max_length=255)
    timezone: Optional[str] = Field(None, max_length=100, description="IANA zone, defaults to the configured zone")
    is_active: bool = True
    rules: List[CreateWorkScheduleRuleRequest] = Field(default_factory=list)


class UpdateWorkScheduleRequest(BaseModel):
    """Request schema for updating a work schedule."""

    name: Optional[str] = Field(None, min_length=1, max_length=255)
    timezone: Optional[str] = Field(None, max_length=100)
    is_active: Optional[bool] = None


class SeedDefaultScheduleRequest(BaseModel):
    """Request schema for materialising the standard business hours."""

    user_id: int
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    timezone: Optional[str] = Field(None, max_length=100)


class WorkScheduleResponse(BaseModel):
    """Response schema for a work schedule with its rules."""

    id: int
    user_id: int
    name: str
    timezone: str
    is_active: bool
    rules: List[WorkScheduleRuleResponse] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TimeSlotResponse(BaseModel):
    """One block of a day."""

    start_time: str
    end_time: str
    rule_type: str
    is_working_time: bool
    allow_overlap: bool
    description: str = ""

    model_config = ConfigDict(from_attributes=True)


class TimeSlotListResponse(BaseModel):
    date: str
    day_of_week: int
    slots: List[TimeSlotResponse]


class ResolvedScheduleResponse(BaseModel):
    """Schedule actually applied to a user (theirs or the default)."""

    name: str
    timezone: str
    is_default: bool
    schedule_id: Optional[int] = None
    user_id: Optional[int] = None
    days: Dict[int, List[TimeSlotResponse]]
