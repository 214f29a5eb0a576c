"""
Appointment Pydantic Schemas

Dates are ``YYYY-MM-DD`` strings and times ``HH:MM`` strings; their format
is checked by the services, which report malformed values as 400 errors.
"""

from datetime import date as date_type, datetime
from typing import List, Optional, Literal
from pydantic import BaseModel, Field, ConfigDict, field_validator

from agenda.models.enums import AppointmentStatus, RecurrencePattern


VALID_STATUSES = {member.value for member in AppointmentStatus}
VALID_RECURRENCE_PATTERNS = {member.value for member in RecurrencePattern}


class AppointmentBase(BaseModel):
    """Fields shared by single and recurring appointment requests."""

    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    date: str = Field(..., description="YYYY-MM-DD")
    start_time: str = Field(..., description="HH:MM (24h)")
    duration_minutes: int = Field(..., gt=0, le=1440)
    assigned_user_id: Optional[int] = None
    is_pomodoro: bool = False


class CreateAppointmentRequest(AppointmentBase):
    """Request schema for creating an appointment."""

    allow_overlap: bool = Field(False, description="Consent to overlap another appointment or work overtime")
    allow_weekend_override: bool = Field(False, description="User confirmed a weekend appointment")


class UpdateAppointmentRequest(BaseModel):
    """Request schema for editing an appointment."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    date: Optional[str] = None
    start_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0, le=1440)
    assigned_user_id: Optional[int] = None
    is_pomodoro: Optional[bool] = None
    status: Optional[str] = None
    allow_overlap: Optional[bool] = None
    allow_weekend_override: bool = False

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v is None:
            return v
        if v not in VALID_STATUSES:
            raise ValueError("status must be scheduled, completed, delayed, rescheduled, or cancelled")
        return v


class ValidateAppointmentRequest(BaseModel):
    """Request schema for a dry-run work schedule validation."""

    user_id: Optional[int] = None
    date: str
    start_time: str
    duration_minutes: int = Field(..., gt=0, le=1440)
    is_pomodoro: bool = False
    allow_weekend_override: bool = False


class ValidationResultResponse(BaseModel):
    is_valid: bool
    is_within_work_hours: bool
    is_overtime: bool
    violation: Optional[str] = None
    message: str
    suggested_time: Optional[str] = None
    suggested_date: Optional[str] = None
    day_type: Optional[str] = None
    overridable: bool = False

    model_config = ConfigDict(from_attributes=True)


class ConflictCheckRequest(BaseModel):
    """Request schema for a conflict lookup."""

    date: str
    start_time: str
    duration_minutes: int = Field(..., gt=0, le=1440)
    exclude_id: Optional[int] = None
    user_id: Optional[int] = Field(None, description="Whose working hours bound the free slot suggestions")


class ConflictingAppointment(BaseModel):
    id: int
    title: str
    date: date_type
    start_time: str
    end_time: str
    duration_minutes: int
    status: str

    model_config = ConfigDict(from_attributes=True)


class ConflictCheckResponse(BaseModel):
    has_conflicts: bool
    conflicts: List[ConflictingAppointment]
    free_slots: List[str] = Field(default_factory=list)


class AppointmentResponse(BaseModel):
    """Response schema for an appointment."""

    id: int
    title: str
    description: Optional[str] = None
    date: date_type
    start_time: str
    duration_minutes: int
    end_time: str
    status: str
    assigned_user_id: Optional[int] = None
    is_pomodoro: bool
    allow_overlap: bool
    is_within_work_hours: bool
    is_overtime: bool
    work_schedule_violation: Optional[str] = None
    reschedule_count: int
    completed_at: Optional[datetime] = None
    timer_state: str
    accumulated_time_minutes: int
    actual_time_minutes: Optional[int] = None
    is_recurring: bool
    recurrence_pattern: Optional[str] = None
    recurrence_interval: Optional[int] = None
    recurrence_end_date: Optional[date_type] = None
    recurrence_end_count: Optional[int] = None
    parent_task_id: Optional[int] = None
    recurring_task_id: Optional[int] = None
    is_recurring_template: bool
    original_date: Optional[date_type] = None
    was_rescheduled_from_weekend: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AppointmentListResponse(BaseModel):
    appointments: List[AppointmentResponse]
    total_count: int


# ============================================================================
# Scheduling outcomes
# ============================================================================

class AcceptedResponse(BaseModel):
    """The appointment was placed on the calendar."""

    outcome: Literal["accepted"] = "accepted"
    appointment: AppointmentResponse
    is_within_work_hours: bool
    is_overtime: bool
    work_schedule_violation: Optional[str] = None
    message: str
    conflicts: List[ConflictingAppointment] = Field(default_factory=list)


class ConfirmationRequiredResponse(BaseModel):
    """Weekend soft-block; resubmit with allow_weekend_override=true."""

    outcome: Literal["confirmation_required"] = "confirmation_required"
    requires_confirmation: bool = True
    reason: str
    message: str
    day_type: Optional[str] = None
    suggested_date: Optional[str] = None


class RejectedResponse(BaseModel):
    """The appointment cannot be placed as submitted."""

    outcome: Literal["rejected"] = "rejected"
    reason: str
    message: str
    violation: Optional[str] = None
    suggested_time: Optional[str] = None
    conflicts: List[ConflictingAppointment] = Field(default_factory=list)
    free_slots: List[str] = Field(default_factory=list)


# ============================================================================
# Recurring series
# ============================================================================

class CreateRecurringAppointmentRequest(AppointmentBase):
    """Request schema for creating a recurring series."""

    recurrence_pattern: str = Field(..., description="daily, weekly, monthly, or yearly")
    recurrence_interval: int = Field(1, ge=1)
    recurrence_end_date: Optional[str] = Field(None, description="YYYY-MM-DD; exclusive with recurrence_end_count")
    recurrence_end_count: Optional[int] = Field(None, ge=1)
    allow_overlap: bool = False
    allow_weekend_override: bool = False

    @field_validator("recurrence_pattern")
    @classmethod
    def validate_recurrence_pattern(cls, v):
        if v not in VALID_RECURRENCE_PATTERNS:
            raise ValueError("recurrence_pattern must be daily, weekly, monthly, or yearly")
        return v


class UpdateRecurringAppointmentRequest(BaseModel):
    """Series-level changes applied to every instance."""

    title: Optional[str] = Field(None, min_length=1, max_length=255)
    description: Optional[str] = None
    start_time: Optional[str] = None
    duration_minutes: Optional[int] = Field(None, gt=0, le=1440)
    assigned_user_id: Optional[int] = None
    is_pomodoro: Optional[bool] = None
    allow_overlap: Optional[bool] = None


class OccurrenceReportResponse(BaseModel):
    sequence: int
    candidate_date: date_type
    scheduled_date: date_type
    status: str
    original_date: Optional[date_type] = None
    was_rescheduled_from_weekend: bool = False
    appointment_id: Optional[int] = None
    reason: Optional[str] = None
    message: Optional[str] = None
    conflicts: List[int] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class RecurringSeriesResponse(BaseModel):
    recurring_task_id: int
    template: AppointmentResponse
    instances: List[AppointmentResponse]
    occurrences: List[OccurrenceReportResponse] = Field(default_factory=list)
    created_count: int
    skipped_count: int = 0


class InstanceUpdateResponse(BaseModel):
    appointment_id: int
    outcome: str
    message: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class RecurringUpdateResponse(BaseModel):
    recurring_task_id: int
    results: List[InstanceUpdateResponse]
    accepted_count: int


# ============================================================================
# Timer
# ============================================================================

class TimerStatusResponse(BaseModel):
    appointment_id: int
    timer_state: str
    current_time_minutes: int
    accumulated_time_minutes: int
    timer_started_at: Optional[datetime] = None
    timer_paused_at: Optional[datetime] = None
    status: str

    model_config = ConfigDict(from_attributes=True)


class TimerActionResponse(BaseModel):
    message: str
    appointment: AppointmentResponse


class AutoCompleteResponse(BaseModel):
    completed_count: int
    appointments: List[AppointmentResponse]
