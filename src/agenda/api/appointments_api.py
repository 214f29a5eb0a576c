"""
Appointments API

Single appointment validation, conflict lookup and CRUD. Scheduling
outcomes map to distinct status codes:

- 201/200 accepted
- 428 confirmation required (weekend; resubmit with allow_weekend_override)
- 409 rejected (work-hours violation or time conflict)
"""

from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
import logging

from agenda.api.errors import to_http_exception
from agenda.core.dependencies import get_appointment_scheduler
from agenda.core.exceptions import ApplicationException
from agenda.services.appointment_scheduler import (
    Accepted,
    AppointmentScheduler,
    ConfirmationRequired,
    Outcome,
)
from agenda.schemas.appointment import (
    AcceptedResponse,
    AppointmentListResponse,
    AppointmentResponse,
    ConfirmationRequiredResponse,
    ConflictCheckRequest,
    ConflictCheckResponse,
    ConflictingAppointment,
    CreateAppointmentRequest,
    RejectedResponse,
    UpdateAppointmentRequest,
    ValidateAppointmentRequest,
    ValidationResultResponse,
)

logger = logging.getLogger("APPOINTMENTS_API")

router = APIRouter(
    prefix="/appointments",
    tags=["Appointments"]
)

OUTCOME_RESPONSES = {
    status.HTTP_409_CONFLICT: {"model": RejectedResponse, "description": "Rejected"},
    status.HTTP_428_PRECONDITION_REQUIRED: {
        "model": ConfirmationRequiredResponse,
        "description": "Weekend appointment requires confirmation",
    },
}


def outcome_response(outcome: Outcome, accepted_status: int = status.HTTP_200_OK) -> JSONResponse:
    """Render a scheduling outcome with its status code."""
    if isinstance(outcome, Accepted):
        body = AcceptedResponse(
            appointment=AppointmentResponse.model_validate(outcome.appointment),
            is_within_work_hours=outcome.is_within_work_hours,
            is_overtime=outcome.is_overtime,
            work_schedule_violation=outcome.work_schedule_violation,
            message=outcome.validation.message,
            conflicts=[ConflictingAppointment.model_validate(c) for c in outcome.conflicts],
        )
        status_code = accepted_status
    elif isinstance(outcome, ConfirmationRequired):
        body = ConfirmationRequiredResponse(
            reason=outcome.reason,
            message=outcome.message,
            day_type=outcome.day_type,
            suggested_date=outcome.suggested_date,
        )
        status_code = status.HTTP_428_PRECONDITION_REQUIRED
    else:
        body = RejectedResponse(
            reason=outcome.reason,
            message=outcome.message,
            violation=outcome.violation,
            suggested_time=outcome.suggested_time,
            conflicts=[ConflictingAppointment.model_validate(c) for c in outcome.conflicts],
            free_slots=outcome.free_slots,
        )
        status_code = status.HTTP_409_CONFLICT
    return JSONResponse(status_code=status_code, content=body.model_dump(mode="json"))


@router.post("/validate", response_model=ValidationResultResponse)
async def validate_appointment(
    request: ValidateAppointmentRequest,
    scheduler: AppointmentScheduler = Depends(get_appointment_scheduler)
):
    """Check an appointment against the work schedule without saving it."""
    try:
        result = scheduler.validator.validate(
            request.user_id,
            request.date,
            request.start_time,
            request.duration_minutes,
            is_pomodoro=request.is_pomodoro,
            allow_weekend_override=request.allow_weekend_override,
        )
        return ValidationResultResponse.model_validate(result)
    except ApplicationException as e:
        raise to_http_exception(e)


@router.post("/conflicts", response_model=ConflictCheckResponse)
async def check_conflicts(
    request: ConflictCheckRequest,
    scheduler: AppointmentScheduler = Depends(get_appointment_scheduler)
):
    """List overlapping appointments and nearby free start times."""
    try:
        conflicts = scheduler.detector.find_conflicts(
            request.date, request.start_time, request.duration_minutes, exclude_id=request.exclude_id
        )
        free_slots = []
        if conflicts:
            free_slots = scheduler.detector.suggest_free_slots(
                request.user_id, request.date, request.start_time, request.duration_minutes,
                exclude_id=request.exclude_id,
            )
        return ConflictCheckResponse(
            has_conflicts=bool(conflicts),
            conflicts=[ConflictingAppointment.model_validate(c) for c in conflicts],
            free_slots=free_slots,
        )
    except ApplicationException as e:
        raise to_http_exception(e)


@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    date: Optional[str] = None,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    user_id: Optional[int] = None,
    scheduler: AppointmentScheduler = Depends(get_appointment_scheduler)
):
    try:
        appointments = scheduler.list_appointments(date, start_date, end_date, user_id)
    except ApplicationException as e:
        raise to_http_exception(e)
    return AppointmentListResponse(
        appointments=[AppointmentResponse.model_validate(a) for a in appointments],
        total_count=len(appointments)
    )


@router.post(
    "",
    response_model=AcceptedResponse,
    status_code=status.HTTP_201_CREATED,
    responses=OUTCOME_RESPONSES,
)
async def create_appointment(
    request: CreateAppointmentRequest,
    scheduler: AppointmentScheduler = Depends(get_appointment_scheduler)
):
    fields = request.model_dump(exclude={"allow_overlap", "allow_weekend_override"})
    try:
        outcome = scheduler.create_appointment(
            fields,
            allow_overlap=request.allow_overlap,
            allow_weekend_override=request.allow_weekend_override,
        )
    except ApplicationException as e:
        raise to_http_exception(e)
    return outcome_response(outcome, status.HTTP_201_CREATED)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: int,
    scheduler: AppointmentScheduler = Depends(get_appointment_scheduler)
):
    appointment = scheduler.uow.appointments.get(appointment_id)
    if not appointment:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return AppointmentResponse.model_validate(appointment)


@router.patch("/{appointment_id}", response_model=AcceptedResponse, responses=OUTCOME_RESPONSES)
async def update_appointment(
    appointment_id: int,
    request: UpdateAppointmentRequest,
    scheduler: AppointmentScheduler = Depends(get_appointment_scheduler)
):
    """Edit an appointment; moving it re-runs the scheduling checks."""
    changes = request.model_dump(exclude_unset=True, exclude={"allow_overlap", "allow_weekend_override"})
    try:
        outcome = scheduler.update_appointment(
            appointment_id,
            changes,
            allow_overlap=request.allow_overlap,
            allow_weekend_override=request.allow_weekend_override,
        )
    except ApplicationException as e:
        raise to_http_exception(e)
    return outcome_response(outcome)


@router.delete("/{appointment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_appointment(
    appointment_id: int,
    scheduler: AppointmentScheduler = Depends(get_appointment_scheduler)
):
    try:
        scheduler.delete_appointment(appointment_id)
    except ApplicationException as e:
        raise to_http_exception(e)
