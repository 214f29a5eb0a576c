"""
Appointment Timer API
"""

from fastapi import APIRouter, Depends
import logging

from agenda.api.errors import to_http_exception
from agenda.core.dependencies import get_timer_service
from agenda.core.exceptions import ApplicationException
from agenda.schemas.appointment import (
    AppointmentResponse,
    AutoCompleteResponse,
    TimerActionResponse,
    TimerStatusResponse,
)
from agenda.services.timer_service import TimerService

logger = logging.getLogger("TIMER_API")

router = APIRouter(
    prefix="/appointments",
    tags=["Timer"]
)

TIMER_ACTIONS = {
    "start": "Timer started",
    "pause": "Timer paused",
    "resume": "Timer resumed",
    "complete": "Appointment completed",
    "reset": "Timer reset",
}


@router.post("/auto-complete-pomodoros", response_model=AutoCompleteResponse)
async def auto_complete_pomodoros(service: TimerService = Depends(get_timer_service)):
    """Complete today's pomodoro sessions whose end time has passed."""
    try:
        completed = service.auto_complete_pomodoros()
    except ApplicationException as e:
        raise to_http_exception(e)
    return AutoCompleteResponse(
        completed_count=len(completed),
        appointments=[AppointmentResponse.model_validate(a) for a in completed],
    )


@router.get("/{appointment_id}/timer/status", response_model=TimerStatusResponse)
async def timer_status(appointment_id: int, service: TimerService = Depends(get_timer_service)):
    try:
        return TimerStatusResponse.model_validate(service.status(appointment_id))
    except ApplicationException as e:
        raise to_http_exception(e)


async def _run_action(action: str, appointment_id: int, service: TimerService) -> TimerActionResponse:
    try:
        appointment = getattr(service, action)(appointment_id)
    except ApplicationException as e:
        raise to_http_exception(e)
    return TimerActionResponse(
        message=TIMER_ACTIONS[action],
        appointment=AppointmentResponse.model_validate(appointment),
    )


@router.post("/{appointment_id}/timer/start", response_model=TimerActionResponse)
async def start_timer(appointment_id: int, service: TimerService = Depends(get_timer_service)):
    return await _run_action("start", appointment_id, service)


@router.post("/{appointment_id}/timer/pause", response_model=TimerActionResponse)
async def pause_timer(appointment_id: int, service: TimerService = Depends(get_timer_service)):
    return await _run_action("pause", appointment_id, service)


@router.post("/{appointment_id}/timer/resume", response_model=TimerActionResponse)
async def resume_timer(appointment_id: int, service: TimerService = Depends(get_timer_service)):
    return await _run_action("resume", appointment_id, service)


@router.post("/{appointment_id}/timer/complete", response_model=TimerActionResponse)
async def complete_appointment(appointment_id: int, service: TimerService = Depends(get_timer_service)):
    return await _run_action("complete", appointment_id, service)


@router.post("/{appointment_id}/timer/reset", response_model=TimerActionResponse)
async def reset_timer(appointment_id: int, service: TimerService = Depends(get_timer_service)):
    return await _run_action("reset", appointment_id, service)
