"""
Recurring Appointments API

Series are created in one call and reported per occurrence; they are
addressed afterwards through their recurring_task_id.
"""

from fastapi import APIRouter, Depends, status
import logging

from agenda.api.errors import to_http_exception
from agenda.core.dependencies import get_recurring_service
from agenda.core.exceptions import ApplicationException
from agenda.schemas.appointment import (
    AppointmentResponse,
    CreateRecurringAppointmentRequest,
    InstanceUpdateResponse,
    OccurrenceReportResponse,
    RecurringSeriesResponse,
    RecurringUpdateResponse,
    UpdateRecurringAppointmentRequest,
)
from agenda.schemas.common import DeleteResponse
from agenda.services.recurrence_expander import (
    RecurringAppointmentService,
    RecurringSeries,
    STATUS_CREATED,
)

logger = logging.getLogger("RECURRING_API")

router = APIRouter(
    prefix="/appointments",
    tags=["Recurring Appointments"]
)

_RECURRENCE_KEYS = {
    "recurrence_pattern",
    "recurrence_interval",
    "recurrence_end_date",
    "recurrence_end_count",
    "allow_overlap",
    "allow_weekend_override",
}


def _series_response(series: RecurringSeries) -> RecurringSeriesResponse:
    created = sum(1 for o in series.occurrences if o.status == STATUS_CREATED)
    return RecurringSeriesResponse(
        recurring_task_id=series.recurring_task_id,
        template=AppointmentResponse.model_validate(series.template),
        instances=[AppointmentResponse.model_validate(i) for i in series.instances],
        occurrences=[OccurrenceReportResponse.model_validate(o) for o in series.occurrences],
        created_count=created if series.occurrences else len(series.instances),
        skipped_count=len(series.occurrences) - created,
    )


@router.post("/recurring", response_model=RecurringSeriesResponse, status_code=status.HTTP_201_CREATED)
async def create_recurring_appointment(
    request: CreateRecurringAppointmentRequest,
    service: RecurringAppointmentService = Depends(get_recurring_service)
):
    """
    Create a recurring series.

    Weekend occurrences are moved to the next free business day; occurrences
    that cannot be scheduled are skipped and listed in ``occurrences``.
    """
    try:
        series = service.create_recurring(
            request.model_dump(exclude=_RECURRENCE_KEYS),
            request.recurrence_pattern,
            request.recurrence_interval,
            end_date=request.recurrence_end_date,
            count=request.recurrence_end_count,
            allow_overlap=request.allow_overlap,
            allow_weekend_override=request.allow_weekend_override,
        )
    except ApplicationException as e:
        raise to_http_exception(e)
    return _series_response(series)


@router.get("/recurring/{recurring_task_id}", response_model=RecurringSeriesResponse)
async def get_recurring_series(
    recurring_task_id: int,
    service: RecurringAppointmentService = Depends(get_recurring_service)
):
    try:
        return _series_response(service.get_series(recurring_task_id))
    except ApplicationException as e:
        raise to_http_exception(e)


@router.patch("/recurring/{recurring_task_id}", response_model=RecurringUpdateResponse)
async def update_recurring_series(
    recurring_task_id: int,
    request: UpdateRecurringAppointmentRequest,
    service: RecurringAppointmentService = Depends(get_recurring_service)
):
    """Apply series-level changes to the template and every instance."""
    try:
        reports = service.update_series(
            recurring_task_id,
            request.model_dump(exclude_unset=True, exclude={"allow_overlap"}),
            allow_overlap=request.allow_overlap,
        )
    except ApplicationException as e:
        raise to_http_exception(e)
    results = [InstanceUpdateResponse.model_validate(r) for r in reports]
    return RecurringUpdateResponse(
        recurring_task_id=recurring_task_id,
        results=results,
        accepted_count=sum(1 for r in results if r.outcome == "accepted"),
    )


@router.delete("/recurring/{recurring_task_id}", response_model=DeleteResponse)
async def delete_recurring_series(
    recurring_task_id: int,
    service: RecurringAppointmentService = Depends(get_recurring_service)
):
    """Delete the template and every instance of a series."""
    try:
        deleted = service.delete_series(recurring_task_id)
    except ApplicationException as e:
        raise to_http_exception(e)
    return DeleteResponse(deleted_count=deleted, message=f"Deleted recurring series {recurring_task_id}")


@router.delete("/{appointment_id}/recurring", response_model=DeleteResponse)
async def delete_recurring_instance(
    appointment_id: int,
    delete_all: bool = False,
    service: RecurringAppointmentService = Depends(get_recurring_service)
):
    """Delete one occurrence, or its whole series with ``delete_all=true``."""
    try:
        deleted = service.delete_instance(appointment_id, delete_all=delete_all)
    except ApplicationException as e:
        raise to_http_exception(e)
    message = "Deleted recurring series" if delete_all else f"Deleted appointment {appointment_id}"
    return DeleteResponse(deleted_count=deleted, message=message)
