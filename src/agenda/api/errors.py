"""
Translation of application exceptions to HTTP errors.
"""

from fastapi import HTTPException, status

from agenda.core.exceptions import (
    ApplicationException,
    DuplicateException,
    InvalidStateException,
    NotFoundException,
    ValidationException,
)


def status_code_for(exc: ApplicationException) -> int:
    if isinstance(exc, NotFoundException):
        return status.HTTP_404_NOT_FOUND
    if isinstance(exc, DuplicateException):
        return status.HTTP_409_CONFLICT
    if isinstance(exc, (ValidationException, InvalidStateException)):
        return status.HTTP_400_BAD_REQUEST
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def to_http_exception(exc: ApplicationException) -> HTTPException:
    """Build the HTTPException a router raises for an application error."""
    detail = {"error": exc.message, **exc.details} if exc.details else exc.message
    return HTTPException(status_code=status_code_for(exc), detail=detail)
