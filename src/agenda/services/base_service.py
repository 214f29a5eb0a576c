"""
Base Service Class

Provides common functionality shared by the scheduling services:
named logging, the injected clock, database access through a UnitOfWork
and input validation helpers that raise ValidationException.
"""

import logging
import time
from typing import Optional, Any

from agenda.core.clock import Clock, SystemClock
from agenda.core.exceptions import ServiceException, ValidationException
from agenda.repositories.unit_of_work import UnitOfWork

# Operations slower than this are logged as warnings
SLOW_OPERATION_MS = 1000


class BaseService:
    """
    Base class for all service implementations.

    Provides:
    - Standardized logging (one named channel per service)
    - Clock injection
    - Unit of Work access
    - Common validation helpers
    """

    def __init__(
        self,
        uow: Optional[UnitOfWork] = None,
        clock: Optional[Clock] = None,
        service_name: Optional[str] = None
    ):
        """
        Initialize base service.

        Args:
            uow: Unit of Work wrapping the request's database session
            clock: Time provider (defaults to the system clock)
            service_name: Logger channel name (defaults to class name)
        """
        self.uow = uow
        self.clock = clock or SystemClock()
        self.service_name = service_name or self.__class__.__name__
        self.logger = logging.getLogger(self.service_name)

    # ========================================================================
    # Database Helpers
    # ========================================================================

    def _ensure_uow(self) -> UnitOfWork:
        """
        Ensure a Unit of Work is available.

        Raises:
            ServiceException: If the service was built without one
        """
        if self.uow is None:
            raise ServiceException(
                "Database session not available",
                {"service": self.service_name}
            )
        return self.uow

    # ========================================================================
    # Timing Utilities
    # ========================================================================

    def _timed_operation(self, operation_name: str):
        """
        Context manager that logs slow operations.

        Usage:
            with self._timed_operation("create_recurring"):
                ...
        """
        return TimedOperation(self, operation_name)

    # ========================================================================
    # Validation Helpers
    # ========================================================================

    def _validate_required(self, value: Any, field_name: str) -> Any:
        """
        Validate that a required field is not None or blank.

        Raises:
            ValidationException: If value is missing
        """
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationException(f"{field_name} is required", field=field_name)
        return value


class TimedOperation:
    """Context manager for timing operations"""

    def __init__(self, service: BaseService, operation_name: str):
        self.service = service
        self.operation_name = operation_name
        self.start_time = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        duration_ms = int((time.perf_counter() - self.start_time) * 1000)
        if duration_ms > SLOW_OPERATION_MS:
            self.service.logger.warning(
                f"Slow operation detected: {self.operation_name} took {duration_ms}ms"
            )
        return False  # Don't suppress exceptions
