"""
Custom exceptions for the application.

This module defines domain-specific exceptions for better error handling
and more meaningful error messages throughout the application.

Scheduling verdicts (accepted / confirmation required / rejected) are not
exceptions; they are returned as values by the scheduler. The classes below
cover malformed input, missing records and infrastructure failures.
"""

from typing import Optional, Any, Dict


class ApplicationException(Exception):
    """Base exception for all application-specific exceptions."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class DatabaseException(ApplicationException):
    """Exception raised for database-related errors."""
    pass


class ServiceException(ApplicationException):
    """Exception raised for service-level errors."""
    pass


class ValidationException(ApplicationException):
    """Exception raised for malformed input (bad date, time, duration, recurrence)."""

    def __init__(self, message: str, field: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        details = details or {}
        if field:
            details["field"] = field
        super().__init__(message, details)


class InvalidStateException(ServiceException):
    """Exception raised when an operation is not allowed in the record's current state."""
    pass


class NotFoundException(ApplicationException):
    """Exception raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: Any):
        message = f"{resource} not found: {identifier}"
        super().__init__(message, {"resource": resource, "identifier": identifier})


class DuplicateException(ApplicationException):
    """Exception raised when attempting to create a duplicate resource."""

    def __init__(self, resource: str, field: str, value: Any):
        message = f"{resource} already exists with {field}: {value}"
        super().__init__(message, {"resource": resource, "field": field, "value": value})