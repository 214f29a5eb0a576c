"""
Common/shared Pydantic schemas.

Reusable response types used across routers.
"""

from pydantic import BaseModel, Field
from typing import Optional, Any, Dict
from datetime import datetime, timezone


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageResponse(BaseModel):
    """Plain acknowledgement."""
    message: str
    success: bool = True


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str
    detail: Optional[Any] = None
    error_code: Optional[str] = None
    success: bool = False
    timestamp: datetime = Field(default_factory=_utcnow)


class DeleteResponse(BaseModel):
    """Result of a delete that may remove several rows."""
    deleted_count: int
    message: str


class HealthCheckResponse(BaseModel):
    """Health check response."""
    status: str
    database: Dict[str, Any]
    version: str
    timestamp: datetime = Field(default_factory=_utcnow)
