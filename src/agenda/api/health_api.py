"""
Health API
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
import logging

from agenda import __version__
from agenda.core.database import get_db, get_database_health
from agenda.schemas.common import HealthCheckResponse

logger = logging.getLogger("HEALTH_API_LOGGER")

router = APIRouter(prefix="/health", tags=["health"])


@router.get("", response_model=HealthCheckResponse)
async def health_status(db: Session = Depends(get_db)):
    """Report database connectivity."""
    database = get_database_health(db)
    overall_status = "healthy" if database.get("status") == "healthy" else "degraded"
    if overall_status != "healthy":
        logger.warning(f"Health check degraded: {database.get('error')}")
    return HealthCheckResponse(status=overall_status, database=database, version=__version__)
