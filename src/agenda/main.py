# main.py
from dotenv import load_dotenv
load_dotenv()
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import uvicorn
import logging

from agenda import __version__
from agenda.api.errors import status_code_for
from agenda.api.appointments_api import router as appointments_router
from agenda.api.recurring_api import router as recurring_router
from agenda.api.timer_api import router as timer_router
from agenda.api.work_schedule_api import router as work_schedule_router
from agenda.api.users_api import router as users_router
from agenda.api.health_api import router as health_router
from agenda.core.config import get_settings
from agenda.core.database import init_db
from agenda.core.exceptions import ApplicationException

logger = logging.getLogger("AGENDA_MAIN")

SCHEDULING_LOGGERS = [
    "CORE_DATABASE",
    "APPOINTMENT_SCHEDULER",
    "RECURRENCE_EXPANDER",
    "WORK_SCHEDULE_RULES",
    "WORK_SCHEDULE_VALIDATOR",
    "CONFLICT_DETECTOR",
    "TIMER_SERVICE",
]


def _configure_loggers() -> None:
    # Route the scheduling channels through uvicorn's handler at INFO
    uvicorn_logger = logging.getLogger("uvicorn")
    for logger_name in SCHEDULING_LOGGERS:
        channel = logging.getLogger(logger_name)
        channel.setLevel(logging.INFO)
        if not channel.handlers and uvicorn_logger.handlers:
            channel.addHandler(uvicorn_logger.handlers[0])


def create_app(initialize_database: bool = True) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        initialize_database: Create tables on startup

    Returns:
        FastAPI application with every router mounted under /api
    """
    settings = get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        _configure_loggers()
        if initialize_database:
            init_db()
        yield

    app = FastAPI(
        title=settings.app_name, version=__version__, debug=settings.debug, lifespan=lifespan
    )

    @app.exception_handler(ApplicationException)
    async def application_exception_handler(request: Request, exc: ApplicationException):
        status_code = status_code_for(exc)
        if status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
        return JSONResponse(
            status_code=status_code,
            content={"detail": exc.message, "error_code": exc.__class__.__name__, **exc.details},
        )

    # Recurring routes first: their static segments must win over /{appointment_id}
    app.include_router(recurring_router, prefix="/api")
    app.include_router(timer_router, prefix="/api")
    app.include_router(appointments_router, prefix="/api")
    app.include_router(work_schedule_router, prefix="/api")
    app.include_router(users_router, prefix="/api")
    app.include_router(health_router, prefix="/api")

    @app.get("/")
    async def root():
        return {"message": f"Welcome to {settings.app_name}"}

    return app


app = create_app()


if __name__ == "__main__":
    settings = get_settings()
    if settings.environment.lower() == "production":
        # Production: Multiple workers, no reload
        uvicorn.run("agenda.main:app", host="0.0.0.0", port=settings.port, workers=4)
    else:
        # Development: Single worker with hot reload
        uvicorn.run("agenda.main:app", host="0.0.0.0", port=settings.port, reload=True)
