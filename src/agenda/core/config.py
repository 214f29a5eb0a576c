"""
Application configuration using Pydantic Settings.

Values come from environment variables (or a local ``.env``). The database is
given either as a complete ``DATABASE_URL`` or through the ``DB_*`` parts of
a PostgreSQL connection.
"""

from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """
    Settings of the scheduling service.

    Attributes:
        app_name: Title shown in the OpenAPI docs
        debug: FastAPI debug flag
        environment: development or production (uvicorn workers/reload)
        port: Port uvicorn listens on

        database_url: Full SQLAlchemy URL; wins over the DB_* parts
        db_username, db_password, db_host, db_port, db_name: PostgreSQL parts
        db_pool_*: QueuePool sizing for PostgreSQL

        default_timezone: IANA zone used when a user has no work schedule
        slot_step_minutes: Grid used when suggesting free slots
        max_free_slot_suggestions: How many free slots a rejection carries
        max_recurrence_occurrences: Upper bound for generated occurrences
        max_recurrence_interval: Upper bound for the recurrence interval
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "Agenda Scheduling Service"
    debug: bool = False
    environment: str = "development"
    port: int = 9020

    database_url: Optional[str] = None
    db_username: str = "postgres"
    db_password: Optional[str] = None
    db_host: Optional[str] = None
    db_port: int = 5432
    db_name: str = "agenda"

    db_pool_size: int = 20
    db_max_overflow: int = 30
    db_pool_timeout: int = 10
    db_pool_recycle: int = 3600
    db_pool_pre_ping: bool = True
    db_echo: bool = False

    default_timezone: str = "America/Sao_Paulo"
    slot_step_minutes: int = 15
    max_free_slot_suggestions: int = 5
    max_recurrence_occurrences: int = 1000
    max_recurrence_interval: int = 365

    def get_database_url(self) -> str:
        """
        The SQLAlchemy URL to connect to.

        Raises:
            ValueError: If neither DATABASE_URL nor DB_HOST/DB_PASSWORD is set
        """
        if self.database_url:
            return self.database_url

        missing = [
            name for name, value in (("DB_HOST", self.db_host), ("DB_PASSWORD", self.db_password))
            if not value
        ]
        if missing:
            raise ValueError(
                f"Database configuration incomplete. Set DATABASE_URL or {', '.join(missing)}"
            )
        return (
            f"postgresql://{self.db_username}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )


@lru_cache()
def get_settings() -> Settings:
    """Cached settings instance."""
    return Settings()
