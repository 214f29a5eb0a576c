"""
Database connection and session management.

This module handles:
- Database engine creation with connection pooling
- Session factory setup
- Connection health checks
- Retry logic for database initialization

The engine is created on first use rather than at import time so the
application (and its tests) can override the database before anything
connects.
"""

import time
from functools import lru_cache
from typing import Generator, Dict, Any

from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool
import logging

from agenda.core.config import get_settings

logger = logging.getLogger('CORE_DATABASE')

# Optimized retry logic with exponential backoff
RETRY_DELAYS = [1, 2, 3, 5, 8]

SessionLocal = sessionmaker(autocommit=False, autoflush=False)


def _engine_config(database_url: str) -> Dict[str, Any]:
    settings = get_settings()
    if database_url.startswith("sqlite"):
        return {
            'connect_args': {'check_same_thread': False},
            'echo': settings.db_echo,
        }
    return {
        'poolclass': QueuePool,
        'pool_size': settings.db_pool_size,
        'max_overflow': settings.db_max_overflow,
        'pool_timeout': settings.db_pool_timeout,
        'pool_recycle': settings.db_pool_recycle,
        'pool_pre_ping': settings.db_pool_pre_ping,
        'echo': settings.db_echo,
    }


@lru_cache()
def get_engine() -> Engine:
    """
    Create the engine, retrying while the database is not ready.

    Returns:
        Engine: SQLAlchemy engine bound to the configured database

    Raises:
        Exception: If the database cannot be reached after all retries
    """
    database_url = get_settings().get_database_url()
    logger.info(f"Initializing database connection ({database_url.split(':', 1)[0]})")

    for i, delay in enumerate(RETRY_DELAYS):
        try:
            engine = create_engine(database_url, **_engine_config(database_url))
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            logger.info(f"Database connection established successfully on attempt {i+1}")
            SessionLocal.configure(bind=engine)
            return engine
        except OperationalError as e:
            logger.error(f"Database not ready (attempt {i+1}/{len(RETRY_DELAYS)}): {e}")
            if i < len(RETRY_DELAYS) - 1:
                logger.info(f"Retrying in {delay} seconds...")
                time.sleep(delay)
            else:
                raise Exception(f"Could not connect to the database after {len(RETRY_DELAYS)} attempts") from e


def get_db() -> Generator[Session, None, None]:
    """
    Dependency function to get database session.

    Yields:
        Session: SQLAlchemy database session

    Example:
        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            return db.query(Item).all()
    """
    get_engine()
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def get_database_health(db: Session) -> Dict[str, Any]:
    """
    Check database connection health and return status.

    Args:
        db: Session to check

    Returns:
        dict: Health status with the dialect in use
    """
    try:
        db.execute(text("SELECT 1")).fetchone()
        return {
            "status": "healthy",
            "dialect": db.get_bind().dialect.name,
        }
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return {
            "status": "unhealthy",
            "error": str(e),
        }


def init_db(engine: Engine = None) -> None:
    """
    Create tables (idempotent).

    Args:
        engine: Engine to initialise; defaults to the configured one
    """
    from agenda.models import Base

    engine = engine or get_engine()
    try:
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables ensured")
    except Exception as e:
        logger.error(f"Error during database initialization: {e}")
        raise
