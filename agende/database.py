"""Database engine setup and shared store errors.

Production Pattern:
- One engine per process, created lazily from DATABASE_URL
- Tables created idempotently on startup via init_database()
- SQLAlchemy errors surface as StoreError with the failed operation named
"""
import logging
from contextlib import contextmanager
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from agende import config
from agende.api.database_models import Base

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None


class StoreError(Exception):
    """Raised when the data store cannot complete an operation."""

    def __init__(self, operation: str, original: Exception):
        self.operation = operation
        self.original = original
        super().__init__(f"Store error {operation}: {original}")


class NotFoundError(Exception):
    """Raised when a record does not exist."""

    def __init__(self, kind: str, record_id: str):
        self.kind = kind
        self.record_id = record_id
        super().__init__(f"{kind} {record_id} not found")


def create_db_engine(database_url: str) -> Engine:
    """
    Create an engine for the given URL.

    In-memory SQLite gets a single shared connection so every session (and
    every thread, e.g. a test client) sees the same database.
    """
    if database_url.startswith("sqlite") and ":memory:" in database_url:
        return create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False})
    return create_engine(database_url, pool_pre_ping=True, pool_recycle=300)


def get_engine() -> Engine:
    """Get or create the process-wide engine for config.DATABASE_URL."""
    global _engine

    if _engine is None:
        _engine = create_db_engine(config.DATABASE_URL)
        logger.info("Database engine created for %s", _engine.url.render_as_string(hide_password=True))

    return _engine


def init_database(engine: Optional[Engine] = None):
    """Create all tables. Safe to call multiple times."""
    with store_operation("creating tables"):
        Base.metadata.create_all(engine or get_engine())


def close_engine():
    """Dispose the process-wide engine (call on shutdown)."""
    global _engine

    if _engine is not None:
        _engine.dispose()
        _engine = None


@contextmanager
def store_operation(description: str):
    """
    Wrap a block of store work so driver errors become StoreError.

    Usage:
        with store_operation("adding appointment"):
            ...
    """
    try:
        yield
    except SQLAlchemyError as e:
        logger.error("Store error %s: %s", description, e)
        raise StoreError(description, e) from e
