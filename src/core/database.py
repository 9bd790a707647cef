"""Database connection and session management.

This module handles the database connection using SQLAlchemy and translates
transport failures into StoreUnavailableError.
"""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session, sessionmaker

from config import DATA_DIR, DATABASE_URL, SQLITE_BUSY_TIMEOUT
from core.exceptions import StoreUnavailableError
from models.base import Base
# Import models to ensure they are registered with Base.metadata
import models  # noqa: F401

logger = logging.getLogger(__name__)

# Errors that mean the store could not be reached or did not answer in time
STORE_TRANSPORT_ERRORS = (
    OperationalError,
    InterfaceError,
    DisconnectionError,
    PoolTimeoutError,
)


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def create_store_engine(url: str) -> Engine:
    """Create an engine for the entity store.

    SQLite connections are shared across request threads, wait on locked
    databases instead of failing immediately, and enforce foreign keys.

    Args:
        url: SQLAlchemy database URL.

    Returns:
        Configured Engine.
    """
    if url.startswith("sqlite"):
        new_engine = create_engine(
            url,
            connect_args={
                "check_same_thread": False,
                "timeout": SQLITE_BUSY_TIMEOUT,
            },
        )
        event.listen(new_engine, "connect", _enable_sqlite_foreign_keys)
        return new_engine
    return create_engine(url, pool_pre_ping=True)


if DATABASE_URL.startswith(f"sqlite:///{DATA_DIR}"):
    # Ensure data directory exists
    DATA_DIR.mkdir(parents=True, exist_ok=True)

engine = create_store_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind: Engine = engine) -> None:
    """Create tables if they do not exist."""
    Base.metadata.create_all(bind=bind)


def get_db():
    """Dependency for getting a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def store_errors(db: Session) -> Iterator[None]:
    """Roll back and re-raise transport failures as StoreUnavailableError.

    Args:
        db: Session whose pending transaction is discarded on failure.

    Raises:
        StoreUnavailableError: If the wrapped block hit a transport failure.
    """
    try:
        yield
    except STORE_TRANSPORT_ERRORS as exc:
        db.rollback()
        logger.warning("Entity store unavailable: %s", exc)
        raise StoreUnavailableError(str(exc)) from exc
