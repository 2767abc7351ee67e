from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from fastapi import HTTPException
from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from unit_calendar.config.settings import settings
from unit_calendar.db.models import Base

# Lazy initialization to avoid import-time database connections
_engine = None
_SessionLocal = None


def _enable_sqlite_foreign_keys(dbapi_connection, _connection_record) -> None:
    """Enable foreign key constraints in SQLite connections."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _get_engine() -> Engine:
    """Get or create the database engine (lazy initialization)."""
    global _engine
    if _engine is None:
        logger.info(f"[DB] Initializing database engine: {settings.database_url}")

        connect_args = {}
        is_sqlite = "sqlite" in settings.database_url.lower()
        if is_sqlite:
            connect_args = {"check_same_thread": False}

        _engine = create_engine(
            settings.database_url,
            connect_args=connect_args,
            echo=False,
            pool_pre_ping=True,
            pool_recycle=3600,
        )
        if is_sqlite:
            # The ledger's SET NULL on training deletion relies on enforced foreign keys
            event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
        logger.info("[DB] Database engine initialized")
    return _engine


def get_engine() -> Engine:
    """Get or create the database engine (public API)."""
    return _get_engine()


def _get_session_local() -> sessionmaker:
    """Get or create the session factory (lazy initialization)."""
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_get_engine())
        logger.info("[DB] Database session factory initialized")
    return _SessionLocal


def init_db() -> None:
    """Create all tables that do not exist yet."""
    logger.info("[DB] Ensuring database tables exist")
    Base.metadata.create_all(bind=get_engine())
    logger.info("[DB] Database tables verified")


def get_db() -> Generator[Session, None, None]:
    """Get database session for FastAPI dependencies.

    This is a plain generator function (NOT a context manager) that FastAPI
    can use directly with Depends(). Route handlers commit through the
    service functions they call.

    For non-FastAPI code that needs a context manager, use get_session() instead.
    """
    session = _get_session_local()()
    try:
        yield session
    finally:
        session.close()


@contextmanager
def get_session() -> Generator[Session, None, None]:
    """Get database session context manager.

    Commits on success. HTTPException is re-raised after rollback without
    logging; any other exception is logged as a database error and rolled back.

    For FastAPI route dependencies, use get_db() instead.
    """
    session = _get_session_local()()
    try:
        yield session
        if session.dirty or session.new or session.deleted:
            session.commit()
            logger.debug("[DB] Database session committed successfully")
    except HTTPException:
        session.rollback()
        raise
    except Exception as e:
        logger.error(f"[DB] Database session error, rolling back: {e}. Error type: {type(e).__name__}")
        session.rollback()
        raise
    finally:
        session.close()
