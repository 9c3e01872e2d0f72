"""Database connection and session management."""

from __future__ import annotations

import logging
from collections.abc import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from paymind.core.config import get_config

logger = logging.getLogger(__name__)

config = get_config()
DATABASE_URL = config.DATABASE_URL
FALLBACK_SQLITE_URL = "sqlite:///./paymind.db"


def _build_engine(database_url: str):
    if database_url.startswith("sqlite"):
        # Request handlers run in a worker thread pool.
        return create_engine(
            database_url,
            echo=config.DEBUG and config.LOG_LEVEL == "DEBUG",
            connect_args={"check_same_thread": False},
        )
    return create_engine(
        database_url,
        echo=config.DEBUG and config.LOG_LEVEL == "DEBUG",
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=10,
        max_overflow=20,
    )


def _configure_engine(database_url: str) -> None:
    global DATABASE_URL, engine, SessionLocal
    DATABASE_URL = database_url
    engine = _build_engine(database_url)
    SessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


_configure_engine(DATABASE_URL)


def get_session_factory() -> sessionmaker:
    """Return the sessionmaker bound to the active engine."""
    return SessionLocal


def get_active_database_url() -> str:
    """Return the currently bound database URL (after fallback, if any)."""
    return DATABASE_URL


def get_db() -> Generator[Session, None, None]:
    """Yield a session for dependency injection contexts."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables on the active engine."""
    # Model modules register their tables on import.
    from paymind.models import Base

    Base.metadata.create_all(bind=engine)
    logger.info(
        "database.tables.created",
        extra={"event": "database.tables.created", "count": len(Base.metadata.tables)},
    )


def verify_database_connection() -> bool:
    """Verify DB connectivity during startup."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as exc:  # pragma: no cover - exercised in deployment.
        if config.DB_CONNECTIVITY_REQUIRED:
            logger.exception("database.connection_failed", extra={"event": "database.connection_failed"})
            return False
        logger.warning(
            "database.connection_failed.optional",
            extra={"event": "database.connection_failed.optional", "error": str(exc)},
        )
        return _fallback_to_sqlite_if_optional(exc)


def _fallback_to_sqlite_if_optional(original_exc: Exception) -> bool:
    """Fallback to SQLite in non-required connectivity mode to keep local runs usable."""
    if config.DB_CONNECTIVITY_REQUIRED or DATABASE_URL.startswith("sqlite"):
        return False

    original_url = DATABASE_URL
    _configure_engine(FALLBACK_SQLITE_URL)
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except Exception as fallback_exc:  # pragma: no cover - deployment edge case.
        _configure_engine(original_url)
        logger.error("database.connection_failed.details: %s", original_exc)
        logger.error("database.connection_fallback.failed: %s", fallback_exc)
        return False

    logger.warning(
        "database.connection_fallback.sqlite",
        extra={"event": "database.connection_fallback.sqlite"},
    )
    return True
