"""Shared service base with session lifecycle and error translation."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from paymind.core.exceptions import DatabaseError
from paymind.database.db import get_session_factory

logger = logging.getLogger(__name__)


class BaseService:
    """Base class for services that operate on a SQLAlchemy session."""

    def __init__(self, db: Session | None = None) -> None:
        self.db = db or get_session_factory()()

    def commit(self) -> None:
        """Commit current transaction and rollback on failure."""
        try:
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    def rollback(self) -> None:
        self.db.rollback()

    def close(self) -> None:
        self.db.close()

    def _fail(self, action: str, exc: SQLAlchemyError) -> DatabaseError:
        """Roll back and build the generic error surfaced to callers."""
        self.rollback()
        logger.error(
            "database.operation_failed",
            extra={"event": "database.operation_failed", "step": action, "error": str(exc)},
        )
        return DatabaseError(f"Failed to {action}")

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        self.close()
