"""Dependency providers for API handlers."""

from __future__ import annotations

from collections.abc import Generator
from typing import Callable

from fastapi import Depends
from sqlalchemy.orm import Session

from paymind.core.config import Config, get_config
from paymind.database.db import get_db
from paymind.llm.client import TextGenerator, build_generator, validate_api_key
from paymind.services.invoice_service import InvoiceService
from paymind.services.workflow_run_service import WorkflowRunService

GeneratorFactory = Callable[..., TextGenerator]
KeyValidator = Callable[[str, str], tuple[bool, str | None]]


def get_settings() -> Config:
    """Return validated application configuration."""
    return get_config()


def get_db_session() -> Generator[Session, None, None]:
    """Yield SQLAlchemy session for dependency injection."""
    yield from get_db()


def get_invoice_service(db: Session = Depends(get_db_session)) -> InvoiceService:
    return InvoiceService(db)


def get_workflow_run_service(db: Session = Depends(get_db_session)) -> WorkflowRunService:
    return WorkflowRunService(db)


def get_generator_factory() -> GeneratorFactory:
    """Return the callable that binds a provider, model and key to a generator."""
    return build_generator


def get_key_validator() -> KeyValidator:
    return validate_api_key
