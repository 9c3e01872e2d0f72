"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging

from paymind.core.config import get_config
from paymind.core.logging_config import configure_logging
from paymind.database.db import get_active_database_url, init_db, verify_database_connection

logger = logging.getLogger(__name__)


def validate_startup_config() -> None:
    """Fail-fast config and connectivity checks."""
    config = get_config()
    database_ok = verify_database_connection()
    active_database_url = get_active_database_url()
    if not database_ok and config.DB_CONNECTIVITY_REQUIRED:
        raise RuntimeError("Database connectivity check failed.")
    if not database_ok:
        logger.warning(
            "startup.database.connectivity_optional_failed",
            extra={"event": "startup.database.connectivity_optional_failed"},
        )

    configured = [
        provider
        for provider in ("anthropic", "openai", "openrouter", "gemini")
        if config.provider_api_key(provider)
    ]
    if not configured:
        logger.warning(
            "startup.providers.none_configured",
            extra={"event": "startup.providers.none_configured"},
        )

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": active_database_url.split("://", 1)[0],
            "configured_providers": configured,
        },
    )


def bootstrap() -> None:
    """Initialize logging, validate runtime configuration and create tables."""
    configure_logging()
    validate_startup_config()
    init_db()
