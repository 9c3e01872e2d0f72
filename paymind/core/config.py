"""Configuration module for the PayMind application."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from urllib.parse import urlparse

from dotenv import load_dotenv

from paymind.core.exceptions import ConfigurationError

load_dotenv()

SUPPORTED_PROVIDERS = ("anthropic", "openai", "openrouter", "gemini")


def _as_bool(value: str | None, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_list(value: str | None, default: tuple[str, ...]) -> tuple[str, ...]:
    if not value:
        return default
    return tuple(item.strip() for item in value.split(",") if item.strip())


def _optional(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value.strip()


@dataclass(frozen=True)
class Config:
    """Runtime configuration with validation."""

    APP_NAME: str
    APP_VERSION: str
    ENV: str
    DEBUG: bool
    DATABASE_URL: str
    DB_CONNECTIVITY_REQUIRED: bool
    ANTHROPIC_API_KEY: str | None
    OPENAI_API_KEY: str | None
    OPENROUTER_API_KEY: str | None
    GEMINI_API_KEY: str | None
    DEFAULT_PROVIDER: str
    LLM_MAX_TOKENS: int
    OPENROUTER_BASE_URL: str
    GEMINI_BASE_URL: str
    REMINDER_BATCH_SIZE: int
    WORKFLOW_WAIT_SECONDS: float
    API_HOST: str
    API_PORT: int
    API_PREFIX: str
    CORS_ORIGINS: tuple[str, ...]
    LOG_LEVEL: str
    LOG_FILE: str

    @property
    def is_production(self) -> bool:
        return self.ENV == "production"

    def provider_api_key(self, provider: str) -> str | None:
        """Server-side fallback key for a provider, if one is configured."""
        return {
            "anthropic": self.ANTHROPIC_API_KEY,
            "openai": self.OPENAI_API_KEY,
            "openrouter": self.OPENROUTER_API_KEY,
            "gemini": self.GEMINI_API_KEY,
        }.get(provider)


def _build_config(env: str | None = None) -> Config:
    resolved_env = (env or os.getenv("ENV", "development")).strip().lower()
    debug = _as_bool(os.getenv("DEBUG"), default=(resolved_env != "production"))

    config = Config(
        APP_NAME="PayMind",
        APP_VERSION=os.getenv("APP_VERSION", "1.0.0"),
        ENV=resolved_env,
        DEBUG=debug if resolved_env != "production" else False,
        DATABASE_URL=os.getenv("DATABASE_URL", "sqlite:///./paymind.db"),
        DB_CONNECTIVITY_REQUIRED=_as_bool(
            os.getenv("DB_CONNECTIVITY_REQUIRED"), default=(resolved_env == "production")
        ),
        ANTHROPIC_API_KEY=_optional("ANTHROPIC_API_KEY"),
        OPENAI_API_KEY=_optional("OPENAI_API_KEY"),
        OPENROUTER_API_KEY=_optional("OPENROUTER_API_KEY"),
        GEMINI_API_KEY=_optional("GEMINI_API_KEY"),
        DEFAULT_PROVIDER=os.getenv("DEFAULT_PROVIDER", "anthropic").strip().lower(),
        LLM_MAX_TOKENS=int(os.getenv("LLM_MAX_TOKENS", "4096")),
        OPENROUTER_BASE_URL=os.getenv("OPENROUTER_BASE_URL", "https://openrouter.ai/api/v1"),
        GEMINI_BASE_URL=os.getenv("GEMINI_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"),
        REMINDER_BATCH_SIZE=int(os.getenv("REMINDER_BATCH_SIZE", "10")),
        WORKFLOW_WAIT_SECONDS=float(os.getenv("WORKFLOW_WAIT_SECONDS", "2.0")),
        API_HOST=os.getenv("API_HOST", "0.0.0.0"),
        API_PORT=int(os.getenv("API_PORT", "8000")),
        API_PREFIX=os.getenv("API_PREFIX", "/api"),
        CORS_ORIGINS=_as_list(os.getenv("CORS_ORIGINS"), default=("http://localhost:3000",)),
        LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").upper(),
        LOG_FILE=os.getenv("LOG_FILE", "paymind.log"),
    )
    _validate_config(config)
    return config


def _validate_database_url(database_url: str) -> None:
    parsed = urlparse(database_url)
    if parsed.scheme not in {"sqlite", "postgresql", "postgresql+psycopg2"}:
        raise ConfigurationError(
            "DATABASE_URL must use sqlite:// or postgresql:// style URL."
        )
    if parsed.scheme.startswith("postgresql") and not parsed.hostname:
        raise ConfigurationError("PostgreSQL DATABASE_URL is missing hostname.")


def _validate_config(config: Config) -> None:
    _validate_database_url(config.DATABASE_URL)

    if config.DEFAULT_PROVIDER not in SUPPORTED_PROVIDERS:
        raise ConfigurationError(
            f"DEFAULT_PROVIDER must be one of {', '.join(SUPPORTED_PROVIDERS)}."
        )
    if config.LLM_MAX_TOKENS < 1:
        raise ConfigurationError("LLM_MAX_TOKENS must be >= 1.")
    if config.REMINDER_BATCH_SIZE < 1:
        raise ConfigurationError("REMINDER_BATCH_SIZE must be >= 1.")
    if config.WORKFLOW_WAIT_SECONDS < 0:
        raise ConfigurationError("WORKFLOW_WAIT_SECONDS must be >= 0.")
    if not config.API_PREFIX.startswith("/"):
        raise ConfigurationError("API_PREFIX must start with '/'.")
    if config.LOG_LEVEL not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
        raise ConfigurationError("LOG_LEVEL must be one of DEBUG/INFO/WARNING/ERROR/CRITICAL.")
    if config.is_production and "change_me" in config.DATABASE_URL.lower():
        raise ConfigurationError("Production DATABASE_URL uses placeholder credentials.")


@lru_cache(maxsize=8)
def get_config(env: str | None = None) -> Config:
    """Get validated configuration for the requested environment."""
    return _build_config(env)
