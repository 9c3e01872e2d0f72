"""Provider settings and API-key validation contracts."""

from __future__ import annotations

from pydantic import Field

from paymind.llm.providers import AIProvider
from paymind.schemas.common import CamelModel


class ModelInfo(CamelModel):
    id: str
    name: str


class ProviderInfo(CamelModel):
    id: AIProvider
    name: str
    configured: bool
    default_model: str
    models: list[ModelInfo]


class SettingsResponse(CamelModel):
    providers: list[ProviderInfo]
    default_provider: AIProvider


class KeyValidationRequest(CamelModel):
    provider: AIProvider
    api_key: str = Field(min_length=1)


class KeyValidationResponse(CamelModel):
    valid: bool
    error: str | None = None
