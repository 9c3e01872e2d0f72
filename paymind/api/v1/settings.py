"""Provider settings: catalog and API-key validation."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from paymind.core.config import Config
from paymind.core.dependencies import KeyValidator, get_key_validator, get_settings
from paymind.llm.client import provider_catalog
from paymind.schemas.settings import (
    KeyValidationRequest,
    KeyValidationResponse,
    ProviderInfo,
    SettingsResponse,
)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("", response_model=SettingsResponse)
def get_provider_settings(cfg: Config = Depends(get_settings)) -> SettingsResponse:
    return SettingsResponse(
        providers=[ProviderInfo.model_validate(entry) for entry in provider_catalog(cfg)],
        default_provider=cfg.DEFAULT_PROVIDER,
    )


@router.post("", response_model=KeyValidationResponse)
def validate_provider_key(
    payload: KeyValidationRequest,
    validator: KeyValidator = Depends(get_key_validator),
) -> KeyValidationResponse:
    valid, error = validator(payload.provider, payload.api_key)
    return KeyValidationResponse(valid=valid, error=error)
