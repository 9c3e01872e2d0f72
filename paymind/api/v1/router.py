"""Root API router."""

from __future__ import annotations

from fastapi import APIRouter

from paymind.api.v1 import agents, health, invoices, settings, workflow_runs
from paymind.core.config import get_config


def get_api_router() -> APIRouter:
    api_router = APIRouter(prefix=get_config().API_PREFIX)
    api_router.include_router(health.router)
    api_router.include_router(invoices.router)
    api_router.include_router(agents.router)
    api_router.include_router(settings.router)
    api_router.include_router(workflow_runs.router)
    return api_router
