"""Application entrypoint for the PayMind API."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from paymind.api.errors import register_exception_handlers
from paymind.api.v1.router import get_api_router
from paymind.core.config import get_config
from paymind.core.startup import bootstrap


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    bootstrap()
    yield


def create_app(run_bootstrap: bool = True) -> FastAPI:
    """Create the FastAPI application."""
    cfg = get_config()
    app = FastAPI(
        title=cfg.APP_NAME,
        version=cfg.APP_VERSION,
        lifespan=lifespan if run_bootstrap else None,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.CORS_ORIGINS),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)
    app.include_router(get_api_router())

    @app.get("/")
    def root() -> dict:
        return {"service": cfg.APP_NAME, "version": cfg.APP_VERSION, "api_prefix": cfg.API_PREFIX}

    return app


# Expose ASGI app for `uvicorn paymind.main:app`.
app = create_app()


if __name__ == "__main__":
    import uvicorn

    cfg = get_config()
    uvicorn.run("paymind.main:app", host=cfg.API_HOST, port=cfg.API_PORT, reload=cfg.DEBUG)
