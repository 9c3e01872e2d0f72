"""Exception-to-response mapping; every error body is ``{"error": message}``."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from paymind.core.exceptions import NotFoundError, PayMindException, ValidationError
from paymind.schemas.common import ErrorEnvelope

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorEnvelope(error=message).model_dump())


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request payload"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"Invalid request payload: {location}: {message}" if location else f"Invalid request payload: {message}"


async def handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    return _error(status.HTTP_400_BAD_REQUEST, _validation_message(exc))


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return _error(exc.status_code, str(exc.detail))


async def handle_paymind_exception(request: Request, exc: PayMindException) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))
    if isinstance(exc, NotFoundError):
        return _error(status.HTTP_404_NOT_FOUND, str(exc))
    logger.error(
        "api.request.failed",
        extra={"event": "api.request.failed", "error": str(exc), "step": request.url.path},
    )
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, str(exc) or "Internal server error")


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RequestValidationError, handle_request_validation)
    app.add_exception_handler(StarletteHTTPException, handle_http_exception)
    app.add_exception_handler(PayMindException, handle_paymind_exception)
