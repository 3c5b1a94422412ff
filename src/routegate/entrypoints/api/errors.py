"""Mapping of domain errors onto HTTP responses."""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from routegate.core.exceptions import (
    IdentityProviderError,
    InvalidInputError,
    LifecycleConflictError,
    NotFoundError,
    PermissionDeniedError,
    RoutegateError,
    StoreError,
)

logger = structlog.get_logger()

STATUS_CODES: dict[type[RoutegateError], int] = {
    NotFoundError: 404,
    LifecycleConflictError: 409,
    InvalidInputError: 422,
    PermissionDeniedError: 403,
    StoreError: 502,
    IdentityProviderError: 502,
}


def status_for(error: RoutegateError) -> int:
    """Pick the HTTP status for a domain error, most specific class first."""
    for cls in type(error).__mro__:
        if cls in STATUS_CODES:
            return STATUS_CODES[cls]
    return 500


async def routegate_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a domain error as `{"detail": ...}` with its mapped status."""
    assert isinstance(exc, RoutegateError)
    status_code = status_for(exc)
    log = logger.warning if status_code < 500 else logger.error
    log(
        "request_failed",
        path=request.url.path,
        method=request.method,
        error_type=type(exc).__name__,
        error=str(exc),
        status_code=status_code,
    )
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    """Install the domain error handler on an application."""
    app.add_exception_handler(RoutegateError, routegate_error_handler)
