"""Global exception handlers for consistent error responses.

- AppError subclasses map to 400/401/403/429
- Redis errors become 503 ``store_unavailable``; the core lets them through
  untouched and this is the one place they are translated
- anything else is a generic 500
All error bodies carry the request_id for correlation.
"""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError

from access_control.core.config import settings
from access_control.core.errors import (
    AppError,
    AuthenticationAppError,
    RateLimitAppError,
    SessionAppError,
)
from access_control.core.logging import get_request_id

logger = logging.getLogger(__name__)


def _status_for(exc: AppError) -> int:
    if isinstance(exc, RateLimitAppError):
        return 429
    if isinstance(exc, SessionAppError):
        return 401
    if isinstance(exc, AuthenticationAppError):
        return 403
    return 400


def _error_body(code: str, message: str, details: dict | None = None) -> dict:
    error: dict = {"code": code, "message": message, "request_id": get_request_id()}
    if details:
        error["details"] = details
    return {"error": error}


def _retry_headers(exc: RateLimitAppError) -> dict[str, str]:
    details = exc.details or {}
    if not settings.app.rate_limit_include_headers:
        return {}
    return {
        "Retry-After": str(details.get("retry_after", 0)),
        "X-RateLimit-Limit": str(details.get("limit", "")),
        "X-RateLimit-Remaining": str(details.get("remaining", 0)),
        "X-RateLimit-Reset": str(details.get("reset_at", "")),
    }


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    """Render a domain error with the status code matching its type."""
    status_code = _status_for(exc)

    logger.warning(
        "app_error_handled",
        extra={
            "error_code": exc.code,
            "status_code": status_code,
            "has_details": bool(exc.details),
        },
    )

    headers = _retry_headers(exc) if isinstance(exc, RateLimitAppError) else None
    return JSONResponse(
        status_code=status_code,
        content=_error_body(exc.code, exc.message, dict(exc.details) if exc.details else None),
        headers=headers or None,
    )


async def store_error_handler(request: Request, exc: RedisError) -> JSONResponse:
    """Report an unreachable or failing store as 503."""
    logger.error(
        "store_unavailable",
        extra={
            "error_type": type(exc).__name__,
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return JSONResponse(
        status_code=503,
        content=_error_body("store_unavailable", "Session and rate-limit store is unavailable."),
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Fallback for unexpected errors; never leaks internals to the client."""
    logger.error(
        "unhandled_exception",
        extra={
            "error_type": type(exc).__name__,
            "error_msg": str(exc),
            "request_path": request.url.path,
            "request_method": request.method,
        },
    )
    return JSONResponse(
        status_code=500,
        content=_error_body(
            "internal_server_error",
            "An unexpected error occurred. Please try again later.",
        ),
    )


def setup_exception_handlers(app) -> None:
    """Register the handlers; specific types before the general fallback."""
    app.exception_handler(AppError)(app_error_handler)
    app.exception_handler(RedisError)(store_error_handler)
    app.exception_handler(Exception)(general_exception_handler)
