"""API key authentication for the service's callers.

The access-control API is called by trusted backends, not by end users.
Each backend presents a key from the ``APP_API_KEYS`` list in ``X-API-Key``.
"""

from __future__ import annotations

import hashlib
import hmac
import logging
from typing import Annotated

from fastapi import Header, HTTPException, status

from access_control.core.config import settings
from access_control.core.errors import AuthenticationAppError

logger = logging.getLogger(__name__)


def parse_api_keys(keys_string: str | None) -> set[str]:
    """Split a comma-separated key list, dropping blanks.

    Examples:
        >>> sorted(parse_api_keys("key1, key2 ,,key1"))
        ['key1', 'key2']
        >>> parse_api_keys(None)
        set()
    """
    if not keys_string:
        return set()
    return {key.strip() for key in keys_string.split(",") if key.strip()}


def fingerprint(secret: str) -> str:
    """Short SHA-256 prefix safe to log in place of a secret."""
    return hashlib.sha256(secret.encode()).hexdigest()[:16]


def validate_api_key(provided_key: str) -> None:
    """Check ``provided_key`` against the configured keys.

    Raises:
        AuthenticationAppError: If auth is required and the key does not
            match, or no keys are configured at all.
    """
    if not settings.app.api_key_required:
        return

    valid_keys = parse_api_keys(settings.app.api_keys)
    if not valid_keys:
        logger.error("auth.misconfigured", extra={"reason": "api_keys_not_configured"})
        raise AuthenticationAppError(
            code="api_keys_not_configured",
            message="API key authentication is enabled but no valid keys are configured",
            details={"hint": "Set APP_API_KEYS or disable auth with APP_API_KEY_REQUIRED=false"},
        )

    if not any(hmac.compare_digest(provided_key, key) for key in valid_keys):
        logger.warning(
            "auth.rejected",
            extra={"reason": "invalid_api_key", "key_fingerprint": fingerprint(provided_key)},
        )
        raise AuthenticationAppError(
            code="invalid_api_key",
            message="Invalid or missing API key",
        )


async def verify_api_key(
    x_api_key: Annotated[str | None, Header(alias="X-API-Key")] = None,
) -> None:
    """FastAPI dependency guarding the ``/v1`` routes.

    Raises:
        HTTPException: 403 Forbidden if the key is missing or invalid.
    """
    if not settings.app.api_key_required:
        return

    if not x_api_key:
        logger.warning("auth.rejected", extra={"reason": "missing_api_key"})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Missing API key. Provide X-API-Key header.",
        )

    try:
        validate_api_key(x_api_key)
    except AuthenticationAppError as exc:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=exc.message,
        ) from exc

    logger.debug("auth.accepted", extra={"key_fingerprint": fingerprint(x_api_key)})
