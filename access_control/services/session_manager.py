"""Session token issuance and validation.

Tokens are opaque random strings. Each one maps to a hash at
``sessionToken:<token>`` holding ``createdAt`` (ms), ``isRevoked`` and
``userEmail``. Expiry slides: every successful validation pushes the TTL
back to the full session lifetime.
"""

from __future__ import annotations

import logging
import secrets
import time
from typing import Callable

from access_control.adapters.store.base import AbstractKeyValueStore
from access_control.services.identity import EmailIdentity, hash_identity

logger = logging.getLogger(__name__)

SESSION_KEY_PREFIX = "sessionToken:"
DEFAULT_SESSION_TTL_SECONDS = 24 * 60 * 60
TOKEN_BYTES = 16

_TRUTHY = {"true", "1", "yes"}


def session_key(token: str) -> str:
    return f"{SESSION_KEY_PREFIX}{token}"


def _is_revoked(record: dict[str, str]) -> bool:
    return record.get("isRevoked", "").strip().lower() in _TRUTHY


class SessionManager:
    """Issues, validates and revokes session tokens for email identities."""

    def __init__(
        self,
        store: AbstractKeyValueStore,
        *,
        ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
        token_factory: Callable[[], str] | None = None,
    ) -> None:
        """Initialize the manager.

        Args:
            store: Shared key-value store.
            ttl_seconds: Session lifetime, reset on each successful validation.
            clock: Time source returning UNIX time in seconds.
            token_factory: Token generator; defaults to 128 random bits as hex.

        Raises:
            ValueError: If ttl_seconds is not positive.
        """
        if ttl_seconds < 1:
            raise ValueError("ttl_seconds must be >= 1")

        self._store = store
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._token_factory = token_factory or (lambda: secrets.token_hex(TOKEN_BYTES))

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    async def issue(self, identity: EmailIdentity) -> str:
        """Create a session for ``identity`` and return its token."""
        token = self._token_factory()
        key = session_key(token)

        await self._store.hset(
            key,
            {
                "createdAt": int(self._clock() * 1000),
                "isRevoked": "false",
                "userEmail": identity.value,
            },
        )
        await self._store.expire(key, self._ttl_seconds)

        logger.info(
            "session.issued",
            extra={"identity_hash": hash_identity(identity), "ttl_s": self._ttl_seconds},
        )
        return token

    async def validate(self, token: str) -> str | None:
        """Return the owning email if ``token`` is live and not revoked.

        Unknown, expired and revoked tokens all yield None.
        """
        token = (token or "").strip()
        if not token:
            return None

        key = session_key(token)
        record = await self._store.hgetall(key)
        if not record:
            logger.info("session.rejected", extra={"reason": "not_found"})
            return None
        if _is_revoked(record):
            logger.info("session.rejected", extra={"reason": "revoked"})
            return None

        await self._store.expire(key, self._ttl_seconds)
        return record.get("userEmail") or None

    async def revoke(self, token: str) -> bool:
        """Mark a session revoked. Returns False if no such session exists.

        The record keeps its remaining TTL and disappears on natural expiry.
        The TTL is re-applied after the write so a record that expires between
        the read and the write cannot come back as a key without expiry.
        """
        token = (token or "").strip()
        if not token:
            return False

        key = session_key(token)
        if not await self._store.hgetall(key):
            return False

        remaining = await self._store.ttl(key)
        if remaining == -2:
            return False

        await self._store.hset(key, {"isRevoked": "true"})
        if remaining >= 0:
            await self._store.expire(key, remaining)
        logger.info("session.revoked")
        return True
