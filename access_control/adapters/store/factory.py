"""Factory for the configured key-value store."""

from access_control.adapters.store.base import AbstractKeyValueStore
from access_control.adapters.store.in_memory import InMemoryKeyValueStore
from access_control.adapters.store.redis_store import RedisKeyValueStore
from access_control.core.config import StoreSettings, settings
from access_control.core.errors import ValidationAppError


def create_store(store_settings: StoreSettings | None = None) -> AbstractKeyValueStore:
    """Instantiate the store selected by configuration.

    Args:
        store_settings: Optional settings; defaults to the global settings.

    Returns:
        AbstractKeyValueStore: Ready-to-use store instance.

    Raises:
        ValidationAppError: If the backend is unknown or Redis has no URL.
    """
    cfg = store_settings or settings.store
    backend = cfg.backend.lower()

    if backend == "memory":
        return InMemoryKeyValueStore()

    if backend == "redis":
        if not cfg.redis_url:
            raise ValidationAppError(
                code="store_missing_url",
                message="Redis backend requires STORE_REDIS_URL environment variable",
                details={"backend": backend},
            )
        return RedisKeyValueStore.from_url(
            cfg.redis_url,
            socket_timeout=cfg.socket_timeout_seconds,
        )

    raise ValidationAppError(
        code="store_unknown_backend",
        message=f"Unknown store backend: '{backend}'. Supported backends: memory, redis",
        details={"backend": backend},
    )
