"""Tests for store backend selection."""

import pytest

from access_control.adapters.store.factory import create_store
from access_control.adapters.store.in_memory import InMemoryKeyValueStore
from access_control.adapters.store.redis_store import RedisKeyValueStore
from access_control.core.config import StoreSettings
from access_control.core.errors import ValidationAppError


def test_memory_backend() -> None:
    store = create_store(StoreSettings(backend="memory"))
    assert isinstance(store, InMemoryKeyValueStore)


def test_redis_backend_is_case_insensitive() -> None:
    store = create_store(StoreSettings(backend="Redis", redis_url="redis://localhost:6379/0"))
    assert isinstance(store, RedisKeyValueStore)


def test_redis_backend_requires_url() -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        create_store(StoreSettings(backend="redis", redis_url=""))
    assert exc_info.value.code == "store_missing_url"


def test_unknown_backend() -> None:
    with pytest.raises(ValidationAppError) as exc_info:
        create_store(StoreSettings(backend="memcached"))
    assert exc_info.value.code == "store_unknown_backend"
    assert "memcached" in exc_info.value.message
