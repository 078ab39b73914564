"""Pytest configuration and fixtures shared across all test modules.

Environment variables are set before any import of ``access_control`` so
that the settings object is built for the test environment.
"""

import os

os.environ["APP_ENV"] = "testing"
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("APP_API_KEY_REQUIRED", "true")
os.environ.setdefault("APP_API_KEYS", "test-api-key-123,test-api-key-456")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest

from access_control.adapters.plans.providers import StaticPlanProvider
from access_control.adapters.store.in_memory import InMemoryKeyValueStore
from access_control.services.rate_limiter import RateLimiter
from access_control.services.session_manager import SessionManager

# 2023-11-14T22:13:20Z
NOW = 1_700_000_000.0


class FakeClock:
    """Settable time source shared by the store and the services."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    @property
    def now_ms(self) -> int:
        return int(self.now * 1000)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore(clock=clock)


@pytest.fixture
def plans() -> StaticPlanProvider:
    return StaticPlanProvider({"pro@example.com": "pro", "vip@example.com": "premium"})


@pytest.fixture
def session_manager(store: InMemoryKeyValueStore, clock: FakeClock) -> SessionManager:
    return SessionManager(store, clock=clock)


@pytest.fixture
def rate_limiter(
    store: InMemoryKeyValueStore, plans: StaticPlanProvider, clock: FakeClock
) -> RateLimiter:
    return RateLimiter(store, plans, clock=clock)
