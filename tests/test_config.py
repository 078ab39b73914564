"""Tests for settings defaults and environment overrides."""

import pytest
from pydantic import ValidationError

from access_control.core.config import AppSettings, LogSettings, StoreSettings


def test_access_defaults(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("APP_SESSION_TTL_SECONDS", "APP_FREE_WINDOW_SECONDS", "APP_PAID_WINDOW_SECONDS"):
        monkeypatch.delenv(name, raising=False)

    cfg = AppSettings()

    assert cfg.session_ttl_seconds == 86400
    assert cfg.free_window_seconds == 3600
    assert cfg.paid_window_seconds == 10800
    assert cfg.default_plan == "free"


def test_env_prefixes(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_SESSION_TTL_SECONDS", "60")
    monkeypatch.setenv("STORE_BACKEND", "redis")
    monkeypatch.setenv("STORE_REDIS_URL", "redis://cache:6379/2")
    monkeypatch.setenv("LOG_FORMAT", "plain")

    assert AppSettings().session_ttl_seconds == 60
    assert StoreSettings().backend == "redis"
    assert StoreSettings().redis_url == "redis://cache:6379/2"
    assert LogSettings().format == "plain"


def test_rejects_non_positive_windows(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_FREE_WINDOW_SECONDS", "0")
    with pytest.raises(ValidationError):
        AppSettings()
