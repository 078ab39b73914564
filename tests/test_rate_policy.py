"""Unit tests for plan budgets and the allow/deny decision."""

import pytest

from access_control.services.rate_policy import (
    DEFAULT_POLICIES,
    PlanPolicy,
    build_policies,
    evaluate,
    policy_for,
)

NOW_MS = 1_700_000_000_000
MINUTE_MS = 60 * 1000


def test_default_budgets() -> None:
    assert DEFAULT_POLICIES["free"] == PlanPolicy("free", 10, 3600)
    assert DEFAULT_POLICIES["pro"] == PlanPolicy("pro", 50, 10800)
    assert DEFAULT_POLICIES["premium"] == PlanPolicy("premium", 100, 10800, soft=True)


def test_build_policies_uses_given_windows() -> None:
    policies = build_policies(600, 7200)

    assert policies["free"] == PlanPolicy("free", 10, 600)
    assert policies["pro"] == PlanPolicy("pro", 50, 7200)
    assert policies["premium"] == PlanPolicy("premium", 100, 7200, soft=True)


@pytest.mark.parametrize(
    ("plan", "expected"),
    [("free", "free"), ("pro", "pro"), ("premium", "premium"), ("enterprise", "pro")],
)
def test_policy_for(plan: str, expected: str) -> None:
    assert policy_for(plan).plan == expected


def test_policy_for_custom_table_falls_back_to_defaults() -> None:
    table = {"pro": PlanPolicy("pro", 5, 60)}
    assert policy_for("team", table).limit == 5
    assert policy_for("free", table) == DEFAULT_POLICIES["free"]


def test_empty_history_is_allowed() -> None:
    policy = PlanPolicy("free", 10, 3600)
    result = evaluate([], policy, NOW_MS)

    assert result.allowed is True
    assert result.remaining == 9
    assert result.retry_after_seconds is None
    assert result.reset_at == (NOW_MS + 3600 * 1000) // 1000


def test_last_slot_is_allowed() -> None:
    policy = PlanPolicy("free", 3, 3600)
    history = [NOW_MS - 2 * MINUTE_MS, NOW_MS - MINUTE_MS]

    result = evaluate(history, policy, NOW_MS)

    assert result.allowed is True
    assert result.remaining == 0


def test_full_window_is_denied_with_retry_after() -> None:
    policy = PlanPolicy("free", 3, 3600)
    oldest = NOW_MS - 50 * MINUTE_MS
    history = [oldest, NOW_MS - MINUTE_MS, NOW_MS]

    result = evaluate(history, policy, NOW_MS)

    assert result.allowed is False
    assert result.throttled is False
    assert result.remaining == 0
    assert result.retry_after_seconds == 10 * 60
    assert result.reset_at == (oldest + 3600 * 1000) // 1000


def test_entries_outside_window_do_not_count() -> None:
    policy = PlanPolicy("free", 2, 3600)
    history = [NOW_MS - 2 * 3600 * 1000, NOW_MS - 3600 * 1000, NOW_MS - MINUTE_MS]

    result = evaluate(history, policy, NOW_MS)

    assert result.allowed is True
    assert result.remaining == 0


def test_soft_limit_throttles_instead_of_denying() -> None:
    policy = PlanPolicy("premium", 2, 10800, soft=True)
    history = [NOW_MS - 2 * MINUTE_MS, NOW_MS - MINUTE_MS]

    result = evaluate(history, policy, NOW_MS)

    assert result.allowed is True
    assert result.throttled is True
    assert result.remaining == 0
    assert result.retry_after_seconds is not None
