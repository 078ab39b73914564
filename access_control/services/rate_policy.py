"""Per-plan rate-limit decisions over a request history.

Default budgets:
- free: 10 requests per hour
- pro: 50 requests per three hours
- premium: 100 requests per three hours, soft. Going over does not deny the
  request but flags it as throttled so the caller can slow it down.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Mapping

from access_control.adapters.plans.base import FREE_PLAN


@dataclass(frozen=True)
class PlanPolicy:
    """Request budget of one plan.

    Attributes:
        plan: Plan name the budget applies to.
        limit: Requests allowed per window.
        window_seconds: Length of the sliding window.
        soft: When True, exceeding the limit throttles instead of denying.
    """

    plan: str
    limit: int
    window_seconds: int
    soft: bool = False


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of evaluating a history against a policy.

    Attributes:
        allowed: Whether the request may proceed.
        limit: Max requests per window.
        remaining: Requests left in the window (0 when exhausted).
        reset_at: UNIX epoch seconds when the oldest counted request leaves
            the window.
        retry_after_seconds: Suggested wait when blocked or throttled.
        throttled: Soft limit exceeded; allowed but should be slowed down.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: int
    retry_after_seconds: int | None
    throttled: bool = False


PLAN_LIMITS: dict[str, tuple[int, bool]] = {
    FREE_PLAN: (10, False),
    "pro": (50, False),
    "premium": (100, True),
}

FALLBACK_PAID_PLAN = "pro"


def build_policies(
    free_window_seconds: int = 60 * 60,
    paid_window_seconds: int = 3 * 60 * 60,
) -> dict[str, PlanPolicy]:
    """Plan budgets whose windows match the history kept for each plan.

    The limiter prunes free histories after ``free_window_seconds`` and every
    other plan after ``paid_window_seconds``; a budget window longer than that
    would be judged against a history that has already lost entries.
    """
    return {
        plan: PlanPolicy(
            plan=plan,
            limit=limit,
            window_seconds=free_window_seconds if plan == FREE_PLAN else paid_window_seconds,
            soft=soft,
        )
        for plan, (limit, soft) in PLAN_LIMITS.items()
    }


DEFAULT_POLICIES: dict[str, PlanPolicy] = build_policies()


def policy_for(plan: str, policies: Mapping[str, PlanPolicy] | None = None) -> PlanPolicy:
    """Look up the policy for ``plan``; unknown paid plans get the pro budget."""
    table = policies or DEFAULT_POLICIES
    if plan in table:
        return table[plan]
    if plan == FREE_PLAN:
        return DEFAULT_POLICIES[FREE_PLAN]
    return table.get(FALLBACK_PAID_PLAN, DEFAULT_POLICIES[FALLBACK_PAID_PLAN])


def evaluate(timestamps: Iterable[int], policy: PlanPolicy, now_ms: int) -> RateLimitResult:
    """Decide whether one more request fits in the policy window.

    Args:
        timestamps: Request history in milliseconds, any order.
        policy: Budget to apply.
        now_ms: Current time in milliseconds.

    Returns:
        RateLimitResult for a request made at ``now_ms``.
    """
    window_ms = policy.window_seconds * 1000
    window_start = now_ms - window_ms
    counted = sorted(ts for ts in timestamps if ts > window_start)

    used = len(counted)
    if counted:
        reset_at_ms = counted[0] + window_ms
    else:
        reset_at_ms = now_ms + window_ms
    reset_at = int(math.ceil(reset_at_ms / 1000))

    if used < policy.limit:
        return RateLimitResult(
            allowed=True,
            limit=policy.limit,
            remaining=policy.limit - used - 1,
            reset_at=reset_at,
            retry_after_seconds=None,
        )

    retry_after = max(0, int(math.ceil((reset_at_ms - now_ms) / 1000)))
    return RateLimitResult(
        allowed=policy.soft,
        limit=policy.limit,
        remaining=0,
        reset_at=reset_at,
        retry_after_seconds=retry_after,
        throttled=policy.soft,
    )
