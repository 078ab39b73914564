"""Identity-bound access control.

``AccessControl`` binds one caller identity to the session manager and the
rate limiter, so request handlers can work with a single object per caller.
Session operations are only defined for email identities; for IP identities
they return None (or False) without touching the store.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from access_control.adapters.plans.base import FREE_PLAN
from access_control.services.identity import EmailIdentity, Identity, hash_identity, parse_identity
from access_control.services.rate_limiter import RateLimiter
from access_control.services.rate_policy import (
    FALLBACK_PAID_PLAN,
    PlanPolicy,
    RateLimitResult,
    build_policies,
    evaluate,
    policy_for,
)
from access_control.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConsumeOutcome:
    """Result of ``AccessControl.check_and_record``."""

    plan: str
    result: RateLimitResult
    timestamp: int | None


class AccessControl:
    """Sessions and request history for one email-or-IP caller."""

    def __init__(
        self,
        identity: Identity | str,
        *,
        sessions: SessionManager,
        limiter: RateLimiter,
        policies: dict[str, PlanPolicy] | None = None,
    ) -> None:
        """Bind ``identity`` to the shared services.

        Args:
            identity: Parsed identity or raw email/IP string.
            sessions: Session manager for email identities.
            limiter: Request history store.
            policies: Budget overrides by plan. Plans left out get the
                default limits with the limiter's pruning windows.

        Raises:
            ValidationAppError: If a raw identity is blank.
            ValueError: If a policy window is longer than the history the
                limiter keeps for that plan.
        """
        if isinstance(identity, str):
            identity = parse_identity(identity)
        self.identity = identity
        self._sessions = sessions
        self._limiter = limiter
        self._policies = {
            **build_policies(
                limiter.window_seconds_for(FREE_PLAN),
                limiter.window_seconds_for(FALLBACK_PAID_PLAN),
            ),
            **(policies or {}),
        }
        for plan, policy in self._policies.items():
            kept = limiter.window_seconds_for(plan)
            if policy.window_seconds > kept:
                raise ValueError(
                    f"{plan} policy window ({policy.window_seconds}s) exceeds the "
                    f"{kept}s of history kept for that plan"
                )

    @property
    def is_ip(self) -> bool:
        return not isinstance(self.identity, EmailIdentity)

    async def new_session_token(self) -> str | None:
        if not isinstance(self.identity, EmailIdentity):
            return None
        return await self._sessions.issue(self.identity)

    async def validate_session_token(self, token: str) -> str | None:
        if not isinstance(self.identity, EmailIdentity):
            return None
        return await self._sessions.validate(token)

    async def revoke_session_token(self, token: str) -> bool:
        if not isinstance(self.identity, EmailIdentity):
            return False
        return await self._sessions.revoke(token)

    async def get_plan(self) -> str:
        return await self._limiter.get_plan(self.identity)

    async def get_requests_timestamp(self, *, plan: str | None = None) -> list[int]:
        return await self._limiter.get_requests_timestamp(self.identity, plan=plan)

    async def new_request(self) -> int:
        return await self._limiter.new_request(self.identity)

    async def reset_limit(self) -> list[int]:
        return await self._limiter.reset_limit(self.identity)

    async def check_and_record(self) -> ConsumeOutcome:
        """Prune, decide against the plan budget, and record if allowed.

        The read and the write are separate store calls, so concurrent
        callers for the same identity may both pass the last free slot.
        """
        plan = await self._limiter.get_plan(self.identity)
        history = await self._limiter.get_requests_timestamp(self.identity, plan=plan)
        policy = policy_for(plan, self._policies)
        result = evaluate(history, policy, self._limiter.now_ms())

        timestamp = None
        if result.allowed:
            timestamp = await self._limiter.new_request(self.identity)

        log_extra = {
            "identity_hash": hash_identity(self.identity),
            "identity_kind": self.identity.kind,
            "plan": plan,
            "limit": result.limit,
            "remaining": result.remaining,
            "window_s": policy.window_seconds,
        }
        if not result.allowed:
            logger.warning("rate_limit.exceeded", extra={**log_extra, "retry_after_s": result.retry_after_seconds})
        elif result.throttled:
            logger.warning("rate_limit.throttled", extra=log_extra)
        else:
            logger.info("rate_limit.allowed", extra=log_extra)

        return ConsumeOutcome(plan=plan, result=result, timestamp=timestamp)

    @staticmethod
    async def get_requests_timestamps_of(
        limiter: RateLimiter, *identities: Identity | str
    ) -> list[list[int]]:
        """Batch raw read of several histories, in input order, unpruned."""
        parsed = [parse_identity(i) if isinstance(i, str) else i for i in identities]
        return await limiter.get_requests_timestamps_of(*parsed)
