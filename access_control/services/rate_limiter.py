"""Sliding-window request history per identity.

Each identity owns a sorted set at ``limit:<identity>`` whose members and
scores are request timestamps in milliseconds. Entries are pruned lazily on
read: free plans keep one hour of history, every other plan three hours.

This component only records and prunes. Whether a request may proceed is
decided by the caller from the returned history (see ``rate_policy``).
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from access_control.adapters.plans.base import FREE_PLAN, AbstractPlanProvider
from access_control.adapters.store.base import AbstractKeyValueStore
from access_control.services.identity import Identity, hash_identity

logger = logging.getLogger(__name__)

DEFAULT_FREE_WINDOW_SECONDS = 60 * 60
DEFAULT_PAID_WINDOW_SECONDS = 3 * 60 * 60


class RateLimiter:
    """Records request timestamps and prunes them by plan window."""

    def __init__(
        self,
        store: AbstractKeyValueStore,
        plans: AbstractPlanProvider,
        *,
        free_window_seconds: int = DEFAULT_FREE_WINDOW_SECONDS,
        paid_window_seconds: int = DEFAULT_PAID_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if free_window_seconds < 1 or paid_window_seconds < 1:
            raise ValueError("window sizes must be >= 1 second")

        self._store = store
        self._plans = plans
        self._free_window_seconds = free_window_seconds
        self._paid_window_seconds = paid_window_seconds
        self._clock = clock

    def now_ms(self) -> int:
        return int(self._clock() * 1000)

    def window_seconds_for(self, plan: str) -> int:
        """History length kept for ``plan``."""
        if plan == FREE_PLAN:
            return self._free_window_seconds
        return self._paid_window_seconds

    async def get_plan(self, identity: Identity) -> str:
        return await self._plans.get_plan(identity)

    async def get_requests_timestamp(self, identity: Identity, *, plan: str | None = None) -> list[int]:
        """Prune stale entries and return the remaining history, ascending.

        Args:
            identity: Caller whose history to read.
            plan: Already-resolved plan; looked up when omitted.

        Returns:
            Timestamps in milliseconds, oldest first.
        """
        if plan is None:
            plan = await self._plans.get_plan(identity)

        window_ms = self.window_seconds_for(plan) * 1000
        removed = await self._store.zremrangebyscore(
            identity.limit_key, 0, self.now_ms() - window_ms
        )
        if removed:
            logger.debug(
                "rate_limit.pruned",
                extra={
                    "identity_hash": hash_identity(identity),
                    "plan": plan,
                    "removed": removed,
                },
            )

        return await self._store.zrange(identity.limit_key, 0, -1)

    async def new_request(self, identity: Identity) -> int:
        """Append the current time to the history and return it.

        Two calls within the same millisecond collapse into one member.
        """
        timestamp = self.now_ms()
        await self._store.zadd(identity.limit_key, timestamp, timestamp)
        return timestamp

    async def get_requests_timestamps_of(self, *identities: Identity) -> list[list[int]]:
        """Raw, unpruned histories for several identities in input order."""
        return await self._store.zrange_batch([i.limit_key for i in identities])

    async def reset_limit(self, identity: Identity) -> list[int]:
        """Clear the history. Returns what remains (always empty)."""
        await self._store.zremrangebyrank(identity.limit_key, 0, -1)
        logger.info("rate_limit.reset", extra={"identity_hash": hash_identity(identity)})
        return await self._store.zrange(identity.limit_key, 0, -1)
