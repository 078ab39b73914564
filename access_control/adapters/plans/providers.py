"""Plan provider implementations."""

from __future__ import annotations

import logging
from typing import Mapping

from access_control.adapters.plans.base import FREE_PLAN, AbstractPlanProvider, normalize_plan
from access_control.adapters.store.base import AbstractKeyValueStore
from access_control.services.identity import EmailIdentity, Identity, hash_identity

logger = logging.getLogger(__name__)

USER_KEY_PREFIX = "user:"


class StaticPlanProvider(AbstractPlanProvider):
    """Plans from a fixed mapping of identity value to plan name."""

    def __init__(self, plans: Mapping[str, str] | None = None, *, default: str = FREE_PLAN) -> None:
        self._plans = {k.strip(): v for k, v in (plans or {}).items()}
        self._default = normalize_plan(default)

    def set_plan(self, identity_value: str, plan: str) -> None:
        """Assign a plan to an identity. For testing."""
        self._plans[identity_value.strip()] = plan

    async def get_plan(self, identity: Identity) -> str:
        return normalize_plan(self._plans.get(identity.value), self._default)


class StorePlanProvider(AbstractPlanProvider):
    """Plans read from the ``plan`` field of the ``user:<email>`` hash.

    Anonymous (IP) callers have no user record and always get the default.
    """

    def __init__(self, store: AbstractKeyValueStore, *, default: str = FREE_PLAN) -> None:
        self._store = store
        self._default = normalize_plan(default)

    async def get_plan(self, identity: Identity) -> str:
        if not isinstance(identity, EmailIdentity):
            return self._default

        record = await self._store.hgetall(f"{USER_KEY_PREFIX}{identity.value}")
        if not record:
            logger.debug(
                "plan.user_missing",
                extra={"identity_hash": hash_identity(identity), "plan": self._default},
            )
        return normalize_plan(record.get("plan"), self._default)
