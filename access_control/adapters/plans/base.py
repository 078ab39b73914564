"""Plan lookup interface.

Plan tiers are owned by the billing side of the system; access control only
reads them to pick a rate-limit window.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from access_control.services.identity import Identity

FREE_PLAN = "free"


def normalize_plan(plan: str | None, default: str = FREE_PLAN) -> str:
    """Lower-case and trim a plan name, falling back to ``default``."""
    value = (plan or "").strip().lower()
    return value or default


class AbstractPlanProvider(ABC):
    """Resolves an identity to its subscription tier."""

    @abstractmethod
    async def get_plan(self, identity: Identity) -> str:
        """Return the plan name, e.g. ``free``, ``pro`` or ``premium``."""
        raise NotImplementedError
