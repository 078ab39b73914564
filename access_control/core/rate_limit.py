"""HTTP-side rate limit enforcement.

Wires ``AccessControl.check_and_record`` into the request flow: an identity
over its plan budget turns into a RateLimitAppError, which the exception
handlers render as 429 with ``Retry-After`` and ``X-RateLimit-*`` headers.
"""

from __future__ import annotations

from access_control.core.config import settings
from access_control.core.errors import RateLimitAppError
from access_control.services.access_control import AccessControl, ConsumeOutcome
from access_control.services.rate_policy import RateLimitResult


def rate_limit_headers(result: RateLimitResult) -> dict[str, str]:
    """Response headers describing the caller's budget."""
    if not settings.app.rate_limit_include_headers:
        return {}

    headers = {
        "X-RateLimit-Limit": str(result.limit),
        "X-RateLimit-Remaining": str(result.remaining),
        "X-RateLimit-Reset": str(result.reset_at),
    }
    if result.retry_after_seconds is not None:
        headers["Retry-After"] = str(result.retry_after_seconds)
    return headers


async def enforce_rate_limit(access: AccessControl) -> ConsumeOutcome:
    """Record a request for ``access.identity`` if its plan allows it.

    Returns:
        ConsumeOutcome of the recorded request (possibly throttled).

    Raises:
        RateLimitAppError: When the plan budget is exhausted.
    """
    outcome = await access.check_and_record()
    if outcome.result.allowed:
        return outcome

    result = outcome.result
    raise RateLimitAppError(
        code="rate_limit_exceeded",
        message="Rate limit exceeded. Try again later.",
        details={
            "identity_kind": access.identity.kind,
            "plan": outcome.plan,
            "limit": result.limit,
            "remaining": result.remaining,
            "reset_at": result.reset_at,
            "retry_after": result.retry_after_seconds or 0,
        },
    )
