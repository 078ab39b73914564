"""Application-level exception types.

Domain errors shared by services, adapters and the HTTP layer. Store and
transport failures are deliberately absent: they surface as the Redis
client's own exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, NotRequired, TypedDict


class ErrorDetails(TypedDict, total=False):
    """Structured error context for observability and clients."""

    hint: str
    identity_kind: str
    plan: str
    limit: int
    remaining: int
    reset_at: int
    retry_after: int
    backend: str
    context: NotRequired[dict[str, Any]]


@dataclass
class AppError(Exception):
    """Base error for application/domain failures.

    Attributes:
        code: Stable, machine-readable error code.
        message: Human-readable error message.
        details: Optional structured details for debugging/observability.
    """

    code: str
    message: str
    details: ErrorDetails | None = None

    def __post_init__(self) -> None:
        # Populate Exception args so str(error) is useful in logs/tracebacks.
        super().__init__(self.message)


class ValidationAppError(AppError):
    """Raised when input/config validation fails."""


class AuthenticationAppError(AppError):
    """Raised when API key authentication fails."""


class SessionAppError(AppError):
    """Raised at the HTTP edge when a session token does not authenticate."""


class RateLimitAppError(AppError):
    """Raised when an identity has used up its plan budget."""
