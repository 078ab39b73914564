"""FastAPI dependencies exposing the process-wide collaborators.

The store, plan provider and services are built once by the app factory and
kept on ``app.state``; handlers receive them through these functions so
tests can swap in fakes with ``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from access_control.adapters.store.base import AbstractKeyValueStore
from access_control.services.access_control import AccessControl
from access_control.services.identity import parse_identity
from access_control.services.rate_limiter import RateLimiter
from access_control.services.rate_policy import PlanPolicy
from access_control.services.session_manager import SessionManager


def get_store(request: Request) -> AbstractKeyValueStore:
    return request.app.state.store


def get_session_manager(request: Request) -> SessionManager:
    return request.app.state.session_manager


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_policies(request: Request) -> dict[str, PlanPolicy]:
    return request.app.state.policies


def get_access_control(
    identity: str,
    sessions: Annotated[SessionManager, Depends(get_session_manager)],
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
    policies: Annotated[dict[str, PlanPolicy], Depends(get_policies)],
) -> AccessControl:
    """Bind the ``identity`` path parameter to an AccessControl instance.

    Raises:
        ValidationAppError: If the identity is blank.
    """
    return AccessControl(
        parse_identity(identity), sessions=sessions, limiter=limiter, policies=policies
    )
