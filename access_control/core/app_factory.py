"""Application factory for the access-control API.

Builds the store client once per process, hangs the services off
``app.state`` and closes the store on shutdown. Tests pass their own store
and plan provider instead of going through configuration.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from access_control.adapters.plans.base import AbstractPlanProvider
from access_control.adapters.plans.providers import StorePlanProvider
from access_control.adapters.store.base import AbstractKeyValueStore
from access_control.adapters.store.factory import create_store
from access_control.api.routes import health_router, limits_router, sessions_router
from access_control.core.config import settings
from access_control.core.exception_handlers import setup_exception_handlers
from access_control.core.logging import configure_logging
from access_control.core.middleware import request_id_middleware
from access_control.core.openapi import TAGS_METADATA, apply_openapi_customizations
from access_control.services.rate_limiter import RateLimiter
from access_control.services.rate_policy import build_policies
from access_control.services.session_manager import SessionManager

logger = logging.getLogger(__name__)


def create_app(
    *,
    store: AbstractKeyValueStore | None = None,
    plans: AbstractPlanProvider | None = None,
    clock: Callable[[], float] | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        store: Store to use; built from ``STORE_*`` settings when omitted.
        plans: Plan provider; defaults to reading ``user:<email>`` hashes.
        clock: Time source for the services (tests freeze time with it).

    Returns:
        Configured app with middleware, handlers and routers.
    """
    configure_logging(settings.log)

    owns_store = store is None
    kv_store = store if store is not None else create_store(settings.store)
    plan_provider = plans or StorePlanProvider(kv_store, default=settings.app.default_plan)
    clock_kwargs = {"clock": clock} if clock is not None else {}

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info("app.startup", extra={"store_backend": type(kv_store).__name__})
        try:
            yield
        finally:
            if owns_store:
                await kv_store.close()
            logger.info("app.shutdown")

    app = FastAPI(
        title="Access Control API",
        description=(
            "Session tokens for email-identified users and per-identity request "
            "history with plan-based pruning windows. Requires X-API-Key."
        ),
        version="0.1.0",
        openapi_tags=TAGS_METADATA,
        lifespan=lifespan,
    )

    app.state.store = kv_store
    app.state.plans = plan_provider
    app.state.session_manager = SessionManager(
        kv_store,
        ttl_seconds=settings.app.session_ttl_seconds,
        **clock_kwargs,
    )
    app.state.rate_limiter = RateLimiter(
        kv_store,
        plan_provider,
        free_window_seconds=settings.app.free_window_seconds,
        paid_window_seconds=settings.app.paid_window_seconds,
        **clock_kwargs,
    )
    app.state.policies = build_policies(
        settings.app.free_window_seconds,
        settings.app.paid_window_seconds,
    )

    app.middleware("http")(request_id_middleware)
    setup_exception_handlers(app)

    app.include_router(sessions_router, prefix="/v1")
    app.include_router(limits_router, prefix="/v1")
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
