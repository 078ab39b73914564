from __future__ import annotations

from access_control.api.routes.health import router as health_router
from access_control.api.routes.limits import router as limits_router
from access_control.api.routes.sessions import router as sessions_router

__all__ = ["health_router", "limits_router", "sessions_router"]
