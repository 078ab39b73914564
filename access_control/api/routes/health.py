from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from access_control.adapters.store.base import AbstractKeyValueStore
from access_control.core.dependencies import get_store

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check(store: Annotated[AbstractKeyValueStore, Depends(get_store)]) -> dict:
    """Liveness plus store reachability.

    A failing store propagates as a Redis error and is reported as 503 by
    the exception handlers.
    """
    await store.ping()
    return {"status": "ok", "store": "ok"}
