from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Response, status

from access_control.core.auth import verify_api_key
from access_control.core.dependencies import get_access_control, get_rate_limiter
from access_control.core.rate_limit import enforce_rate_limit, rate_limit_headers
from access_control.schemas.limits import (
    BatchHistoryRequest,
    BatchHistoryResponse,
    ConsumeResponse,
    NewRequestResponse,
    RequestHistoryResponse,
)
from access_control.services.access_control import AccessControl
from access_control.services.identity import parse_identity
from access_control.services.rate_limiter import RateLimiter

router = APIRouter(
    prefix="/limits",
    tags=["Limits"],
    dependencies=[Depends(verify_api_key)],
)

Access = Annotated[AccessControl, Depends(get_access_control)]


@router.post("/batch", response_model=BatchHistoryResponse)
async def get_histories(
    body: BatchHistoryRequest,
    limiter: Annotated[RateLimiter, Depends(get_rate_limiter)],
) -> BatchHistoryResponse:
    """Raw histories for several identities in one store round trip.

    Nothing is pruned, so entries older than the plan window may appear.
    """
    identities = [parse_identity(raw) for raw in body.identities]
    histories = await AccessControl.get_requests_timestamps_of(limiter, *identities)
    return BatchHistoryResponse(
        results=[
            RequestHistoryResponse(identity=identity.value, timestamps=timestamps)
            for identity, timestamps in zip(identities, histories)
        ]
    )


@router.get("/{identity}", response_model=RequestHistoryResponse)
async def get_history(access: Access) -> RequestHistoryResponse:
    """Requests still inside the identity's plan window, oldest first."""
    plan = await access.get_plan()
    timestamps = await access.get_requests_timestamp(plan=plan)
    return RequestHistoryResponse(identity=access.identity.value, plan=plan, timestamps=timestamps)


@router.post(
    "/{identity}/requests",
    response_model=NewRequestResponse,
    status_code=status.HTTP_201_CREATED,
)
async def record_request(access: Access) -> NewRequestResponse:
    """Record a request unconditionally; the caller has already decided."""
    timestamp = await access.new_request()
    return NewRequestResponse(identity=access.identity.value, timestamp=timestamp)


@router.post("/{identity}/consume", response_model=ConsumeResponse)
async def consume(access: Access, response: Response) -> ConsumeResponse:
    """Check the plan budget and record the request when it fits.

    Raises:
        RateLimitAppError: 429 when the budget is exhausted.
    """
    outcome = await enforce_rate_limit(access)
    response.headers.update(rate_limit_headers(outcome.result))

    return ConsumeResponse(
        identity=access.identity.value,
        plan=outcome.plan,
        timestamp=outcome.timestamp,
        limit=outcome.result.limit,
        remaining=outcome.result.remaining,
        reset_at=outcome.result.reset_at,
        throttled=outcome.result.throttled,
    )


@router.delete("/{identity}", response_model=RequestHistoryResponse)
async def reset_history(access: Access) -> RequestHistoryResponse:
    timestamps = await access.reset_limit()
    return RequestHistoryResponse(identity=access.identity.value, timestamps=timestamps)
