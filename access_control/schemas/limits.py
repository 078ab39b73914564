"""Pydantic schemas for request-history endpoints."""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


class RequestHistoryResponse(BaseModel):
    """Request history of one identity."""

    identity: str = Field(..., description="Email or IP the history belongs to.")
    plan: str | None = Field(
        default=None,
        description="Plan used to choose the pruning window (absent on raw reads).",
    )
    timestamps: List[int] = Field(
        default_factory=list,
        description="Request times in milliseconds since the epoch, oldest first.",
    )


class NewRequestResponse(BaseModel):
    identity: str
    timestamp: int = Field(..., description="Recorded request time in milliseconds.")


class ConsumeResponse(BaseModel):
    """Decision for a request that was allowed and recorded."""

    identity: str
    plan: str
    timestamp: int = Field(..., description="Recorded request time in milliseconds.")
    limit: int = Field(..., description="Requests allowed per window for the plan.")
    remaining: int = Field(..., description="Requests left in the current window.")
    reset_at: int = Field(..., description="UNIX seconds when the oldest request leaves the window.")
    throttled: bool = Field(
        False, description="Soft limit exceeded; the caller should slow the request down."
    )


class BatchHistoryRequest(BaseModel):
    identities: List[str] = Field(
        ..., min_length=1, max_length=500, description="Emails or IPs to read, in order."
    )


class BatchHistoryResponse(BaseModel):
    results: List[RequestHistoryResponse] = Field(
        ..., description="One raw (unpruned) history per requested identity, same order."
    )
