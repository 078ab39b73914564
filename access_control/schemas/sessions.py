"""Pydantic schemas for session endpoints."""

from __future__ import annotations

from pydantic import BaseModel, Field


class IssueSessionRequest(BaseModel):
    """Request to open a session for a user."""

    identity: str = Field(
        ..., min_length=1, description="Email of the user the session belongs to."
    )


class IssueSessionResponse(BaseModel):
    token: str = Field(..., description="Opaque session token.")
    expires_in: int = Field(..., description="Seconds until the token expires if unused.")


class ValidateSessionRequest(BaseModel):
    """Request to check a token presented by a user."""

    identity: str = Field(
        ..., min_length=1, description="Email or IP of the caller presenting the token."
    )
    token: str = Field(..., description="Session token; surrounding whitespace is ignored.")


class ValidateSessionResponse(BaseModel):
    email: str = Field(..., description="Email the session was issued to.")


class RevokeSessionRequest(BaseModel):
    token: str = Field(..., description="Session token to revoke.")


class RevokeSessionResponse(BaseModel):
    revoked: bool = Field(
        ..., description="False when no live session matched the token."
    )
