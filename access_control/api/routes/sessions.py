from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from access_control.core.auth import verify_api_key
from access_control.core.dependencies import get_rate_limiter, get_session_manager
from access_control.core.errors import SessionAppError, ValidationAppError
from access_control.schemas.sessions import (
    IssueSessionRequest,
    IssueSessionResponse,
    RevokeSessionRequest,
    RevokeSessionResponse,
    ValidateSessionRequest,
    ValidateSessionResponse,
)
from access_control.services.access_control import AccessControl
from access_control.services.rate_limiter import RateLimiter
from access_control.services.session_manager import SessionManager

router = APIRouter(
    prefix="/sessions",
    tags=["Sessions"],
    dependencies=[Depends(verify_api_key)],
)

Sessions = Annotated[SessionManager, Depends(get_session_manager)]
Limiter = Annotated[RateLimiter, Depends(get_rate_limiter)]


@router.post(
    "",
    response_model=IssueSessionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def issue_session(
    body: IssueSessionRequest, sessions: Sessions, limiter: Limiter
) -> IssueSessionResponse:
    """Open a session for an email identity.

    Raises:
        ValidationAppError: 400 when the identity is an IP address.
    """
    access = AccessControl(body.identity, sessions=sessions, limiter=limiter)
    token = await access.new_session_token()
    if token is None:
        raise ValidationAppError(
            code="session_requires_email",
            message="Sessions can only be issued to email identities",
            details={"identity_kind": access.identity.kind},
        )
    return IssueSessionResponse(token=token, expires_in=sessions.ttl_seconds)


@router.post("/validate", response_model=ValidateSessionResponse)
async def validate_session(
    body: ValidateSessionRequest, sessions: Sessions, limiter: Limiter
) -> ValidateSessionResponse:
    """Resolve a token to its user, extending the session on success.

    Unknown, expired and revoked tokens are indistinguishable to the caller.
    """
    access = AccessControl(body.identity, sessions=sessions, limiter=limiter)
    email = await access.validate_session_token(body.token)
    if email is None:
        raise SessionAppError(
            code="invalid_session",
            message="Session token is invalid, expired or revoked",
        )
    return ValidateSessionResponse(email=email)


@router.post("/revoke", response_model=RevokeSessionResponse)
async def revoke_session(body: RevokeSessionRequest, sessions: Sessions) -> RevokeSessionResponse:
    return RevokeSessionResponse(revoked=await sessions.revoke(body.token))
