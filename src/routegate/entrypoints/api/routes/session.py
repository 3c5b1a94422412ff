"""Session API routes: sign-in, sign-out and the current snapshot."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Request, status
from pydantic import BaseModel

from routegate.core.audit.recorder import generate_session_id
from routegate.core.auth.types import AuthSnapshot, Principal, Profile
from routegate.core.rbac import Team, first_allowed_route
from routegate.entrypoints.api.middleware.auth import (
    PrincipalDep,
    SessionServiceDep,
    SnapshotDep,
    get_client_ip,
    get_session_id,
)

router = APIRouter(prefix="/session", tags=["session"])

SessionIdDep = Annotated[str | None, Depends(get_session_id)]


class SignInRequest(BaseModel):
    """Sign-in notification from the client after the provider's callback."""

    provider: str | None = None


class SignInFailedRequest(BaseModel):
    """A sign-in the identity provider rejected."""

    email: str | None = None
    provider: str | None = None


class SnapshotResponse(BaseModel):
    """The caller's identity, profile and route scope."""

    principal: Principal | None
    profile: Profile | None
    team: Team | None
    effective_routes: list[str]
    landing_route: str
    session_id: str | None = None

    @classmethod
    def from_snapshot(
        cls, snapshot: AuthSnapshot, session_id: str | None = None
    ) -> SnapshotResponse:
        """Build the response from a snapshot."""
        return cls(
            principal=snapshot.principal,
            profile=snapshot.profile,
            team=snapshot.team,
            effective_routes=list(snapshot.effective_routes),
            landing_route=first_allowed_route(snapshot.profile, snapshot.effective_routes),
            session_id=session_id,
        )


class SignOutResponse(BaseModel):
    """Sign-out acknowledgement."""

    user_id: UUID
    signed_out: bool = True


@router.post("/sign-in", response_model=SnapshotResponse)
async def sign_in(
    body: SignInRequest,
    request: Request,
    principal: PrincipalDep,
    sessions: SessionServiceDep,
    session_id: SessionIdDep,
) -> SnapshotResponse:
    """Provision the caller's profile on first sign-in and return its snapshot.

    The response carries a browsing-session id; clients send it back as
    `X-Session-Id` for the rest of the session.
    """
    session_id = session_id or generate_session_id()
    snapshot = await sessions.sign_in(
        principal,
        session_id=session_id,
        provider=body.provider,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return SnapshotResponse.from_snapshot(snapshot, session_id=session_id)


@router.post("/sign-out", response_model=SignOutResponse)
async def sign_out(
    request: Request,
    principal: PrincipalDep,
    sessions: SessionServiceDep,
    session_id: SessionIdDep,
) -> SignOutResponse:
    """Record the caller's sign-out."""
    await sessions.sign_out(
        principal,
        session_id=session_id,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return SignOutResponse(user_id=principal.id)


@router.post("/sign-in-failed", status_code=status.HTTP_202_ACCEPTED)
async def sign_in_failed(
    body: SignInFailedRequest,
    request: Request,
    sessions: SessionServiceDep,
) -> dict[str, bool]:
    """Record a failed sign-in reported by the client."""
    sessions.record_failed_sign_in(
        email=body.email,
        provider=body.provider,
        ip_address=get_client_ip(request),
        user_agent=request.headers.get("user-agent"),
    )
    return {"recorded": True}


@router.get("/me", response_model=SnapshotResponse)
async def get_me(
    principal: PrincipalDep,
    snapshot: SnapshotDep,
    session_id: SessionIdDep,
) -> SnapshotResponse:
    """Get the caller's current snapshot (the refresh point after admin changes)."""
    return SnapshotResponse.from_snapshot(snapshot, session_id=session_id)
