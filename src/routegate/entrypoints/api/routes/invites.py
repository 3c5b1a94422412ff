"""Invitation API routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, Field

from routegate.core.auth.types import Profile
from routegate.core.membership.invitations import InvitationService
from routegate.core.membership.types import Invitation, InvitationStatus
from routegate.core.rbac import Role
from routegate.entrypoints.api.deps import get_invitation_service
from routegate.entrypoints.api.middleware.auth import RequireAdmin

router = APIRouter(prefix="/invites", tags=["invites"])

InvitationsDep = Annotated[InvitationService, Depends(get_invitation_service)]


class InviteCreate(BaseModel):
    """Invitation creation request."""

    email: str = Field(min_length=3)
    role: Role
    team_id: UUID | None = None
    activate_existing: bool = False


class InviteResponse(BaseModel):
    """An invitation with its read-time status."""

    invitation: Invitation
    activated_profile: Profile | None = None


class InviteListResponse(BaseModel):
    """Response for listing invitations."""

    invites: list[Invitation]
    total: int


@router.get("", response_model=InviteListResponse)
async def list_invites(
    actor: RequireAdmin,
    service: InvitationsDep,
    search: Annotated[str | None, Query(max_length=200)] = None,
    status_filter: Annotated[InvitationStatus | None, Query(alias="status")] = None,
) -> InviteListResponse:
    """List the organization's invitations, newest first."""
    invitations = await service.list_invitations(actor, search=search, status=status_filter)
    return InviteListResponse(
        invites=invitations,
        total=len(invitations),
    )


@router.post("", response_model=InviteResponse, status_code=status.HTTP_201_CREATED)
async def create_invite(
    body: InviteCreate,
    actor: RequireAdmin,
    service: InvitationsDep,
) -> InviteResponse:
    """Invite an email.

    With `activate_existing`, a super admin can assign an email that already
    has a profile directly; the invitation is then recorded as accepted.
    """
    result = await service.create_invitation(
        actor,
        body.email,
        body.role,
        body.team_id,
        activate_existing=body.activate_existing,
    )
    return InviteResponse(
        invitation=result.invitation,
        activated_profile=result.activated_profile,
    )


@router.post(
    "/{invitation_id}/resend",
    response_model=InviteResponse,
    status_code=status.HTTP_201_CREATED,
)
async def resend_invite(
    invitation_id: UUID,
    actor: RequireAdmin,
    service: InvitationsDep,
) -> InviteResponse:
    """Revoke a pending or expired invitation and issue a fresh one."""
    invitation = await service.resend_invitation(actor, invitation_id)
    return InviteResponse(invitation=invitation)


@router.post("/{invitation_id}/revoke", response_model=InviteResponse)
async def revoke_invite(
    invitation_id: UUID,
    actor: RequireAdmin,
    service: InvitationsDep,
) -> InviteResponse:
    """Revoke a pending or expired invitation."""
    invitation = await service.revoke_invitation(actor, invitation_id)
    return InviteResponse(invitation=invitation)
