"""Access request API routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from routegate.core.auth.types import Profile
from routegate.core.membership.access_requests import AccessRequestService
from routegate.core.membership.types import AccessRequestFilter
from routegate.core.rbac import Role
from routegate.entrypoints.api.deps import get_access_request_service
from routegate.entrypoints.api.middleware.auth import RequireAdmin

router = APIRouter(prefix="/access-requests", tags=["access-requests"])

AccessRequestsDep = Annotated[AccessRequestService, Depends(get_access_request_service)]


class ApproveRequest(BaseModel):
    """Role (and team, for internal users) to grant."""

    role: Role
    team_id: UUID | None = None


class AccessRequestListResponse(BaseModel):
    """Response for listing access requests."""

    requests: list[Profile]
    total: int


@router.get("", response_model=AccessRequestListResponse)
async def list_access_requests(
    actor: RequireAdmin,
    service: AccessRequestsDep,
    status_filter: Annotated[AccessRequestFilter, Query(alias="status")] = (
        AccessRequestFilter.PENDING
    ),
) -> AccessRequestListResponse:
    """List access requests, newest submission first."""
    requests = await service.list_requests(actor, status_filter)
    return AccessRequestListResponse(requests=requests, total=len(requests))


@router.post("/{profile_id}/approve", response_model=Profile)
async def approve_access_request(
    profile_id: UUID,
    body: ApproveRequest,
    actor: RequireAdmin,
    service: AccessRequestsDep,
) -> Profile:
    """Approve a pending or denied request."""
    return await service.approve(actor, profile_id, body.role, body.team_id)


@router.post("/{profile_id}/deny", response_model=Profile)
async def deny_access_request(
    profile_id: UUID,
    actor: RequireAdmin,
    service: AccessRequestsDep,
) -> Profile:
    """Deny a pending request."""
    return await service.deny(actor, profile_id)
