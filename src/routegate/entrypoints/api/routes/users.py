"""User administration API routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from routegate.core.auth.types import Profile
from routegate.core.membership.users import UserAdminService
from routegate.core.rbac import Role
from routegate.entrypoints.api.deps import get_user_admin_service
from routegate.entrypoints.api.middleware.auth import RequireAdmin

router = APIRouter(prefix="/users", tags=["users"])

UsersDep = Annotated[UserAdminService, Depends(get_user_admin_service)]


class RoleChange(BaseModel):
    """Role change request."""

    role: Role


class ActiveChange(BaseModel):
    """Activation toggle request."""

    is_active: bool


class TeamChange(BaseModel):
    """Team assignment request; null removes the profile from its team."""

    team_id: UUID | None = None


class UserListResponse(BaseModel):
    """Response for listing users."""

    users: list[Profile]
    total: int


@router.get("", response_model=UserListResponse)
async def list_users(actor: RequireAdmin, service: UsersDep) -> UserListResponse:
    """List all users in the organization."""
    users = await service.list_users(actor)
    return UserListResponse(users=users, total=len(users))


@router.patch("/{profile_id}/role", response_model=Profile)
async def change_role(
    profile_id: UUID,
    body: RoleChange,
    actor: RequireAdmin,
    service: UsersDep,
) -> Profile:
    """Change a user's role."""
    return await service.change_role(actor, profile_id, body.role)


@router.patch("/{profile_id}/active", response_model=Profile)
async def set_active(
    profile_id: UUID,
    body: ActiveChange,
    actor: RequireAdmin,
    service: UsersDep,
) -> Profile:
    """Activate or deactivate a user."""
    return await service.set_active(actor, profile_id, body.is_active)


@router.patch("/{profile_id}/team", response_model=Profile)
async def assign_team(
    profile_id: UUID,
    body: TeamChange,
    actor: RequireAdmin,
    service: UsersDep,
) -> Profile:
    """Move a user to a team, or out of any team."""
    return await service.assign_team(actor, profile_id, body.team_id)
