"""Teams API routes."""

from __future__ import annotations

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field, field_validator

from routegate.core.auth.types import Profile
from routegate.core.membership.teams import TeamService
from routegate.core.membership.types import TeamName, TeamUpdate, validate_route_patterns
from routegate.core.rbac import Team
from routegate.entrypoints.api.deps import get_team_service
from routegate.entrypoints.api.middleware.auth import RequireAdmin

router = APIRouter(prefix="/teams", tags=["teams"])

TeamsDep = Annotated[TeamService, Depends(get_team_service)]


class TeamCreate(BaseModel):
    """Team creation request."""

    name: TeamName
    description: str | None = None
    allowed_routes: list[str] | None = None

    @field_validator("allowed_routes")
    @classmethod
    def _check_patterns(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return validate_route_patterns(value)


class TeamMemberAdd(BaseModel):
    """Add member request."""

    profile_id: UUID


class TeamResponse(BaseModel):
    """Team response."""

    team: Team
    members: list[Profile] = Field(default_factory=list)
    member_count: int = 0


class TeamListResponse(BaseModel):
    """Response for listing teams."""

    teams: list[TeamResponse]
    total: int


@router.get("", response_model=TeamListResponse)
async def list_teams(actor: RequireAdmin, service: TeamsDep) -> TeamListResponse:
    """List all teams in the organization with their members."""
    teams = await service.list_teams(actor)
    result = [
        TeamResponse(team=item.team, members=item.members, member_count=len(item.members))
        for item in teams
    ]
    return TeamListResponse(teams=result, total=len(result))


@router.post("", response_model=TeamResponse, status_code=status.HTTP_201_CREATED)
async def create_team(body: TeamCreate, actor: RequireAdmin, service: TeamsDep) -> TeamResponse:
    """Create a new team. Without routes it starts with the home route only."""
    team = await service.create_team(actor, body.name, body.description, body.allowed_routes)
    return TeamResponse(team=team)


@router.patch("/{team_id}", response_model=TeamResponse)
async def update_team(
    team_id: UUID,
    body: TeamUpdate,
    actor: RequireAdmin,
    service: TeamsDep,
) -> TeamResponse:
    """Update a team's name, description or allowed routes."""
    team = await service.update_team(actor, team_id, body)
    return TeamResponse(team=team)


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(team_id: UUID, actor: RequireAdmin, service: TeamsDep) -> Response:
    """Delete a team. Rejected with 409 while it has members."""
    await service.delete_team(actor, team_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{team_id}/members", response_model=Profile)
async def add_team_member(
    team_id: UUID,
    body: TeamMemberAdd,
    actor: RequireAdmin,
    service: TeamsDep,
) -> Profile:
    """Add a profile to the team, moving it out of its previous team."""
    return await service.add_member(actor, team_id, body.profile_id)


@router.delete("/{team_id}/members/{profile_id}", response_model=Profile)
async def remove_team_member(
    team_id: UUID,
    profile_id: UUID,
    actor: RequireAdmin,
    service: TeamsDep,
) -> Profile:
    """Take a profile out of the team."""
    return await service.remove_member(actor, team_id, profile_id)
