"""Team administration.

A profile belongs to at most one team; adding it to a team moves it out of
its previous one. A team is only deleted once it has no members.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any
from uuid import UUID

import structlog
from pydantic import ValidationError

from routegate.core.auth.types import Profile
from routegate.core.exceptions import InvalidInputError, LifecycleConflictError, NotFoundError
from routegate.core.interfaces import MembershipStore
from routegate.core.membership.policy import in_org, load_team, require_admin
from routegate.core.membership.types import ProfileUpdate, TeamCreate, TeamUpdate
from routegate.core.rbac.types import Team

logger = structlog.get_logger()


@dataclass(frozen=True)
class TeamWithMembers:
    """A team and the profiles assigned to it."""

    team: Team
    members: list[Profile] = field(default_factory=list)


class TeamService:
    """CRUD and membership for an organization's teams."""

    def __init__(self, store: MembershipStore) -> None:
        self._store = store

    async def list_teams(self, actor: Profile | None) -> list[TeamWithMembers]:
        """List the organization's teams with their members."""
        org_id = require_admin(actor).org_id
        teams = await self._store.teams.list_teams(org_id)
        profiles = await self._store.profiles.list_profiles(org_id=org_id)
        by_team: dict[UUID, list[Profile]] = {}
        for profile in profiles:
            if profile.team_id is not None:
                by_team.setdefault(profile.team_id, []).append(profile)
        return [TeamWithMembers(team=team, members=by_team.get(team.id, [])) for team in teams]

    async def get_team(self, actor: Profile | None, team_id: UUID) -> Team:
        """Get one of the organization's teams."""
        org_id = require_admin(actor).org_id
        return await load_team(self._store.teams, team_id, org_id)

    async def create_team(
        self,
        actor: Profile | None,
        name: str,
        description: str | None = None,
        allowed_routes: Sequence[str] | None = None,
    ) -> Team:
        """Create a team. Without explicit routes the team starts with home only.

        Raises:
            InvalidInputError: If the name is blank or a route pattern is invalid.
        """
        admin = require_admin(actor)
        fields: dict[str, Any] = {
            "org_id": admin.org_id,
            "name": name,
            "description": description,
        }
        if allowed_routes is not None:
            fields["allowed_routes"] = list(allowed_routes)
        try:
            request = TeamCreate(**fields)
        except ValidationError as e:
            raise InvalidInputError(f"Invalid team: {e}") from e
        team = await self._store.teams.create_team(request)
        logger.info("team_created", team_id=str(team.id), name=team.name, created_by=str(admin.id))
        return team

    async def update_team(self, actor: Profile | None, team_id: UUID, changes: TeamUpdate) -> Team:
        """Update a team's name, description or allowed routes.

        Members see new routes on their next permission evaluation.
        """
        admin = require_admin(actor)
        await load_team(self._store.teams, team_id, admin.org_id)
        updated = await self._store.teams.update_team(team_id, changes)
        if updated is None:
            raise NotFoundError(f"Team not found: {team_id}")
        logger.info(
            "team_updated",
            team_id=str(team_id),
            fields=sorted(changes.model_dump(exclude_unset=True)),
            updated_by=str(admin.id),
        )
        return updated

    async def delete_team(self, actor: Profile | None, team_id: UUID) -> None:
        """Delete a team that has no members.

        Raises:
            LifecycleConflictError: If members are still assigned.
        """
        admin = require_admin(actor)
        team = await load_team(self._store.teams, team_id, admin.org_id)
        members = await self._store.profiles.count_team_members(team_id)
        if members > 0:
            raise LifecycleConflictError(
                f"Team '{team.name}' still has {members} member(s); reassign them first"
            )
        if not await self._store.teams.delete_team(team_id):
            raise NotFoundError(f"Team not found: {team_id}")
        logger.info("team_deleted", team_id=str(team_id), deleted_by=str(admin.id))

    async def add_member(self, actor: Profile | None, team_id: UUID, profile_id: UUID) -> Profile:
        """Assign a profile to a team, moving it out of any previous team."""
        admin = require_admin(actor)
        await load_team(self._store.teams, team_id, admin.org_id)
        profile = await self._load_profile(profile_id, admin.org_id)
        updated = await self._store.profiles.update_profile(
            profile.id, ProfileUpdate(team_id=team_id)
        )
        if updated is None:
            raise NotFoundError(f"Profile not found: {profile_id}")
        logger.info(
            "team_member_added",
            team_id=str(team_id),
            profile_id=str(profile_id),
            previous_team_id=str(profile.team_id) if profile.team_id else None,
        )
        return updated

    async def remove_member(
        self, actor: Profile | None, team_id: UUID, profile_id: UUID
    ) -> Profile:
        """Take a profile out of a team.

        Raises:
            LifecycleConflictError: If the profile is not in that team.
        """
        admin = require_admin(actor)
        await load_team(self._store.teams, team_id, admin.org_id)
        profile = await self._load_profile(profile_id, admin.org_id)
        if profile.team_id != team_id:
            raise LifecycleConflictError(f"{profile.email} is not a member of team {team_id}")
        updated = await self._store.profiles.update_profile(
            profile.id, ProfileUpdate(team_id=None)
        )
        if updated is None:
            raise NotFoundError(f"Profile not found: {profile_id}")
        logger.info("team_member_removed", team_id=str(team_id), profile_id=str(profile_id))
        return updated

    async def _load_profile(self, profile_id: UUID, org_id: UUID) -> Profile:
        profile = await self._store.profiles.get_profile(profile_id)
        if profile is None or not in_org(profile, org_id):
            raise NotFoundError(f"Profile not found: {profile_id}")
        return profile
