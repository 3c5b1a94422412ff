"""User (profile) administration for one organization."""

from __future__ import annotations

from uuid import UUID

import structlog

from routegate.core.auth.types import Profile
from routegate.core.exceptions import NotFoundError
from routegate.core.interfaces import MembershipStore
from routegate.core.membership.policy import (
    AdminActor,
    in_org,
    load_team,
    require_admin,
    require_assignable,
    require_manageable,
)
from routegate.core.membership.types import ProfileUpdate
from routegate.core.rbac.types import Role

logger = structlog.get_logger()


class UserAdminService:
    """Role, activation and team changes on existing profiles.

    Each change is one partial update. Affected users pick it up at their
    next refresh point.
    """

    def __init__(self, store: MembershipStore) -> None:
        self._store = store

    async def list_users(self, actor: Profile | None) -> list[Profile]:
        """List the organization's profiles ordered by email."""
        org_id = require_admin(actor).org_id
        profiles = await self._store.profiles.list_profiles(org_id=org_id)
        return sorted(profiles, key=lambda p: p.email.lower())

    async def change_role(self, actor: Profile | None, profile_id: UUID, role: Role) -> Profile:
        """Change a profile's role; team and activation are left alone."""
        admin = require_admin(actor)
        require_assignable(admin, role)
        profile = await self._load_managed(admin, profile_id)
        updated = await self._apply(profile_id, ProfileUpdate(role=role))
        logger.info(
            "user_role_changed",
            profile_id=str(profile_id),
            role=role.value,
            previous_role=profile.role.value if profile.role else None,
            changed_by=str(admin.id),
        )
        return updated

    async def set_active(self, actor: Profile | None, profile_id: UUID, is_active: bool) -> Profile:
        """Activate or deactivate a profile. Inactive profiles reach no route."""
        admin = require_admin(actor)
        await self._load_managed(admin, profile_id)
        updated = await self._apply(profile_id, ProfileUpdate(is_active=is_active))
        logger.info(
            "user_activation_changed",
            profile_id=str(profile_id),
            is_active=is_active,
            changed_by=str(admin.id),
        )
        return updated

    async def assign_team(
        self, actor: Profile | None, profile_id: UUID, team_id: UUID | None
    ) -> Profile:
        """Move a profile to a team, or out of any team when `team_id` is None."""
        admin = require_admin(actor)
        if team_id is not None:
            await load_team(self._store.teams, team_id, admin.org_id)
        profile = await self._load_managed(admin, profile_id)
        updated = await self._apply(profile_id, ProfileUpdate(team_id=team_id))
        logger.info(
            "user_team_changed",
            profile_id=str(profile_id),
            team_id=str(team_id) if team_id else None,
            previous_team_id=str(profile.team_id) if profile.team_id else None,
        )
        return updated

    async def _load_managed(self, admin: AdminActor, profile_id: UUID) -> Profile:
        profile = await self._store.profiles.get_profile(profile_id)
        if profile is None or not in_org(profile, admin.org_id):
            raise NotFoundError(f"User not found: {profile_id}")
        require_manageable(admin, profile)
        return profile

    async def _apply(self, profile_id: UUID, changes: ProfileUpdate) -> Profile:
        updated = await self._store.profiles.update_profile(profile_id, changes)
        if updated is None:
            raise NotFoundError(f"User not found: {profile_id}")
        return updated
