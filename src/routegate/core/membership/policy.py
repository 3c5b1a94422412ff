"""Checks shared by every admin action.

Each check raises before anything is written, so a rejected action leaves
state unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from routegate.core.auth.types import Profile
from routegate.core.exceptions import (
    LifecycleConflictError,
    NotFoundError,
    PermissionDeniedError,
)
from routegate.core.interfaces import TeamRepository
from routegate.core.rbac.types import Role, Team, role_rank


@dataclass(frozen=True)
class AdminActor:
    """An actor that passed the admin check, with its organization."""

    profile: Profile
    org_id: UUID

    @property
    def id(self) -> UUID:
        return self.profile.id

    @property
    def role(self) -> Role | None:
        return self.profile.role


def require_admin(actor: Profile | None) -> AdminActor:
    """Check the actor may perform admin actions.

    Returns:
        The actor together with its organization id.

    Raises:
        PermissionDeniedError: If the actor is missing, inactive, below admin
            or not assigned to an organization.
    """
    if actor is None or not actor.is_active:
        raise PermissionDeniedError("An active profile is required")
    if role_rank(actor.role) < Role.ADMIN.rank:
        raise PermissionDeniedError("Admin role required")
    if actor.org_id is None:
        raise PermissionDeniedError("Acting profile is not assigned to an organization")
    return AdminActor(profile=actor, org_id=actor.org_id)


def require_super_admin(actor: AdminActor) -> None:
    """Check the actor is a super admin."""
    if actor.role is not Role.SUPER_ADMIN:
        raise PermissionDeniedError("Super admin role required")


def require_assignable(actor: AdminActor, role: Role) -> None:
    """Check the actor may hand out a role (no one grants above their own rank)."""
    if role.rank > role_rank(actor.role):
        raise PermissionDeniedError(f"Cannot assign role '{role.value}' above your own")


def require_manageable(actor: AdminActor, target: Profile) -> None:
    """Check the actor outranks or equals the profile being changed."""
    if role_rank(target.role) > role_rank(actor.role):
        raise PermissionDeniedError("Cannot modify a profile with a higher role")


def check_role_team(role: Role, team_id: UUID | None, *, team_required: bool) -> None:
    """Validate a role/team pairing submitted together.

    Only `internal` profiles carry a team. When `team_required` is set an
    `internal` role must come with one.

    Raises:
        LifecycleConflictError: If the pairing is invalid.
    """
    if team_id is not None and role is not Role.INTERNAL:
        raise LifecycleConflictError(
            f"A team can only be assigned with the 'internal' role, not '{role.value}'"
        )
    if team_required and role is Role.INTERNAL and team_id is None:
        raise LifecycleConflictError("Internal users must be assigned to a team")


def in_org(profile: Profile, org_id: UUID) -> bool:
    """Check a profile belongs to an organization."""
    return profile.org_id == org_id


async def load_team(teams: TeamRepository, team_id: UUID, org_id: UUID) -> Team:
    """Load a team that must exist in the actor's organization.

    Raises:
        NotFoundError: If the team does not exist or belongs elsewhere.
    """
    team = await teams.get_team(team_id)
    if team is None or team.org_id != org_id:
        raise NotFoundError(f"Team not found: {team_id}")
    return team
