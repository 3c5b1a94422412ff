"""Protocol definitions for routegate's external collaborators.

The core never talks to Postgres or the identity provider directly. It
depends on these protocols, and adapters implement them. Each
repository's reads are independent; multi-row transitions run inside
`MembershipStore.transaction()` so they land together or not at all.
"""

from __future__ import annotations

from collections.abc import Sequence
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Protocol, runtime_checkable
from uuid import UUID

from routegate.core.audit.types import ActivityEvent, LoginEvent
from routegate.core.auth.types import Principal, Profile, RequestStatus
from routegate.core.membership.types import (
    Invitation,
    InvitationCreate,
    InvitationStatus,
    InvitationUpdate,
    ProfileCreate,
    ProfileUpdate,
    TeamCreate,
    TeamUpdate,
)
from routegate.core.rbac.types import Team


@runtime_checkable
class ProfileRepository(Protocol):
    """Profile rows."""

    async def get_profile(self, profile_id: UUID) -> Profile | None:
        """Get a profile by id (the principal's id)."""
        ...

    async def find_profile_by_email(self, email: str) -> Profile | None:
        """Find a profile by email, case-insensitively."""
        ...

    async def list_profiles(
        self,
        *,
        org_id: UUID | None = None,
        is_active: bool | None = None,
        request_statuses: Sequence[RequestStatus] | None = None,
        team_id: UUID | None = None,
    ) -> list[Profile]:
        """List profiles; every filter left as None is not applied."""
        ...

    async def create_profile(self, profile: ProfileCreate) -> Profile:
        """Insert a profile row."""
        ...

    async def update_profile(self, profile_id: UUID, changes: ProfileUpdate) -> Profile | None:
        """Apply the fields set on `changes` in one update.

        Returns:
            The updated profile, or None if no such profile exists.
        """
        ...

    async def count_team_members(self, team_id: UUID) -> int:
        """Count profiles assigned to a team."""
        ...


@runtime_checkable
class TeamRepository(Protocol):
    """Team rows."""

    async def get_team(self, team_id: UUID) -> Team | None:
        """Get a team by id."""
        ...

    async def list_teams(self, org_id: UUID) -> list[Team]:
        """List an organization's teams ordered by name."""
        ...

    async def create_team(self, team: TeamCreate) -> Team:
        """Insert a team row."""
        ...

    async def update_team(self, team_id: UUID, changes: TeamUpdate) -> Team | None:
        """Apply the fields set on `changes` in one update."""
        ...

    async def delete_team(self, team_id: UUID) -> bool:
        """Delete a team. Returns whether a row was removed."""
        ...


@runtime_checkable
class InvitationRepository(Protocol):
    """Invitation rows."""

    async def get_invitation(self, invitation_id: UUID) -> Invitation | None:
        """Get an invitation by id."""
        ...

    async def list_invitations(
        self,
        *,
        org_id: UUID | None = None,
        email: str | None = None,
        status: InvitationStatus | None = None,
    ) -> list[Invitation]:
        """List invitations, newest first; emails match case-insensitively."""
        ...

    async def create_invitation(self, invitation: InvitationCreate) -> Invitation:
        """Insert an invitation row."""
        ...

    async def update_invitation(
        self, invitation_id: UUID, changes: InvitationUpdate
    ) -> Invitation | None:
        """Apply the fields set on `changes` in one update."""
        ...


@runtime_checkable
class MembershipStore(Protocol):
    """Profiles, teams and invitations behind one transactional boundary."""

    profiles: ProfileRepository
    teams: TeamRepository
    invitations: InvitationRepository

    def transaction(self) -> AbstractAsyncContextManager[None]:
        """Open a transaction; leaving it with an exception rolls everything back."""
        ...


@runtime_checkable
class ActivityRepository(Protocol):
    """Append-only activity and login logs."""

    async def record_activity(self, event: ActivityEvent) -> None:
        """Append an activity event."""
        ...

    async def record_login(self, event: LoginEvent) -> None:
        """Append a login event."""
        ...

    async def list_activity(
        self,
        *,
        org_id: UUID,
        since: datetime | None = None,
        user_id: UUID | None = None,
        limit: int = 25,
        offset: int = 0,
    ) -> tuple[list[ActivityEvent], int]:
        """List activity newest first with the exact total count."""
        ...

    async def list_logins(
        self,
        *,
        org_id: UUID,
        since: datetime | None = None,
        user_id: UUID | None = None,
        limit: int = 25,
        offset: int = 0,
    ) -> tuple[list[LoginEvent], int]:
        """List login events newest first with the exact total count."""
        ...

    async def delete_before(self, cutoff: datetime) -> int:
        """Delete activity and login events older than a cutoff."""
        ...


@runtime_checkable
class IdentityProvider(Protocol):
    """External identity provider that owns credentials and sessions."""

    async def get_principal(self, access_token: str) -> Principal | None:
        """Resolve an access token to a principal.

        Returns:
            The principal, or None when the token is not (or no longer) valid.

        Raises:
            IdentityProviderError: If the provider could not be asked.
        """
        ...
