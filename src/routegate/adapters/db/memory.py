"""In-memory store for tests and local development.

Implements the same protocols as the Postgres adapters, including
transactional rollback, so services behave identically against it.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from routegate.core.audit.types import ActivityEvent, LoginEvent
from routegate.core.auth.types import Profile, RequestStatus
from routegate.core.clock import Clock, utc_now
from routegate.core.exceptions import StoreError
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

_EPOCH = datetime.min.replace(tzinfo=UTC)


@dataclass
class MemoryTables:
    """Rows held by the in-memory store.

    Attributes:
        profiles: Profiles by id.
        teams: Teams by id.
        invitations: Invitations by id.
        writes: Log of every write as (table, id) for assertions in tests.
    """

    profiles: dict[UUID, Profile] = field(default_factory=dict)
    teams: dict[UUID, Team] = field(default_factory=dict)
    invitations: dict[UUID, Invitation] = field(default_factory=dict)
    writes: list[tuple[str, UUID]] = field(default_factory=list)


_MISSING = object()


@dataclass
class _Undo:
    """How to take back one write."""

    rows: dict[UUID, Any]
    row_id: UUID
    previous: Any
    write: tuple[str, UUID]

    def revert(self, writes: list[tuple[str, UUID]]) -> None:
        if self.previous is _MISSING:
            self.rows.pop(self.row_id, None)
        else:
            self.rows[self.row_id] = self.previous
        for n in range(len(writes) - 1, -1, -1):
            if writes[n] is self.write:
                del writes[n]
                break


# Writes made by the transaction running in the current task.
_journal: ContextVar[list[_Undo] | None] = ContextVar("memory_store_journal", default=None)


class _Table:
    def __init__(self, tables: MemoryTables, clock: Clock) -> None:
        self._tables = tables
        self._clock = clock

    def _put(self, table: str, row_id: UUID, row: Any) -> None:
        self._remember(table, row_id)
        getattr(self._tables, table)[row_id] = row

    def _drop(self, table: str, row_id: UUID) -> bool:
        if row_id not in getattr(self._tables, table):
            return False
        self._remember(table, row_id)
        del getattr(self._tables, table)[row_id]
        return True

    def _remember(self, table: str, row_id: UUID) -> None:
        rows: dict[UUID, Any] = getattr(self._tables, table)
        write = (table, row_id)
        self._tables.writes.append(write)
        journal = _journal.get()
        if journal is not None:
            journal.append(_Undo(rows, row_id, rows.get(row_id, _MISSING), write))


class InMemoryProfiles(_Table):
    """Profile rows in memory."""

    async def get_profile(self, profile_id: UUID) -> Profile | None:
        return self._tables.profiles.get(profile_id)

    async def find_profile_by_email(self, email: str) -> Profile | None:
        needle = email.strip().lower()
        matches = [p for p in self._tables.profiles.values() if p.email.lower() == needle]
        return matches[0] if matches else None

    async def list_profiles(
        self,
        *,
        org_id: UUID | None = None,
        is_active: bool | None = None,
        request_statuses: Sequence[RequestStatus] | None = None,
        team_id: UUID | None = None,
    ) -> list[Profile]:
        profiles = list(self._tables.profiles.values())
        if org_id is not None:
            profiles = [p for p in profiles if p.org_id == org_id]
        if is_active is not None:
            profiles = [p for p in profiles if p.is_active == is_active]
        if request_statuses is not None:
            profiles = [p for p in profiles if p.request_status in request_statuses]
        if team_id is not None:
            profiles = [p for p in profiles if p.team_id == team_id]
        return profiles

    async def create_profile(self, profile: ProfileCreate) -> Profile:
        if profile.id in self._tables.profiles:
            raise StoreError(f"Profile already exists: {profile.id}")
        row = Profile(**profile.model_dump(), created_at=self._clock())
        self._put("profiles", row.id, row)
        return row

    async def update_profile(self, profile_id: UUID, changes: ProfileUpdate) -> Profile | None:
        current = self._tables.profiles.get(profile_id)
        if current is None:
            return None
        row = current.model_copy(update=changes.model_dump(exclude_unset=True))
        self._put("profiles", profile_id, row)
        return row

    async def count_team_members(self, team_id: UUID) -> int:
        return sum(1 for p in self._tables.profiles.values() if p.team_id == team_id)


class InMemoryTeams(_Table):
    """Team rows in memory."""

    async def get_team(self, team_id: UUID) -> Team | None:
        return self._tables.teams.get(team_id)

    async def list_teams(self, org_id: UUID) -> list[Team]:
        teams = [t for t in self._tables.teams.values() if t.org_id == org_id]
        return sorted(teams, key=lambda t: t.name)

    async def create_team(self, team: TeamCreate) -> Team:
        now = self._clock()
        row = Team(id=uuid4(), created_at=now, updated_at=now, **team.model_dump())
        self._put("teams", row.id, row)
        return row

    async def update_team(self, team_id: UUID, changes: TeamUpdate) -> Team | None:
        current = self._tables.teams.get(team_id)
        if current is None:
            return None
        fields = changes.model_dump(exclude_unset=True)
        row = current.model_copy(update={**fields, "updated_at": self._clock()})
        self._put("teams", team_id, row)
        return row

    async def delete_team(self, team_id: UUID) -> bool:
        return self._drop("teams", team_id)


class InMemoryInvitations(_Table):
    """Invitation rows in memory."""

    async def get_invitation(self, invitation_id: UUID) -> Invitation | None:
        return self._tables.invitations.get(invitation_id)

    async def list_invitations(
        self,
        *,
        org_id: UUID | None = None,
        email: str | None = None,
        status: InvitationStatus | None = None,
    ) -> list[Invitation]:
        invitations = list(self._tables.invitations.values())
        if org_id is not None:
            invitations = [i for i in invitations if i.org_id == org_id]
        if email is not None:
            needle = email.strip().lower()
            invitations = [i for i in invitations if i.email.lower() == needle]
        if status is not None:
            invitations = [i for i in invitations if i.status is status]
        # Insertion order breaks ties between rows created in the same instant.
        order = {row_id: n for n, row_id in enumerate(self._tables.invitations)}
        return sorted(
            invitations,
            key=lambda i: (i.created_at or _EPOCH, order[i.id]),
            reverse=True,
        )

    async def create_invitation(self, invitation: InvitationCreate) -> Invitation:
        row = Invitation(id=uuid4(), created_at=self._clock(), **invitation.model_dump())
        self._put("invitations", row.id, row)
        return row

    async def update_invitation(
        self, invitation_id: UUID, changes: InvitationUpdate
    ) -> Invitation | None:
        current = self._tables.invitations.get(invitation_id)
        if current is None:
            return None
        row = current.model_copy(update=changes.model_dump(exclude_unset=True))
        self._put("invitations", invitation_id, row)
        return row


class InMemoryMembershipStore:
    """Membership store backed by dictionaries.

    `transaction()` journals the writes made by the current task and takes
    them back if the block raises. Writes from other requests sharing the
    store are left alone, unless they touched the same row in the meantime.
    """

    def __init__(self, clock: Clock = utc_now) -> None:
        """Initialize an empty store.

        Args:
            clock: Source of `created_at` and `updated_at` values.
        """
        self.tables = MemoryTables()
        self.profiles = InMemoryProfiles(self.tables, clock)
        self.teams = InMemoryTeams(self.tables, clock)
        self.invitations = InMemoryInvitations(self.tables, clock)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run the enclosed writes atomically.

        A nested transaction behaves like a savepoint: its writes are undone
        on its own failure and otherwise join the enclosing transaction.
        """
        outer = _journal.get()
        journal: list[_Undo] = []
        token = _journal.set(journal)
        try:
            yield
        except BaseException:
            for undo in reversed(journal):
                undo.revert(self.tables.writes)
            raise
        finally:
            _journal.reset(token)
        if outer is not None:
            outer.extend(journal)

    def seed(self, *rows: Profile | Team | Invitation) -> None:
        """Insert rows directly, bypassing the write log."""
        for row in rows:
            if isinstance(row, Profile):
                self.tables.profiles[row.id] = row
            elif isinstance(row, Team):
                self.tables.teams[row.id] = row
            else:
                self.tables.invitations[row.id] = row


class InMemoryActivityRepository:
    """Activity and login logs in memory."""

    def __init__(self) -> None:
        self.activity: list[ActivityEvent] = []
        self.logins: list[LoginEvent] = []

    async def record_activity(self, event: ActivityEvent) -> None:
        self.activity.append(event)

    async def record_login(self, event: LoginEvent) -> None:
        self.logins.append(event)

    async def list_activity(
        self,
        *,
        org_id: UUID,
        since: datetime | None = None,
        user_id: UUID | None = None,
        limit: int = 25,
        offset: int = 0,
    ) -> tuple[list[ActivityEvent], int]:
        return _page(self.activity, org_id, since, user_id, limit, offset)

    async def list_logins(
        self,
        *,
        org_id: UUID,
        since: datetime | None = None,
        user_id: UUID | None = None,
        limit: int = 25,
        offset: int = 0,
    ) -> tuple[list[LoginEvent], int]:
        return _page(self.logins, org_id, since, user_id, limit, offset)

    async def delete_before(self, cutoff: datetime) -> int:
        before = len(self.activity) + len(self.logins)
        self.activity = [e for e in self.activity if e.created_at >= cutoff]
        self.logins = [e for e in self.logins if e.created_at >= cutoff]
        return before - len(self.activity) - len(self.logins)


def _page(
    events: Sequence[Any],
    org_id: UUID,
    since: datetime | None,
    user_id: UUID | None,
    limit: int,
    offset: int,
) -> tuple[list[Any], int]:
    matching = [
        e
        for e in events
        if e.org_id == org_id
        and (since is None or e.created_at >= since)
        and (user_id is None or e.user_id == user_id)
    ]
    matching.sort(key=lambda e: e.created_at, reverse=True)
    return matching[offset : offset + limit], len(matching)
