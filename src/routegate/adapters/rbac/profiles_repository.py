"""Profiles repository."""

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any
from uuid import UUID

from routegate.adapters.db.errors import store_errors
from routegate.adapters.db.queries import db_value, set_clause
from routegate.core.auth.types import Profile, RequestStatus
from routegate.core.membership.types import ProfileCreate, ProfileUpdate

if TYPE_CHECKING:
    from asyncpg import Connection

PROFILE_COLUMNS = """
    id, email, display_name, avatar_url, role, is_active, org_id, team_id,
    request_status, request_submitted_at, request_processed_by,
    request_processed_at, created_at
"""

_UPDATABLE = frozenset(ProfileUpdate.model_fields)


class ProfilesRepository:
    """Repository for profile rows."""

    def __init__(self, conn: "Connection") -> None:
        """Initialize the repository."""
        self._conn = conn

    @store_errors
    async def get_profile(self, profile_id: UUID) -> Profile | None:
        """Get profile by ID."""
        row = await self._conn.fetchrow(
            f"SELECT {PROFILE_COLUMNS} FROM profiles WHERE id = $1",
            profile_id,
        )
        if not row:
            return None
        return self._row_to_profile(row)

    @store_errors
    async def find_profile_by_email(self, email: str) -> Profile | None:
        """Find a profile by email, ignoring case."""
        row = await self._conn.fetchrow(
            f"""
            SELECT {PROFILE_COLUMNS} FROM profiles
            WHERE lower(email) = lower($1)
            ORDER BY created_at
            LIMIT 1
            """,
            email.strip(),
        )
        if not row:
            return None
        return self._row_to_profile(row)

    @store_errors
    async def list_profiles(
        self,
        *,
        org_id: UUID | None = None,
        is_active: bool | None = None,
        request_statuses: Sequence[RequestStatus] | None = None,
        team_id: UUID | None = None,
    ) -> list[Profile]:
        """List profiles matching every filter that is set."""
        conditions = []
        params: list[Any] = []

        if org_id is not None:
            params.append(org_id)
            conditions.append(f"org_id = ${len(params)}")
        if is_active is not None:
            params.append(is_active)
            conditions.append(f"is_active = ${len(params)}")
        if request_statuses is not None:
            params.append([db_value(status) for status in request_statuses])
            conditions.append(f"request_status = ANY(${len(params)}::text[])")
        if team_id is not None:
            params.append(team_id)
            conditions.append(f"team_id = ${len(params)}")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = await self._conn.fetch(
            f"SELECT {PROFILE_COLUMNS} FROM profiles {where} ORDER BY created_at DESC",
            *params,
        )
        return [self._row_to_profile(row) for row in rows]

    @store_errors
    async def create_profile(self, profile: ProfileCreate) -> Profile:
        """Insert a profile."""
        row = await self._conn.fetchrow(
            f"""
            INSERT INTO profiles (
                id, email, display_name, avatar_url, role, is_active, org_id,
                team_id, request_status, request_submitted_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            RETURNING {PROFILE_COLUMNS}
            """,
            profile.id,
            profile.email,
            profile.display_name,
            profile.avatar_url,
            db_value(profile.role),
            profile.is_active,
            profile.org_id,
            profile.team_id,
            db_value(profile.request_status),
            profile.request_submitted_at,
        )
        return self._row_to_profile(row)

    @store_errors
    async def update_profile(self, profile_id: UUID, changes: ProfileUpdate) -> Profile | None:
        """Apply the set fields of `changes` in one UPDATE."""
        fields = changes.model_dump(exclude_unset=True)
        if not fields:
            return await self.get_profile(profile_id)

        assignments, params = set_clause(fields, _UPDATABLE)
        params.append(profile_id)
        row = await self._conn.fetchrow(
            f"""
            UPDATE profiles SET {assignments}, updated_at = NOW()
            WHERE id = ${len(params)}
            RETURNING {PROFILE_COLUMNS}
            """,
            *params,
        )
        if not row:
            return None
        return self._row_to_profile(row)

    @store_errors
    async def count_team_members(self, team_id: UUID) -> int:
        """Count profiles assigned to a team."""
        count: int = await self._conn.fetchval(
            "SELECT COUNT(*) FROM profiles WHERE team_id = $1",
            team_id,
        )
        return count

    def _row_to_profile(self, row: Any) -> Profile:
        """Convert database row to Profile."""
        return Profile.model_validate(dict(row))
