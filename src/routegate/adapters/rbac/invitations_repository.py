"""Invitations repository."""

from typing import TYPE_CHECKING, Any
from uuid import UUID

from routegate.adapters.db.errors import store_errors
from routegate.adapters.db.queries import db_value, set_clause
from routegate.core.membership.types import (
    Invitation,
    InvitationCreate,
    InvitationStatus,
    InvitationUpdate,
)

if TYPE_CHECKING:
    from asyncpg import Connection

INVITATION_COLUMNS = """
    id, org_id, email, role, team_id, status, invited_by, expires_at,
    accepted_at, created_at
"""

_UPDATABLE = frozenset(InvitationUpdate.model_fields)


class InvitationsRepository:
    """Repository for invitation rows.

    Expiry is never written here; readers derive it from `expires_at`.
    """

    def __init__(self, conn: "Connection") -> None:
        """Initialize the repository."""
        self._conn = conn

    @store_errors
    async def get_invitation(self, invitation_id: UUID) -> Invitation | None:
        """Get invitation by ID."""
        row = await self._conn.fetchrow(
            f"SELECT {INVITATION_COLUMNS} FROM invitations WHERE id = $1",
            invitation_id,
        )
        if not row:
            return None
        return self._row_to_invitation(row)

    @store_errors
    async def list_invitations(
        self,
        *,
        org_id: UUID | None = None,
        email: str | None = None,
        status: InvitationStatus | None = None,
    ) -> list[Invitation]:
        """List invitations newest first."""
        conditions = []
        params: list[Any] = []

        if org_id is not None:
            params.append(org_id)
            conditions.append(f"org_id = ${len(params)}")
        if email is not None:
            params.append(email.strip())
            conditions.append(f"lower(email) = lower(${len(params)})")
        if status is not None:
            params.append(db_value(status))
            conditions.append(f"status = ${len(params)}")

        where = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        rows = await self._conn.fetch(
            f"SELECT {INVITATION_COLUMNS} FROM invitations {where} ORDER BY created_at DESC",
            *params,
        )
        return [self._row_to_invitation(row) for row in rows]

    @store_errors
    async def create_invitation(self, invitation: InvitationCreate) -> Invitation:
        """Insert an invitation."""
        row = await self._conn.fetchrow(
            f"""
            INSERT INTO invitations (
                org_id, email, role, team_id, status, invited_by, expires_at, accepted_at
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            RETURNING {INVITATION_COLUMNS}
            """,
            invitation.org_id,
            invitation.email,
            db_value(invitation.role),
            invitation.team_id,
            db_value(invitation.status),
            invitation.invited_by,
            invitation.expires_at,
            invitation.accepted_at,
        )
        return self._row_to_invitation(row)

    @store_errors
    async def update_invitation(
        self, invitation_id: UUID, changes: InvitationUpdate
    ) -> Invitation | None:
        """Update the set fields of an invitation."""
        fields = changes.model_dump(exclude_unset=True)
        if not fields:
            return await self.get_invitation(invitation_id)

        assignments, params = set_clause(fields, _UPDATABLE)
        params.append(invitation_id)
        row = await self._conn.fetchrow(
            f"""
            UPDATE invitations SET {assignments}
            WHERE id = ${len(params)}
            RETURNING {INVITATION_COLUMNS}
            """,
            *params,
        )
        if not row:
            return None
        return self._row_to_invitation(row)

    def _row_to_invitation(self, row: Any) -> Invitation:
        """Convert database row to Invitation."""
        return Invitation.model_validate(dict(row))
