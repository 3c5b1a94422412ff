"""Teams repository."""

from typing import TYPE_CHECKING, Any
from uuid import UUID

from routegate.adapters.db.errors import store_errors
from routegate.adapters.db.queries import set_clause
from routegate.core.membership.types import TeamCreate, TeamUpdate
from routegate.core.rbac import Team

if TYPE_CHECKING:
    from asyncpg import Connection

TEAM_COLUMNS = "id, org_id, name, description, allowed_routes, created_at, updated_at"

_UPDATABLE = frozenset(TeamUpdate.model_fields)


class TeamsRepository:
    """Repository for team operations."""

    def __init__(self, conn: "Connection") -> None:
        """Initialize the repository."""
        self._conn = conn

    @store_errors
    async def create_team(self, team: TeamCreate) -> Team:
        """Create a new team."""
        row = await self._conn.fetchrow(
            f"""
            INSERT INTO teams (org_id, name, description, allowed_routes)
            VALUES ($1, $2, $3, $4)
            RETURNING {TEAM_COLUMNS}
            """,
            team.org_id,
            team.name,
            team.description,
            team.allowed_routes,
        )
        return self._row_to_team(row)

    @store_errors
    async def get_team(self, team_id: UUID) -> Team | None:
        """Get team by ID."""
        row = await self._conn.fetchrow(
            f"SELECT {TEAM_COLUMNS} FROM teams WHERE id = $1",
            team_id,
        )
        if not row:
            return None
        return self._row_to_team(row)

    @store_errors
    async def list_teams(self, org_id: UUID) -> list[Team]:
        """List all teams in an organization."""
        rows = await self._conn.fetch(
            f"SELECT {TEAM_COLUMNS} FROM teams WHERE org_id = $1 ORDER BY name",
            org_id,
        )
        return [self._row_to_team(row) for row in rows]

    @store_errors
    async def update_team(self, team_id: UUID, changes: TeamUpdate) -> Team | None:
        """Update the set fields of a team."""
        fields = changes.model_dump(exclude_unset=True)
        if not fields:
            return await self.get_team(team_id)

        assignments, params = set_clause(fields, _UPDATABLE)
        params.append(team_id)
        row = await self._conn.fetchrow(
            f"""
            UPDATE teams SET {assignments}, updated_at = NOW()
            WHERE id = ${len(params)}
            RETURNING {TEAM_COLUMNS}
            """,
            *params,
        )
        if not row:
            return None
        return self._row_to_team(row)

    @store_errors
    async def delete_team(self, team_id: UUID) -> bool:
        """Delete a team."""
        result: str = await self._conn.execute(
            "DELETE FROM teams WHERE id = $1",
            team_id,
        )
        return result == "DELETE 1"

    def _row_to_team(self, row: Any) -> Team:
        """Convert database row to Team."""
        return Team(
            id=row["id"],
            org_id=row["org_id"],
            name=row["name"],
            description=row["description"],
            allowed_routes=list(row["allowed_routes"] or []),
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )
