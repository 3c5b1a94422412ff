"""Tests for TeamsRepository."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from routegate.adapters.rbac import TeamsRepository
from routegate.core.exceptions import StoreError
from routegate.core.membership.types import TeamCreate, TeamUpdate
from tests.fixtures.domain_objects import NOW, ORG_ID


def _row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": uuid4(),
        "org_id": ORG_ID,
        "name": "Growth",
        "description": None,
        "allowed_routes": ["/", "/revenue"],
        "created_at": NOW,
        "updated_at": NOW,
    }
    row.update(overrides)
    return row


class TestTeamsRepository:
    """Tests for TeamsRepository."""

    @pytest.fixture
    def repo(self, mock_conn: MagicMock) -> TeamsRepository:
        """Create repository with mock connection."""
        return TeamsRepository(mock_conn)

    async def test_create_team(self, repo: TeamsRepository, mock_conn: MagicMock) -> None:
        """Test creating a team."""
        mock_conn.fetchrow.return_value = _row()

        team = await repo.create_team(
            TeamCreate(org_id=ORG_ID, name="Growth", allowed_routes=["/", "/revenue"])
        )

        assert team.name == "Growth"
        assert team.allowed_routes == ["/", "/revenue"]
        assert mock_conn.fetchrow.call_args.args[4] == ["/", "/revenue"]

    async def test_get_team_not_found(self, repo: TeamsRepository, mock_conn: MagicMock) -> None:
        """Test getting non-existent team."""
        assert await repo.get_team(uuid4()) is None

    async def test_null_routes_read_as_empty(
        self, repo: TeamsRepository, mock_conn: MagicMock
    ) -> None:
        """Test a NULL route array reads as no routes."""
        mock_conn.fetchrow.return_value = _row(allowed_routes=None)

        team = await repo.get_team(uuid4())

        assert team is not None
        assert team.allowed_routes == []

    async def test_list_teams(self, repo: TeamsRepository, mock_conn: MagicMock) -> None:
        """Test listing teams by organization."""
        mock_conn.fetch.return_value = [_row(name="A"), _row(name="B")]

        teams = await repo.list_teams(ORG_ID)

        assert [t.name for t in teams] == ["A", "B"]
        assert mock_conn.fetch.call_args.args[1] == ORG_ID

    async def test_update_routes_only(self, repo: TeamsRepository, mock_conn: MagicMock) -> None:
        """Test updating only the route list."""
        team_id = uuid4()
        mock_conn.fetchrow.return_value = _row(id=team_id, allowed_routes=["/traffic"])

        team = await repo.update_team(team_id, TeamUpdate(allowed_routes=["/traffic"]))

        query, *params = mock_conn.fetchrow.call_args.args
        assert "allowed_routes = $1" in query
        assert "name =" not in query
        assert params == [["/traffic"], team_id]
        assert team is not None

    async def test_empty_update_reads_row(
        self, repo: TeamsRepository, mock_conn: MagicMock
    ) -> None:
        """Test an update with no fields only reads the team."""
        mock_conn.fetchrow.return_value = _row()

        await repo.update_team(uuid4(), TeamUpdate())

        assert "UPDATE" not in mock_conn.fetchrow.call_args.args[0]

    async def test_delete_team(self, repo: TeamsRepository, mock_conn: MagicMock) -> None:
        """Test deleting a team reports whether a row went away."""
        mock_conn.execute.return_value = "DELETE 1"
        assert await repo.delete_team(uuid4()) is True

        mock_conn.execute.return_value = "DELETE 0"
        assert await repo.delete_team(uuid4()) is False

    async def test_connection_error(self, repo: TeamsRepository, mock_conn: MagicMock) -> None:
        """Test socket failures surface as StoreError."""
        mock_conn.fetch = AsyncMock(side_effect=ConnectionRefusedError("refused"))

        with pytest.raises(StoreError):
            await repo.list_teams(ORG_ID)
