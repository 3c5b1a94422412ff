"""Tests for ProfilesRepository."""

from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import asyncpg
import pytest

from routegate.adapters.rbac import ProfilesRepository
from routegate.core.auth.types import RequestStatus
from routegate.core.exceptions import StoreError
from routegate.core.membership.types import ProfileCreate, ProfileUpdate
from routegate.core.rbac import Role
from tests.fixtures.domain_objects import NOW, ORG_ID


def _row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": uuid4(),
        "email": "user@example.com",
        "display_name": None,
        "avatar_url": None,
        "role": "viewer",
        "is_active": True,
        "org_id": ORG_ID,
        "team_id": None,
        "request_status": None,
        "request_submitted_at": None,
        "request_processed_by": None,
        "request_processed_at": None,
        "created_at": NOW,
    }
    row.update(overrides)
    return row


class TestProfilesRepository:
    """Tests for ProfilesRepository."""

    @pytest.fixture
    def repo(self, mock_conn: MagicMock) -> ProfilesRepository:
        """Create repository with mock connection."""
        return ProfilesRepository(mock_conn)

    async def test_get_profile(self, repo: ProfilesRepository, mock_conn: MagicMock) -> None:
        """Test a row is converted to a profile."""
        row = _row()
        mock_conn.fetchrow.return_value = row

        profile = await repo.get_profile(row["id"])  # type: ignore[arg-type]

        assert profile is not None
        assert profile.role is Role.VIEWER
        assert profile.org_id == ORG_ID

    async def test_unknown_role_is_dropped(
        self, repo: ProfilesRepository, mock_conn: MagicMock
    ) -> None:
        """Test a role the application does not know reads as no role."""
        mock_conn.fetchrow.return_value = _row(role="owner")

        profile = await repo.get_profile(uuid4())

        assert profile is not None
        assert profile.role is None

    async def test_get_profile_not_found(
        self, repo: ProfilesRepository, mock_conn: MagicMock
    ) -> None:
        """Test a missing row returns None."""
        assert await repo.get_profile(uuid4()) is None

    async def test_find_by_email_ignores_case(
        self, repo: ProfilesRepository, mock_conn: MagicMock
    ) -> None:
        """Test the lookup compares lower-cased emails."""
        await repo.find_profile_by_email(" User@Example.com ")

        query, email = mock_conn.fetchrow.call_args.args
        assert "lower(email) = lower($1)" in query
        assert email == "User@Example.com"

    async def test_list_profiles_builds_filters(
        self, repo: ProfilesRepository, mock_conn: MagicMock
    ) -> None:
        """Test each filter adds a numbered condition."""
        mock_conn.fetch.return_value = [_row(is_active=False, request_status="pending")]

        profiles = await repo.list_profiles(
            is_active=False,
            request_statuses=[RequestStatus.PENDING, RequestStatus.DENIED],
        )

        query, *params = mock_conn.fetch.call_args.args
        assert "is_active = $1" in query
        assert "request_status = ANY($2::text[])" in query
        assert params == [False, ["pending", "denied"]]
        assert profiles[0].request_status is RequestStatus.PENDING

    async def test_list_profiles_without_filters(
        self, repo: ProfilesRepository, mock_conn: MagicMock
    ) -> None:
        """Test no filters means no WHERE clause."""
        await repo.list_profiles()

        query = mock_conn.fetch.call_args.args[0]
        assert "WHERE" not in query

    async def test_create_profile(self, repo: ProfilesRepository, mock_conn: MagicMock) -> None:
        """Test enums are bound as their values."""
        profile_id = uuid4()
        mock_conn.fetchrow.return_value = _row(
            id=profile_id, role=None, is_active=False, request_status="pending"
        )

        created = await repo.create_profile(
            ProfileCreate(
                id=profile_id,
                email="user@example.com",
                request_status=RequestStatus.PENDING,
                request_submitted_at=NOW,
            )
        )

        params = mock_conn.fetchrow.call_args.args[1:]
        assert params[0] == profile_id
        assert params[8] == "pending"
        assert created.request_status is RequestStatus.PENDING

    async def test_update_profile_only_sets_given_fields(
        self, repo: ProfilesRepository, mock_conn: MagicMock
    ) -> None:
        """Test a partial update writes only the fields that were set."""
        profile_id = uuid4()
        mock_conn.fetchrow.return_value = _row(id=profile_id, role="admin")

        updated = await repo.update_profile(profile_id, ProfileUpdate(role=Role.ADMIN))

        query, *params = mock_conn.fetchrow.call_args.args
        assert "role = $1" in query
        assert "is_active" not in query.split("RETURNING")[0]
        assert "WHERE id = $2" in query
        assert params == ["admin", profile_id]
        assert updated is not None
        assert updated.role is Role.ADMIN

    async def test_update_profile_clears_team(
        self, repo: ProfilesRepository, mock_conn: MagicMock
    ) -> None:
        """Test an explicit None is written rather than skipped."""
        mock_conn.fetchrow.return_value = _row()

        await repo.update_profile(uuid4(), ProfileUpdate(team_id=None))

        query, *params = mock_conn.fetchrow.call_args.args
        assert "team_id = $1" in query
        assert params[0] is None

    async def test_count_team_members(
        self, repo: ProfilesRepository, mock_conn: MagicMock
    ) -> None:
        """Test the member count comes from COUNT(*)."""
        mock_conn.fetchval.return_value = 3

        assert await repo.count_team_members(uuid4()) == 3

    async def test_driver_errors_become_store_errors(
        self, repo: ProfilesRepository, mock_conn: MagicMock
    ) -> None:
        """Test connection failures surface as StoreError."""
        mock_conn.fetchrow = AsyncMock(side_effect=asyncpg.InterfaceError("connection closed"))

        with pytest.raises(StoreError):
            await repo.get_profile(uuid4())
