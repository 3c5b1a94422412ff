"""Tests for PostgresActivityRepository."""

import json
from datetime import timedelta
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest

from routegate.adapters.audit import PostgresActivityRepository
from routegate.core.audit.types import ActivityEvent, LoginEvent, LoginEventType
from routegate.core.exceptions import StoreError
from tests.fixtures.domain_objects import NOW, ORG_ID


class TestPostgresActivityRepository:
    """Tests for PostgresActivityRepository."""

    @pytest.fixture
    def repository(self, mock_pool: MagicMock) -> PostgresActivityRepository:
        """Create repository with mock pool."""
        return PostgresActivityRepository(pool=mock_pool)

    async def test_record_activity(
        self, repository: PostgresActivityRepository, mock_conn: MagicMock
    ) -> None:
        """Test metadata is sent as JSON."""
        event = ActivityEvent(
            session_id="sess_1",
            user_id=uuid4(),
            org_id=ORG_ID,
            route="/revenue",
            action="page_leave",
            metadata={"from": "/"},
            duration_ms=4200,
            created_at=NOW,
        )

        await repository.record_activity(event)

        query, *params = mock_conn.execute.call_args.args
        assert "INSERT INTO activity_logs" in query
        assert params[2] == ORG_ID
        assert json.loads(params[5]) == {"from": "/"}
        assert params[6] == 4200

    async def test_record_login(
        self, repository: PostgresActivityRepository, mock_conn: MagicMock
    ) -> None:
        """Test the event type is stored as its value."""
        event = LoginEvent(
            event_type=LoginEventType.LOGOUT, email="a@example.com", created_at=NOW
        )

        await repository.record_login(event)

        params = mock_conn.execute.call_args.args[1:]
        assert params[4] == "logout"

    async def test_list_activity(
        self, repository: PostgresActivityRepository, mock_conn: MagicMock
    ) -> None:
        """Test listing returns events and the total count."""
        since = NOW - timedelta(days=7)
        mock_conn.fetchval.return_value = 1
        mock_conn.fetch.return_value = [
            {
                "session_id": "sess_1",
                "user_id": None,
                "org_id": ORG_ID,
                "route": "/",
                "action": "page_view",
                "metadata": '{"q": "x"}',
                "duration_ms": None,
                "created_at": NOW,
            }
        ]

        events, total = await repository.list_activity(
            org_id=ORG_ID, since=since, limit=25, offset=25
        )

        assert total == 1
        assert events[0].metadata == {"q": "x"}
        list_query, *params = mock_conn.fetch.call_args.args
        assert "org_id = $1" in list_query
        assert "created_at >= $2" in list_query
        assert "LIMIT $3 OFFSET $4" in list_query
        assert params == [ORG_ID, since, 25, 25]
        count_query, *count_params = mock_conn.fetchval.call_args.args
        assert "WHERE org_id = $1" in count_query
        assert count_params == [ORG_ID, since]

    async def test_list_logins_empty(
        self, repository: PostgresActivityRepository, mock_conn: MagicMock
    ) -> None:
        """Test an empty listing."""
        events, total = await repository.list_logins(org_id=ORG_ID)

        assert events == []
        assert total == 0

    async def test_delete_before(
        self, repository: PostgresActivityRepository, mock_conn: MagicMock
    ) -> None:
        """Test deletes from both logs are summed."""
        mock_conn.execute = AsyncMock(side_effect=["DELETE 100", "DELETE 7"])

        count = await repository.delete_before(NOW - timedelta(days=90))

        assert count == 107

    async def test_write_failure(
        self, repository: PostgresActivityRepository, mock_conn: MagicMock
    ) -> None:
        """Test a failed insert surfaces as StoreError."""
        mock_conn.execute = AsyncMock(side_effect=OSError("network down"))
        event = ActivityEvent(session_id="s", route="/", action="page_view", created_at=NOW)

        with pytest.raises(StoreError):
            await repository.record_activity(event)
