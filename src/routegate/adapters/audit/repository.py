"""Activity and login log repository."""

import json
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog
from asyncpg import Pool

from routegate.adapters.db.errors import store_errors
from routegate.core.audit.types import ActivityEvent, LoginEvent

logger = structlog.get_logger()


def _where(
    org_id: UUID, since: datetime | None, user_id: UUID | None
) -> tuple[str, list[Any]]:
    conditions = ["org_id = $1"]
    params: list[Any] = [org_id]
    if since is not None:
        params.append(since)
        conditions.append(f"created_at >= ${len(params)}")
    if user_id is not None:
        params.append(user_id)
        conditions.append(f"user_id = ${len(params)}")
    where_clause = f"WHERE {' AND '.join(conditions)}"
    return where_clause, params


def _metadata(value: Any) -> dict[str, Any]:
    if value is None:
        return {}
    if isinstance(value, str):
        decoded: dict[str, Any] = json.loads(value)
        return decoded
    return dict(value)


class PostgresActivityRepository:
    """Repository for the append-only activity and login logs.

    Writes happen off the request path, so the repository takes its own
    connection from the pool for every call.
    """

    def __init__(self, pool: Pool) -> None:
        """Initialize the repository.

        Args:
            pool: Database connection pool.
        """
        self._pool = pool

    @store_errors
    async def record_activity(self, event: ActivityEvent) -> None:
        """Append an activity event."""
        query = """
            INSERT INTO activity_logs (
                session_id, user_id, org_id, route, action, metadata, duration_ms, created_at
            ) VALUES ($1, $2, $3, $4, $5, $6::jsonb, $7, $8)
        """
        async with self._pool.acquire() as conn:
            await conn.execute(
                query,
                event.session_id,
                event.user_id,
                event.org_id,
                event.route,
                event.action,
                json.dumps(event.metadata),
                event.duration_ms,
                event.created_at,
            )

    @store_errors
    async def record_login(self, event: LoginEvent) -> None:
        """Append a login event."""
        query = """
            INSERT INTO login_history (
                user_id, org_id, email, session_id, event_type, provider,
                ip_address, user_agent, created_at
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9)
        """
        async with self._pool.acquire() as conn:
            await conn.execute(
                query,
                event.user_id,
                event.org_id,
                event.email,
                event.session_id,
                event.event_type.value,
                event.provider,
                event.ip_address,
                event.user_agent,
                event.created_at,
            )

    @store_errors
    async def list_activity(
        self,
        *,
        org_id: UUID,
        since: datetime | None = None,
        user_id: UUID | None = None,
        limit: int = 25,
        offset: int = 0,
    ) -> tuple[list[ActivityEvent], int]:
        """List activity events newest first.

        Returns:
            Tuple of (events, total_count).
        """
        where_clause, params = _where(org_id, since, user_id)
        count_query = f"SELECT COUNT(*) FROM activity_logs {where_clause}"
        list_query = f"""
            SELECT session_id, user_id, org_id, route, action, metadata, duration_ms, created_at
            FROM activity_logs {where_clause}
            ORDER BY created_at DESC
            LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
        """
        async with self._pool.acquire() as conn:
            total = await conn.fetchval(count_query, *params)
            rows = await conn.fetch(list_query, *params, limit, offset)

        events = [
            ActivityEvent(
                session_id=row["session_id"],
                user_id=row["user_id"],
                org_id=row["org_id"],
                route=row["route"],
                action=row["action"],
                metadata=_metadata(row["metadata"]),
                duration_ms=row["duration_ms"],
                created_at=row["created_at"],
            )
            for row in rows
        ]
        total_count: int = total or 0
        return events, total_count

    @store_errors
    async def list_logins(
        self,
        *,
        org_id: UUID,
        since: datetime | None = None,
        user_id: UUID | None = None,
        limit: int = 25,
        offset: int = 0,
    ) -> tuple[list[LoginEvent], int]:
        """List login events newest first.

        Returns:
            Tuple of (events, total_count).
        """
        where_clause, params = _where(org_id, since, user_id)
        count_query = f"SELECT COUNT(*) FROM login_history {where_clause}"
        list_query = f"""
            SELECT user_id, org_id, email, session_id, event_type, provider,
                   ip_address, user_agent, created_at
            FROM login_history {where_clause}
            ORDER BY created_at DESC
            LIMIT ${len(params) + 1} OFFSET ${len(params) + 2}
        """
        async with self._pool.acquire() as conn:
            total = await conn.fetchval(count_query, *params)
            rows = await conn.fetch(list_query, *params, limit, offset)

        events = [LoginEvent.model_validate(dict(row)) for row in rows]
        total_count: int = total or 0
        return events, total_count

    @store_errors
    async def delete_before(self, cutoff: datetime) -> int:
        """Delete activity and login events older than a cutoff.

        Returns:
            Number of rows deleted across both logs.
        """
        async with self._pool.acquire() as conn:
            async with conn.transaction():
                activity = await conn.execute(
                    "DELETE FROM activity_logs WHERE created_at < $1", cutoff
                )
                logins = await conn.execute(
                    "DELETE FROM login_history WHERE created_at < $1", cutoff
                )

        # Results look like "DELETE 100"
        deleted = int(activity.split()[-1]) + int(logins.split()[-1])
        logger.info("activity_logs_deleted", cutoff=cutoff.isoformat(), deleted=deleted)
        return deleted
