"""Application database adapter using asyncpg."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import asyncpg
import structlog

from routegate.adapters.db.postgres_store import PostgresMembershipStore

logger = structlog.get_logger()

SCHEMA_PATH = Path(__file__).with_name("schema.sql")


class AppDatabase:
    """Connection pool for profiles, teams, invitations and audit logs."""

    def __init__(self, dsn: str, min_size: int = 2, max_size: int = 10):
        """Initialize the app database adapter."""
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.pool: asyncpg.Pool[asyncpg.Record] | None = None

    async def connect(self) -> None:
        """Create connection pool."""
        self.pool = await asyncpg.create_pool(
            self.dsn,
            min_size=self.min_size,
            max_size=self.max_size,
            command_timeout=60,
        )
        logger.info("app_database_connected", dsn=self.dsn.split("@")[-1])

    async def close(self) -> None:
        """Close connection pool."""
        if self.pool:
            await self.pool.close()
            self.pool = None
            logger.info("app_database_disconnected")

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection[asyncpg.Record]]:
        """Acquire a connection from the pool."""
        if self.pool is None:
            raise RuntimeError("Database pool not initialized")
        async with self.pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def membership_store(self) -> AsyncIterator[PostgresMembershipStore]:
        """Acquire a connection and wrap it as a membership store."""
        async with self.acquire() as conn:
            yield PostgresMembershipStore(conn)

    async def apply_schema(self) -> None:
        """Create tables and indexes if they do not exist yet."""
        async with self.acquire() as conn:
            await conn.execute(SCHEMA_PATH.read_text())
        logger.info("app_database_schema_applied")
