"""Activity and login log cleanup job.

Run via: python -m routegate.jobs.activity_cleanup
"""

import asyncio
from datetime import UTC, datetime, timedelta

import asyncpg
import structlog

from routegate.adapters.audit import PostgresActivityRepository
from routegate.config import Settings
from routegate.core.interfaces import ActivityRepository
from routegate.logging_config import configure_logging

logger = structlog.get_logger()


async def purge_expired(
    repository: ActivityRepository,
    retention_days: int,
    now: datetime | None = None,
) -> int:
    """Delete activity and login events older than the retention window.

    Returns:
        Number of rows deleted.
    """
    now = now or datetime.now(UTC)
    cutoff = now - timedelta(days=retention_days)
    logger.info("activity_cleanup_started", cutoff=cutoff.isoformat())
    count = await repository.delete_before(cutoff)
    logger.info("activity_cleanup_finished", deleted=count)
    return count


async def main() -> None:
    """Run activity log cleanup."""
    settings = Settings()
    configure_logging(settings.log_level, json=settings.log_json)

    pool = await asyncpg.create_pool(settings.database_url)
    if pool is None:
        logger.error("database_pool_unavailable")
        return

    try:
        await purge_expired(PostgresActivityRepository(pool), settings.audit_retention_days)
    finally:
        await pool.close()


if __name__ == "__main__":
    asyncio.run(main())
