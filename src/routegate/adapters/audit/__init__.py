"""Activity and login log persistence."""

from routegate.adapters.audit.repository import PostgresActivityRepository

__all__ = ["PostgresActivityRepository"]
