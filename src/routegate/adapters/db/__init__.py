"""Database adapters."""

from routegate.adapters.db.app_db import AppDatabase
from routegate.adapters.db.memory import InMemoryActivityRepository, InMemoryMembershipStore
from routegate.adapters.db.postgres_store import PostgresMembershipStore

__all__ = [
    "AppDatabase",
    "InMemoryActivityRepository",
    "InMemoryMembershipStore",
    "PostgresMembershipStore",
]
