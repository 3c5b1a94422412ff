"""Membership store over a single asyncpg connection."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from routegate.adapters.rbac import InvitationsRepository, ProfilesRepository, TeamsRepository

if TYPE_CHECKING:
    from asyncpg import Connection


class PostgresMembershipStore:
    """Profiles, teams and invitations sharing one connection.

    Sharing the connection is what lets `transaction()` cover writes made
    through any of the three repositories.
    """

    def __init__(self, conn: "Connection") -> None:
        """Initialize the store."""
        self._conn = conn
        self.profiles = ProfilesRepository(conn)
        self.teams = TeamsRepository(conn)
        self.invitations = InvitationsRepository(conn)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[None]:
        """Run the enclosed writes in one transaction (a savepoint when nested)."""
        async with self._conn.transaction():
            yield
