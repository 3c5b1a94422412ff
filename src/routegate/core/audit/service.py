"""Audit log queries for admins."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar
from uuid import UUID

from routegate.core.audit.types import ActivityEvent, DateWindow, LoginEvent
from routegate.core.auth.types import Profile
from routegate.core.clock import Clock, utc_now
from routegate.core.interfaces import ActivityRepository
from routegate.core.membership.policy import require_admin

PAGE_SIZE = 25

T = TypeVar("T")


@dataclass(frozen=True)
class AuditPage(Generic[T]):
    """One page of audit rows with the exact total."""

    items: list[T]
    total: int
    page: int
    page_size: int = PAGE_SIZE

    @property
    def total_pages(self) -> int:
        return max(1, -(-self.total // self.page_size))


class AuditLogService:
    """Paginated activity and login history."""

    def __init__(self, repository: ActivityRepository, clock: Clock = utc_now) -> None:
        self._repository = repository
        self._clock = clock

    async def list_activity(
        self,
        actor: Profile | None,
        window: DateWindow = DateWindow.WEEK,
        page: int = 1,
        user_id: UUID | None = None,
    ) -> AuditPage[ActivityEvent]:
        """List activity events inside a date window, newest first.

        Args:
            actor: Acting profile; must be an admin. Only events from its
                organization are listed.
            window: Look-back window.
            page: 1-based page number.
            user_id: Only events caused by this user.
        """
        org_id = require_admin(actor).org_id
        page = max(page, 1)
        events, total = await self._repository.list_activity(
            org_id=org_id,
            since=window.since(self._clock()),
            user_id=user_id,
            limit=PAGE_SIZE,
            offset=(page - 1) * PAGE_SIZE,
        )
        return AuditPage(items=events, total=total, page=page)

    async def list_logins(
        self,
        actor: Profile | None,
        window: DateWindow = DateWindow.WEEK,
        page: int = 1,
        user_id: UUID | None = None,
    ) -> AuditPage[LoginEvent]:
        """List login events inside a date window, newest first."""
        org_id = require_admin(actor).org_id
        page = max(page, 1)
        events, total = await self._repository.list_logins(
            org_id=org_id,
            since=window.since(self._clock()),
            user_id=user_id,
            limit=PAGE_SIZE,
            offset=(page - 1) * PAGE_SIZE,
        )
        return AuditPage(items=events, total=total, page=page)
