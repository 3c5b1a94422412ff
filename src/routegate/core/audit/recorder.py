"""Fire-and-forget activity recording.

Writes are scheduled as asyncio tasks and never awaited by the caller. A
failed write is logged and dropped; it never reaches the navigation or
action that triggered it.
"""

from __future__ import annotations

import asyncio
import secrets
import string
from collections.abc import Coroutine
from datetime import datetime
from typing import Any
from uuid import UUID

import structlog

from routegate.core.audit.types import (
    PAGE_LEAVE,
    PAGE_VIEW,
    ActivityEvent,
    LoginEvent,
    LoginEventType,
)
from routegate.core.auth.types import Principal, Profile
from routegate.core.clock import Clock, utc_now
from routegate.core.interfaces import ActivityRepository

logger = structlog.get_logger()

DEFAULT_MIN_VISIT_MS = 1000

_BASE36 = string.digits + string.ascii_lowercase


def _base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits))


def generate_session_id(now: datetime | None = None) -> str:
    """Generate a browsing-session id: `sess_<random><base36 epoch ms>`.

    Only used to group events, never as a credential.
    """
    now = now or utc_now()
    random_part = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"sess_{random_part}{_base36(int(now.timestamp() * 1000))}"


def should_record_visit(duration_ms: int | None, min_visit_ms: int = DEFAULT_MIN_VISIT_MS) -> bool:
    """Check a dwell time is long enough to count as a visit."""
    return duration_ms is not None and duration_ms > min_visit_ms


class ActivityRecorder:
    """Schedules activity and login writes in the background."""

    def __init__(self, repository: ActivityRepository, clock: Clock = utc_now) -> None:
        """Initialize the recorder.

        Args:
            repository: Where events are appended.
            clock: Source of event timestamps.
        """
        self._repository = repository
        self._clock = clock
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> int:
        """Number of writes still in flight."""
        return len(self._tasks)

    def record(
        self,
        session_id: str,
        route: str,
        action: str,
        *,
        user_id: UUID | None = None,
        org_id: UUID | None = None,
        metadata: dict[str, Any] | None = None,
        duration_ms: int | None = None,
    ) -> asyncio.Task[None]:
        """Schedule an activity event. Must be called from a running loop."""
        event = ActivityEvent(
            session_id=session_id,
            user_id=user_id,
            org_id=org_id,
            route=route,
            action=action,
            metadata=metadata or {},
            duration_ms=duration_ms,
            created_at=self._clock(),
        )
        return self._spawn(self._write_activity(event))

    def record_login(
        self,
        event_type: LoginEventType,
        *,
        user_id: UUID | None = None,
        org_id: UUID | None = None,
        email: str | None = None,
        session_id: str | None = None,
        provider: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> asyncio.Task[None]:
        """Schedule a login event."""
        event = LoginEvent(
            event_type=event_type,
            user_id=user_id,
            org_id=org_id,
            email=email,
            session_id=session_id,
            provider=provider,
            ip_address=ip_address,
            user_agent=user_agent,
            created_at=self._clock(),
        )
        return self._spawn(self._write_login(event))

    async def drain(self) -> None:
        """Wait for every in-flight write, including ones scheduled meanwhile."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro)
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _write_activity(self, event: ActivityEvent) -> None:
        try:
            await self._repository.record_activity(event)
        except Exception as e:
            logger.error(
                "activity_record_failed",
                error=str(e),
                session_id=event.session_id,
                route=event.route,
                action=event.action,
            )

    async def _write_login(self, event: LoginEvent) -> None:
        try:
            await self._repository.record_login(event)
        except Exception as e:
            logger.error(
                "login_event_record_failed",
                error=str(e),
                event_type=event.event_type.value,
                user_id=str(event.user_id) if event.user_id else None,
            )


class ActivityTracker:
    """Tracks one browsing session's navigation for one signed-in user.

    `enter` records a page view; leaving a page records its dwell time when
    it exceeds the visit floor, so redirect chains do not show up as visits.
    Nothing is recorded without a principal and an active profile.
    """

    def __init__(
        self,
        recorder: ActivityRecorder,
        session_id: str,
        principal: Principal | None,
        profile: Profile | None,
        *,
        min_visit_ms: int = DEFAULT_MIN_VISIT_MS,
        clock: Clock = utc_now,
    ) -> None:
        self._recorder = recorder
        self.session_id = session_id
        self._principal = principal
        self._profile = profile
        self._min_visit_ms = min_visit_ms
        self._clock = clock
        self._route: str | None = None
        self._entered_at: datetime | None = None

    @property
    def enabled(self) -> bool:
        """Whether events are recorded at all."""
        return (
            self._principal is not None
            and self._profile is not None
            and self._profile.is_active
        )

    @property
    def current_route(self) -> str | None:
        """Route the user is on, if one was entered."""
        return self._route

    def enter(self, route: str, metadata: dict[str, Any] | None = None) -> None:
        """Record arrival on a route, closing the previous one first."""
        self.leave()
        if not self.enabled:
            return
        self._route = route
        self._entered_at = self._clock()
        self._recorder.record(
            self.session_id,
            route,
            PAGE_VIEW,
            user_id=self._user_id,
            org_id=self._org_id,
            metadata=metadata,
        )

    def leave(self) -> None:
        """Close the current route, recording its dwell time if long enough."""
        if self._route is None or self._entered_at is None:
            return
        route, entered_at = self._route, self._entered_at
        self._route = None
        self._entered_at = None
        duration_ms = int((self._clock() - entered_at).total_seconds() * 1000)
        if not should_record_visit(duration_ms, self._min_visit_ms):
            return
        self._recorder.record(
            self.session_id,
            route,
            PAGE_LEAVE,
            user_id=self._user_id,
            org_id=self._org_id,
            duration_ms=duration_ms,
        )

    def track_action(self, action: str, metadata: dict[str, Any] | None = None) -> None:
        """Record a manual action on the current route."""
        if not self.enabled:
            return
        self._recorder.record(
            self.session_id,
            self._route or "",
            action,
            user_id=self._user_id,
            org_id=self._org_id,
            metadata=metadata,
        )

    @property
    def _user_id(self) -> UUID | None:
        return self._principal.id if self._principal else None

    @property
    def _org_id(self) -> UUID | None:
        return self._profile.org_id if self._profile else None
