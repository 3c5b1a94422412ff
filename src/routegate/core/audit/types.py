"""Activity and login event types."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

PAGE_VIEW = "page_view"
PAGE_LEAVE = "page_leave"


class LoginEventType(str, Enum):
    """Sign-in lifecycle events."""

    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    LOGOUT = "logout"


class DateWindow(str, Enum):
    """Look-back windows for audit listings."""

    DAY = "24h"
    WEEK = "7d"
    MONTH = "30d"
    ALL = "all"

    def since(self, now: datetime) -> datetime | None:
        """Get the earliest timestamp inside the window, or None for all time."""
        days = {DateWindow.DAY: 1, DateWindow.WEEK: 7, DateWindow.MONTH: 30}.get(self)
        if days is None:
            return None
        return now - timedelta(days=days)


class ActivityEvent(BaseModel):
    """A navigation or manual-action event.

    Attributes:
        session_id: Browsing session the event belongs to.
        user_id: Principal that caused the event.
        org_id: Organization the user belonged to when the event happened.
        route: Path the user was on.
        action: `page_view`, `page_leave` or a manual action name.
        metadata: Free-form context (query string, button id, ...).
        duration_ms: Dwell time, set on `page_leave` only.
        created_at: When the event happened.
    """

    model_config = ConfigDict(frozen=True)

    session_id: str
    user_id: UUID | None = None
    org_id: UUID | None = None
    route: str
    action: str
    metadata: dict[str, Any] = Field(default_factory=dict)
    duration_ms: int | None = None
    created_at: datetime


class LoginEvent(BaseModel):
    """A sign-in, failed sign-in or sign-out.

    `org_id` is the user's organization at the time; failed sign-ins and
    principals still waiting for approval have none.
    """

    model_config = ConfigDict(frozen=True)

    event_type: LoginEventType
    user_id: UUID | None = None
    org_id: UUID | None = None
    email: str | None = None
    session_id: str | None = None
    provider: str | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    created_at: datetime
