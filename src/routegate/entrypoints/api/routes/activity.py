"""Activity API routes: recording navigation and reading the audit log."""

from __future__ import annotations

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import BaseModel, Field

from routegate.core.audit.recorder import should_record_visit
from routegate.core.audit.service import AuditLogService
from routegate.core.audit.types import PAGE_LEAVE, ActivityEvent, DateWindow, LoginEvent
from routegate.entrypoints.api.deps import RecorderDep, SettingsDep, get_audit_log_service
from routegate.entrypoints.api.middleware.auth import (
    PrincipalDep,
    RequireAdmin,
    SnapshotDep,
    get_session_id,
)

router = APIRouter(prefix="/activity", tags=["activity"])

AuditLogDep = Annotated[AuditLogService, Depends(get_audit_log_service)]


class ActivityCreate(BaseModel):
    """A navigation or manual action reported by the client."""

    route: str
    action: str = Field(min_length=1, max_length=100)
    metadata: dict[str, Any] = Field(default_factory=dict)
    duration_ms: int | None = Field(default=None, ge=0)


class ActivityAccepted(BaseModel):
    """Whether the event was queued for recording."""

    recorded: bool
    reason: str | None = None


class ActivityListResponse(BaseModel):
    """One page of activity."""

    events: list[ActivityEvent]
    total: int
    page: int
    page_size: int
    total_pages: int


class LoginListResponse(BaseModel):
    """One page of login history."""

    events: list[LoginEvent]
    total: int
    page: int
    page_size: int
    total_pages: int


@router.post("", response_model=ActivityAccepted, status_code=status.HTTP_202_ACCEPTED)
async def record_activity(
    body: ActivityCreate,
    principal: PrincipalDep,
    snapshot: SnapshotDep,
    recorder: RecorderDep,
    config: SettingsDep,
    session_id: Annotated[str | None, Depends(get_session_id)],
) -> ActivityAccepted:
    """Queue an activity event without waiting for it to be written.

    Events from inactive profiles are dropped, as are page exits under the
    visit floor.
    """
    if not session_id:
        raise HTTPException(status_code=400, detail="X-Session-Id header required")
    profile = snapshot.profile
    if profile is None or not profile.is_active:
        return ActivityAccepted(recorded=False, reason="inactive")
    if body.action == PAGE_LEAVE and not should_record_visit(
        body.duration_ms, config.min_visit_ms
    ):
        return ActivityAccepted(recorded=False, reason="below_visit_floor")

    recorder.record(
        session_id,
        body.route,
        body.action,
        user_id=principal.id,
        org_id=profile.org_id,
        metadata=body.metadata,
        duration_ms=body.duration_ms if body.action == PAGE_LEAVE else None,
    )
    return ActivityAccepted(recorded=True)


@router.get("", response_model=ActivityListResponse)
async def list_activity(
    actor: RequireAdmin,
    service: AuditLogDep,
    window: DateWindow = DateWindow.WEEK,
    page: Annotated[int, Query(ge=1)] = 1,
    user_id: UUID | None = None,
) -> ActivityListResponse:
    """List activity inside a date window, 25 per page, newest first."""
    result = await service.list_activity(actor, window, page, user_id)
    return ActivityListResponse(
        events=result.items,
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )


@router.get("/logins", response_model=LoginListResponse)
async def list_logins(
    actor: RequireAdmin,
    service: AuditLogDep,
    window: DateWindow = DateWindow.WEEK,
    page: Annotated[int, Query(ge=1)] = 1,
    user_id: UUID | None = None,
) -> LoginListResponse:
    """List login history inside a date window, 25 per page, newest first."""
    result = await service.list_logins(actor, window, page, user_id)
    return LoginListResponse(
        events=result.items,
        total=result.total,
        page=result.page,
        page_size=result.page_size,
        total_pages=result.total_pages,
    )
