"""Navigation API routes: guard decisions and route listings."""

from __future__ import annotations

from fastapi import APIRouter
from pydantic import BaseModel, Field

from routegate.core.auth.guard import GuardState, NavigationOutcome, guard_route
from routegate.core.rbac import PUBLIC_ROUTES, RoutePermissions, can_access_admin
from routegate.core.rbac.types import ROUTE_GROUPS
from routegate.entrypoints.api.middleware.auth import PrincipalDep, SnapshotDep

router = APIRouter(prefix="/navigation", tags=["navigation"])


class DecideRequest(BaseModel):
    """A navigation to decide."""

    path: str = Field(min_length=1)
    required_route: str | None = None


class DecideResponse(BaseModel):
    """What the client should do with the navigation."""

    outcome: NavigationOutcome
    state: GuardState
    location: str | None = None
    return_to: str | None = None


class RouteLink(BaseModel):
    """One catalog entry."""

    path: str
    label: str
    group: str


class RouteGroupResponse(BaseModel):
    """A catalog group and its routes."""

    id: str
    label: str
    routes: list[RouteLink]


class VisibleRoutesResponse(BaseModel):
    """Links the caller may open, plus where to land after sign-in."""

    routes: list[RouteLink]
    landing_route: str
    can_access_admin: bool


@router.post("/decide", response_model=DecideResponse)
async def decide(body: DecideRequest, snapshot: SnapshotDep) -> DecideResponse:
    """Decide whether to render a location or redirect.

    Public routes are rendered for everyone without consulting the guard.
    """
    path = body.path.split("?", 1)[0]
    if path in PUBLIC_ROUTES and body.required_route is None:
        return DecideResponse(outcome=NavigationOutcome.RENDER, state=GuardState.ALLOW)

    decision = guard_route(snapshot, body.path, body.required_route)
    return DecideResponse(
        outcome=decision.outcome,
        state=decision.state,
        location=decision.location,
        return_to=decision.return_to,
    )


@router.get("/routes", response_model=VisibleRoutesResponse)
async def visible_routes(principal: PrincipalDep, snapshot: SnapshotDep) -> VisibleRoutesResponse:
    """List the catalog routes the caller may open, for nav rendering."""
    permissions = RoutePermissions.from_snapshot(snapshot)
    return VisibleRoutesResponse(
        routes=[
            RouteLink(path=entry.path, label=entry.label, group=entry.group)
            for entry in permissions.visible_routes()
        ],
        landing_route=permissions.first_allowed_route(),
        can_access_admin=can_access_admin(snapshot.profile),
    )


@router.get("/catalog", response_model=list[RouteGroupResponse])
async def catalog(principal: PrincipalDep) -> list[RouteGroupResponse]:
    """Get the grouped route catalog used by admin route pickers."""
    return [
        RouteGroupResponse(
            id=group.id,
            label=group.label,
            routes=[
                RouteLink(path=path, label=label, group=group.id)
                for path, label in group.routes
            ],
        )
        for group in ROUTE_GROUPS
    ]
