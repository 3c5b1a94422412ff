"""RBAC domain types: role hierarchy, application routes and teams.

Everything in this module is static policy data plus lookups over it.
Nothing here raises: an unknown role resolves to rank 0 with no default
routes, so a bad value can only ever reduce access.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

WILDCARD = "*"


class Role(str, Enum):
    """Profile roles, lowest to highest."""

    VIEWER = "viewer"
    INTERNAL = "internal"
    ADMIN = "admin"
    SUPER_ADMIN = "super_admin"

    @classmethod
    def parse(cls, value: Role | str | None) -> Role | None:
        """Parse a stored role value, returning None for anything unknown."""
        if value is None or isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None

    @property
    def rank(self) -> int:
        """Position in the role hierarchy (higher means more privileged)."""
        return ROLE_HIERARCHY[self]


ROLE_HIERARCHY: dict[Role, int] = {
    Role.VIEWER: 1,
    Role.INTERNAL: 2,
    Role.ADMIN: 3,
    Role.SUPER_ADMIN: 4,
}


def role_rank(role: Role | str | None) -> int:
    """Get the rank of a role; unknown or missing roles rank 0."""
    parsed = Role.parse(role)
    if parsed is None:
        return 0
    return parsed.rank


class Routes:
    """Fixed application paths."""

    HOME = "/"
    FEATURES = "/features"
    TRAFFIC = "/traffic"
    SAT_TRACKER = "/sat-tracker"
    SOCIAL_MEDIA = "/social-media"
    REVENUE = "/revenue"
    ACQUISITION = "/acquisition"
    ADMIN = "/admin"
    LOGIN = "/login"
    UNAUTHORIZED = "/unauthorized"
    PENDING = "/pending-approval"
    AUTH_CALLBACK = "/auth/callback"


PUBLIC_ROUTES: tuple[str, ...] = (Routes.LOGIN, Routes.AUTH_CALLBACK)

ADMIN_ROUTES: tuple[str, ...] = (Routes.ADMIN,)

# internal users get routes only through their team
DEFAULT_ROLE_ROUTES: dict[Role, tuple[str, ...]] = {
    Role.SUPER_ADMIN: (WILDCARD,),
    Role.ADMIN: (
        Routes.HOME,
        Routes.FEATURES,
        Routes.REVENUE,
        Routes.TRAFFIC,
        Routes.SAT_TRACKER,
        Routes.SOCIAL_MEDIA,
    ),
    Role.INTERNAL: (),
    Role.VIEWER: (Routes.HOME, Routes.FEATURES),
}


def default_routes_for(role: Role | str | None) -> list[str]:
    """Get the default route scope for a role, in policy order."""
    parsed = Role.parse(role)
    if parsed is None:
        return []
    return list(DEFAULT_ROLE_ROUTES[parsed])


@dataclass(frozen=True)
class RouteEntry:
    """A selectable route in the catalog."""

    path: str
    label: str
    group: str
    group_label: str


@dataclass(frozen=True)
class RouteGroup:
    """A functional category of routes."""

    id: str
    label: str
    routes: tuple[tuple[str, str], ...]


ROUTE_GROUPS: tuple[RouteGroup, ...] = (
    RouteGroup(
        id="core",
        label="Core Analytics",
        routes=(
            (Routes.HOME, "User Engagement"),
            (Routes.FEATURES, "Feature Adoption"),
            (Routes.ACQUISITION, "Acquisition"),
            (Routes.SAT_TRACKER, "SAT Seat Finder"),
        ),
    ),
    RouteGroup(
        id="revenue",
        label="Revenue",
        routes=((Routes.REVENUE, "Revenue Dashboard"),),
    ),
    RouteGroup(
        id="social-media",
        label="Social Media",
        routes=(
            (Routes.SOCIAL_MEDIA, "Social Media Hub"),
            ("/social-media/facebook", "Facebook"),
            ("/social-media/threads", "Threads"),
            ("/social-media/discord", "Discord"),
            ("/social-media/instagram", "Instagram"),
            ("/social-media/tiktok", "TikTok"),
        ),
    ),
)

_EXTRA_LABELS: dict[str, str] = {
    Routes.TRAFFIC: "Web Traffic",
    Routes.ADMIN: "Admin Panel",
}


def route_catalog() -> list[RouteEntry]:
    """Get the ordered route catalog used by admin route pickers."""
    return [
        RouteEntry(path=path, label=label, group=group.id, group_label=group.label)
        for group in ROUTE_GROUPS
        for path, label in group.routes
    ]


def route_label(path: str) -> str | None:
    """Get the display label for a path, if it is a known route."""
    for entry in route_catalog():
        if entry.path == path:
            return entry.label
    return _EXTRA_LABELS.get(path)


def is_valid_route_pattern(pattern: str) -> bool:
    """Check that a scope entry is the wildcard or an absolute path."""
    return pattern == WILDCARD or pattern.startswith("/")


class Team(BaseModel):
    """A team in an organization and the routes its members may open."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    org_id: UUID
    name: str
    description: str | None = None
    allowed_routes: list[str] = Field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("allowed_routes")
    @classmethod
    def _check_patterns(cls, value: list[str]) -> list[str]:
        invalid = [pattern for pattern in value if not is_valid_route_pattern(pattern)]
        if invalid:
            raise ValueError(f"Route patterns must be '*' or start with '/': {invalid}")
        return value
