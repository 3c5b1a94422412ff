"""Route permission evaluation.

Pure functions over a profile, its effective route scope and a target
path. They never raise and never touch the store; callers pass a
snapshot taken at a refresh point.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from routegate.core.rbac.types import (
    WILDCARD,
    Role,
    RouteEntry,
    Routes,
    Team,
    default_routes_for,
    role_rank,
    route_catalog,
)

if TYPE_CHECKING:
    from routegate.core.auth.types import AuthSnapshot, Profile


def route_matches(pattern: str, path: str) -> bool:
    """Check whether a scope pattern covers a path.

    A pattern covers itself and every path below it, so `/social-media`
    covers `/social-media/tiktok/overview` but not `/social-media-extra`.
    """
    return path == pattern or path.startswith(pattern + "/")


def effective_routes(profile: Profile | None, team: Team | None = None) -> list[str]:
    """Build a profile's route scope.

    Super admins get the wildcard. Everyone else gets their role defaults
    followed by their team's routes, in configuration order with duplicates
    removed (first occurrence wins).
    """
    if profile is None:
        return []
    if profile.role is Role.SUPER_ADMIN:
        return [WILDCARD]

    routes = default_routes_for(profile.role)
    if team is not None and profile.team_id is not None and team.id == profile.team_id:
        routes.extend(team.allowed_routes)

    seen: set[str] = set()
    ordered: list[str] = []
    for route in routes:
        if route not in seen:
            seen.add(route)
            ordered.append(route)
    return ordered


def can_access(
    profile: Profile | None,
    routes: Sequence[str],
    target_path: str,
) -> bool:
    """Decide whether a profile may open a path.

    Fails closed for a missing or inactive profile regardless of role.
    """
    if profile is None or not profile.is_active:
        return False
    if WILDCARD in routes:
        return True
    if target_path in routes:
        return True
    return any(route_matches(route, target_path) for route in routes)


def first_allowed_route(profile: Profile | None, routes: Sequence[str]) -> str:
    """Pick where to send a profile that cannot open the requested page.

    Returns the login path for a missing or inactive profile, home for the
    wildcard, the first scope entry otherwise, and the unauthorized path
    when the scope is empty.
    """
    if profile is None or not profile.is_active:
        return Routes.LOGIN
    if WILDCARD in routes:
        return Routes.HOME
    if routes:
        return routes[0]
    return Routes.UNAUTHORIZED


def visible_routes(profile: Profile | None, routes: Sequence[str]) -> list[RouteEntry]:
    """Filter the route catalog down to the links a profile may follow."""
    return [entry for entry in route_catalog() if can_access(profile, routes, entry.path)]


def has_min_role(profile: Profile | None, min_role: Role) -> bool:
    """Check that a profile holds at least the given role."""
    if profile is None:
        return False
    return role_rank(profile.role) >= min_role.rank


def is_super_admin(profile: Profile | None) -> bool:
    """Check for the super admin role."""
    return profile is not None and profile.role is Role.SUPER_ADMIN


def is_admin(profile: Profile | None) -> bool:
    """Check for admin or super admin."""
    return has_min_role(profile, Role.ADMIN)


def is_internal(profile: Profile | None) -> bool:
    """Check for internal or any role above it."""
    return has_min_role(profile, Role.INTERNAL)


def is_viewer(profile: Profile | None) -> bool:
    """Check for the viewer role."""
    return profile is not None and profile.role is Role.VIEWER


def can_access_admin(profile: Profile | None) -> bool:
    """Check whether the admin panel should be offered."""
    return is_super_admin(profile)


@dataclass(frozen=True)
class RoutePermissions:
    """Permission queries bound to one profile and scope.

    This is what nav rendering and route pickers hold on to between
    refresh points.
    """

    profile: Profile | None
    routes: tuple[str, ...]

    @classmethod
    def from_snapshot(cls, snapshot: AuthSnapshot) -> RoutePermissions:
        """Bind to the profile and scope of an auth snapshot."""
        return cls(profile=snapshot.profile, routes=tuple(snapshot.effective_routes))

    def can_access(self, path: str) -> bool:
        """Check a single path."""
        return can_access(self.profile, self.routes, path)

    def first_allowed_route(self) -> str:
        """Get the fallback route."""
        return first_allowed_route(self.profile, self.routes)

    def visible_routes(self) -> list[RouteEntry]:
        """Get the catalog entries to show."""
        return visible_routes(self.profile, self.routes)

    def has_min_role(self, min_role: Role) -> bool:
        """Check the profile's role level."""
        return has_min_role(self.profile, min_role)
