"""RBAC core domain."""

from routegate.core.rbac.permission_service import (
    RoutePermissions,
    can_access,
    can_access_admin,
    effective_routes,
    first_allowed_route,
    has_min_role,
    is_admin,
    is_internal,
    is_super_admin,
    is_viewer,
    route_matches,
    visible_routes,
)
from routegate.core.rbac.types import (
    ADMIN_ROUTES,
    DEFAULT_ROLE_ROUTES,
    PUBLIC_ROUTES,
    ROLE_HIERARCHY,
    WILDCARD,
    Role,
    RouteEntry,
    RouteGroup,
    Routes,
    Team,
    default_routes_for,
    is_valid_route_pattern,
    role_rank,
    route_catalog,
    route_label,
)

__all__ = [
    "ADMIN_ROUTES",
    "DEFAULT_ROLE_ROUTES",
    "PUBLIC_ROUTES",
    "ROLE_HIERARCHY",
    "WILDCARD",
    "Role",
    "RouteEntry",
    "RouteGroup",
    "RoutePermissions",
    "Routes",
    "Team",
    "can_access",
    "can_access_admin",
    "default_routes_for",
    "effective_routes",
    "first_allowed_route",
    "has_min_role",
    "is_admin",
    "is_internal",
    "is_super_admin",
    "is_valid_route_pattern",
    "is_viewer",
    "role_rank",
    "route_catalog",
    "route_label",
    "route_matches",
    "visible_routes",
]
