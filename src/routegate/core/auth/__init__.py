"""Auth core domain: identity, profiles and the route guard."""

from routegate.core.auth.guard import (
    GuardState,
    NavigationDecision,
    NavigationOutcome,
    guard_route,
)
from routegate.core.auth.types import AuthSnapshot, Principal, Profile, RequestStatus

__all__ = [
    "AuthSnapshot",
    "GuardState",
    "NavigationDecision",
    "NavigationOutcome",
    "Principal",
    "Profile",
    "RequestStatus",
    "guard_route",
]
