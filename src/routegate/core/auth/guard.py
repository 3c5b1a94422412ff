"""Route guard: one navigation decision per requested route.

The guard composes the loading state, the profile's activation state and
route permissions into a single decision. It holds no state of its own
and may be evaluated on every navigation.
"""

from __future__ import annotations

from enum import Enum
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict

from routegate.core.auth.types import AuthSnapshot
from routegate.core.rbac.permission_service import can_access, first_allowed_route
from routegate.core.rbac.types import Routes


class GuardState(str, Enum):
    """Terminal state the guard settled in."""

    LOADING = "loading"
    NO_USER = "no_user"
    NO_PROFILE = "no_profile"
    ALLOW = "allow"
    HOME_FALLBACK = "home_fallback"
    DENY = "deny"


class NavigationOutcome(str, Enum):
    """What the presentation layer should do."""

    LOADING = "loading"
    RENDER = "render"
    REDIRECT = "redirect"


class NavigationDecision(BaseModel):
    """Result of guarding one navigation.

    Attributes:
        outcome: Render, redirect, or keep showing the loading state.
        state: Guard state that produced the outcome.
        location: Redirect target, set only for redirects.
        return_to: Originally requested location, carried on login redirects
            so a successful sign-in can send the user back.
    """

    model_config = ConfigDict(frozen=True)

    outcome: NavigationOutcome
    state: GuardState
    location: str | None = None
    return_to: str | None = None

    @property
    def is_render(self) -> bool:
        """Whether the requested page should be shown."""
        return self.outcome is NavigationOutcome.RENDER

    @property
    def is_redirect(self) -> bool:
        """Whether the user should be sent elsewhere."""
        return self.outcome is NavigationOutcome.REDIRECT


def _path_of(location: str) -> str:
    path = urlsplit(location).path
    return path or Routes.HOME


def guard_route(
    snapshot: AuthSnapshot,
    location: str,
    required_route: str | None = None,
) -> NavigationDecision:
    """Decide what happens when a user navigates to a location.

    Rules, in order:
    1. Identity or profile still loading: keep loading, decide nothing.
    2. No principal: redirect to login carrying the requested location.
    3. No profile, or an inactive one: redirect to pending approval. The
       pending page itself tells "pending" from "denied".
    4. Otherwise check the route. A denied home route falls back to the
       first allowed route when there is one; any other denial goes to
       unauthorized.

    Args:
        snapshot: Identity, profile and scope at the last refresh point.
        location: Current location (path, optionally with a query string).
        required_route: Route to check instead of the location's path.

    Returns:
        The navigation decision.
    """
    if snapshot.is_loading:
        return NavigationDecision(outcome=NavigationOutcome.LOADING, state=GuardState.LOADING)

    if snapshot.principal is None:
        return NavigationDecision(
            outcome=NavigationOutcome.REDIRECT,
            state=GuardState.NO_USER,
            location=Routes.LOGIN,
            return_to=location,
        )

    profile = snapshot.profile
    if profile is None or not profile.is_active:
        return NavigationDecision(
            outcome=NavigationOutcome.REDIRECT,
            state=GuardState.NO_PROFILE,
            location=Routes.PENDING,
        )

    route = required_route or _path_of(location)
    routes = snapshot.effective_routes
    if can_access(profile, routes, route):
        return NavigationDecision(outcome=NavigationOutcome.RENDER, state=GuardState.ALLOW)

    if route == Routes.HOME:
        fallback = first_allowed_route(profile, routes)
        if fallback and fallback != Routes.UNAUTHORIZED:
            return NavigationDecision(
                outcome=NavigationOutcome.REDIRECT,
                state=GuardState.HOME_FALLBACK,
                location=fallback,
            )

    return NavigationDecision(
        outcome=NavigationOutcome.REDIRECT,
        state=GuardState.DENY,
        location=Routes.UNAUTHORIZED,
    )
