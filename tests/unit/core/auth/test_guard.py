"""Tests for the route guard."""

from uuid import uuid4

from routegate.core.auth import (
    AuthSnapshot,
    GuardState,
    NavigationOutcome,
    Principal,
    guard_route,
)
from routegate.core.auth.types import RequestStatus
from routegate.core.rbac import Role, Routes
from tests.fixtures.domain_objects import make_profile, make_team, snapshot_for


class TestGuardLoading:
    """Tests for the loading state."""

    def test_loading_makes_no_decision(self) -> None:
        """Test nothing is decided while identity is loading."""
        decision = guard_route(AuthSnapshot.loading(), "/revenue")

        assert decision.outcome is NavigationOutcome.LOADING
        assert decision.state is GuardState.LOADING
        assert decision.location is None
        assert not decision.is_render
        assert not decision.is_redirect


class TestGuardIdentity:
    """Tests for the principal and profile checks."""

    def test_no_principal_redirects_to_login_with_return(self) -> None:
        """Test anonymous users go to login carrying the requested location."""
        decision = guard_route(AuthSnapshot.anonymous(), "/revenue")

        assert decision.is_redirect
        assert decision.state is GuardState.NO_USER
        assert decision.location == Routes.LOGIN
        assert decision.return_to == "/revenue"

    def test_return_location_keeps_query(self) -> None:
        """Test the full location is carried back, query included."""
        decision = guard_route(AuthSnapshot.anonymous(), "/social-media/tiktok?range=7d")

        assert decision.return_to == "/social-media/tiktok?range=7d"

    def test_principal_without_profile_goes_to_pending(self) -> None:
        """Test a principal with no profile yet waits for approval."""
        snapshot = AuthSnapshot(principal=Principal(id=uuid4(), email="new@example.com"))

        decision = guard_route(snapshot, "/")

        assert decision.state is GuardState.NO_PROFILE
        assert decision.location == Routes.PENDING

    def test_inactive_profile_goes_to_pending(self) -> None:
        """Test a denied (inactive) profile goes to the same pending page."""
        profile = make_profile(
            Role.ADMIN, is_active=False, request_status=RequestStatus.DENIED
        )

        decision = guard_route(snapshot_for(profile), "/")

        assert decision.state is GuardState.NO_PROFILE
        assert decision.location == Routes.PENDING


class TestGuardPermissions:
    """Tests for the permission check."""

    def test_viewer_renders_home(self) -> None:
        """Test a viewer may open home."""
        decision = guard_route(snapshot_for(make_profile(Role.VIEWER)), "/")

        assert decision.is_render
        assert decision.state is GuardState.ALLOW

    def test_viewer_denied_admin(self) -> None:
        """Test a viewer is sent to unauthorized for the admin panel."""
        decision = guard_route(snapshot_for(make_profile(Role.VIEWER)), "/admin")

        assert decision.state is GuardState.DENY
        assert decision.location == Routes.UNAUTHORIZED

    def test_internal_without_team_denied_home(self) -> None:
        """Test an internal user with no team has nowhere to go."""
        profile = make_profile(Role.INTERNAL, team_id=None)

        decision = guard_route(snapshot_for(profile), "/")

        assert decision.state is GuardState.DENY
        assert decision.location == Routes.UNAUTHORIZED

    def test_internal_with_team_falls_back_from_home(self) -> None:
        """Test home redirects to the first team route when home is out of scope."""
        team = make_team(["/social-media", "/revenue"])
        profile = make_profile(Role.INTERNAL, team_id=team.id)

        decision = guard_route(snapshot_for(profile, team), "/")

        assert decision.state is GuardState.HOME_FALLBACK
        assert decision.location == "/social-media"

    def test_other_denied_route_does_not_fall_back(self) -> None:
        """Test only home gets the fallback treatment."""
        team = make_team(["/social-media"])
        profile = make_profile(Role.INTERNAL, team_id=team.id)

        decision = guard_route(snapshot_for(profile, team), "/revenue")

        assert decision.state is GuardState.DENY
        assert decision.location == Routes.UNAUTHORIZED

    def test_sub_route_of_team_route_renders(self) -> None:
        """Test team parent routes cover their sub-routes."""
        team = make_team(["/social-media"])
        profile = make_profile(Role.INTERNAL, team_id=team.id)

        decision = guard_route(snapshot_for(profile, team), "/social-media/tiktok/overview")

        assert decision.is_render

    def test_required_route_overrides_location(self) -> None:
        """Test an explicit required route is checked instead of the location."""
        snapshot = snapshot_for(make_profile(Role.VIEWER))

        decision = guard_route(snapshot, "/features", required_route="/admin")

        assert decision.state is GuardState.DENY

    def test_query_string_is_ignored_for_permission(self) -> None:
        """Test the path, not the query, is checked."""
        snapshot = snapshot_for(make_profile(Role.VIEWER))

        decision = guard_route(snapshot, "/features?tab=adoption")

        assert decision.is_render

    def test_super_admin_renders_unknown_route(self) -> None:
        """Test super admins may open routes outside the catalog."""
        snapshot = snapshot_for(make_profile(Role.SUPER_ADMIN))

        assert guard_route(snapshot, "/experimental/page").is_render

    def test_repeated_evaluation_is_stable(self) -> None:
        """Test the guard keeps no state between calls."""
        snapshot = snapshot_for(make_profile(Role.VIEWER))

        first = guard_route(snapshot, "/admin")
        second = guard_route(snapshot, "/admin")

        assert first == second
