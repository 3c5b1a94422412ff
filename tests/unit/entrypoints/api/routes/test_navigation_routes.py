"""Tests for navigation routes."""

from fastapi.testclient import TestClient

from routegate.adapters.db.memory import InMemoryMembershipStore
from routegate.adapters.identity.static import StaticIdentityProvider
from routegate.core.auth.types import Profile
from routegate.core.rbac import Role, Team
from tests.fixtures.api import auth_headers
from tests.fixtures.domain_objects import make_profile


class TestDecide:
    """Tests for POST /navigation/decide."""

    def test_anonymous_redirects_to_login(self, client: TestClient) -> None:
        """Test an unauthenticated navigation carries its return location."""
        response = client.post(
            "/api/v1/navigation/decide", json={"path": "/revenue?range=7d"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "redirect"
        assert data["state"] == "no_user"
        assert data["location"] == "/login"
        assert data["return_to"] == "/revenue?range=7d"

    def test_public_route_renders(self, client: TestClient) -> None:
        """Test the login page renders without an identity."""
        response = client.post("/api/v1/navigation/decide", json={"path": "/login"})

        assert response.json()["outcome"] == "render"

    def test_pending_profile_goes_to_pending_page(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        pending_profile: Profile,
    ) -> None:
        """Test an inactive profile is sent to the pending page."""
        store.seed(pending_profile)

        response = client.post(
            "/api/v1/navigation/decide",
            json={"path": "/"},
            headers=auth_headers(identity, pending_profile),
        )

        data = response.json()
        assert data["state"] == "no_profile"
        assert data["location"] == "/pending-approval"

    def test_internal_home_falls_back_to_team_route(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        team: Team,
    ) -> None:
        """Test home redirects an internal user to their first team route."""
        member = make_profile(Role.INTERNAL, team_id=team.id)
        store.seed(team, member)

        response = client.post(
            "/api/v1/navigation/decide",
            json={"path": "/"},
            headers=auth_headers(identity, member),
        )

        data = response.json()
        assert data["state"] == "home_fallback"
        assert data["location"] == "/social-media"

    def test_viewer_denied_admin(
        self, client: TestClient, store: InMemoryMembershipStore, identity: StaticIdentityProvider
    ) -> None:
        """Test a viewer opening the admin panel is sent to unauthorized."""
        viewer = make_profile(Role.VIEWER)
        store.seed(viewer)

        response = client.post(
            "/api/v1/navigation/decide",
            json={"path": "/admin"},
            headers=auth_headers(identity, viewer),
        )

        data = response.json()
        assert data["state"] == "deny"
        assert data["location"] == "/unauthorized"


class TestVisibleRoutes:
    """Tests for GET /navigation/routes and /navigation/catalog."""

    def test_viewer_routes(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        viewer: Profile,
    ) -> None:
        """Test a viewer sees only home and features."""
        store.seed(viewer)

        response = client.get("/api/v1/navigation/routes", headers=auth_headers(identity, viewer))

        assert response.status_code == 200
        data = response.json()
        assert [r["path"] for r in data["routes"]] == ["/", "/features"]
        assert data["landing_route"] == "/"
        assert data["can_access_admin"] is False

    def test_super_admin_sees_everything(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        super_admin: Profile,
    ) -> None:
        """Test a super admin sees the whole catalog and the admin panel."""
        store.seed(super_admin)

        response = client.get(
            "/api/v1/navigation/routes", headers=auth_headers(identity, super_admin)
        )

        data = response.json()
        assert len(data["routes"]) == 11
        assert data["can_access_admin"] is True

    def test_routes_require_identity(self, client: TestClient) -> None:
        """Test route listings need a principal."""
        assert client.get("/api/v1/navigation/routes").status_code == 401

    def test_catalog_groups(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
    ) -> None:
        """Test the catalog is returned in its configured groups."""
        store.seed(admin)

        response = client.get("/api/v1/navigation/catalog", headers=auth_headers(identity, admin))

        groups = response.json()
        assert [g["id"] for g in groups] == ["core", "revenue", "social-media"]
        assert groups[2]["routes"][0] == {
            "path": "/social-media",
            "label": "Social Media Hub",
            "group": "social-media",
        }
