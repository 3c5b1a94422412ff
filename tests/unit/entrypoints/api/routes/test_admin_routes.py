"""Tests for the admin routes: access requests, invites, teams and users."""

from datetime import timedelta
from uuid import uuid4

from fastapi import FastAPI
from fastapi.testclient import TestClient

from routegate.adapters.db.memory import InMemoryMembershipStore
from routegate.adapters.identity.static import StaticIdentityProvider
from routegate.core.auth.types import Profile, RequestStatus
from routegate.core.membership.invitations import InvitationService
from routegate.core.membership.types import Invitation, InvitationStatus
from routegate.core.rbac import Role, Team
from routegate.entrypoints.api.deps import get_invitation_service
from tests.fixtures.api import auth_headers
from tests.fixtures.domain_objects import NOW, ORG_ID, make_profile
from tests.fixtures.mocks import FrozenClock


class TestAdminGate:
    """Tests for the admin role check shared by every admin route."""

    def test_viewer_forbidden(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        viewer: Profile,
    ) -> None:
        """Test a viewer gets 403 from admin routes."""
        store.seed(viewer)
        headers = auth_headers(identity, viewer)

        for path in ("/api/v1/access-requests", "/api/v1/invites", "/api/v1/teams"):
            assert client.get(path, headers=headers).status_code == 403

    def test_anonymous_unauthorized(self, client: TestClient) -> None:
        """Test admin routes need a principal."""
        assert client.get("/api/v1/users").status_code == 401

    def test_deactivated_admin_forbidden(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
    ) -> None:
        """Test a deactivated admin loses admin access immediately."""
        inactive = make_profile(Role.ADMIN, is_active=False)
        store.seed(inactive)

        response = client.get("/api/v1/users", headers=auth_headers(identity, inactive))

        assert response.status_code == 403


class TestAccessRequestRoutes:
    """Tests for /access-requests."""

    def test_list_and_approve(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
        pending_profile: Profile,
    ) -> None:
        """Test an admin sees a pending request and approves it."""
        store.seed(admin, pending_profile)
        headers = auth_headers(identity, admin)

        listed = client.get("/api/v1/access-requests", headers=headers).json()
        response = client.post(
            f"/api/v1/access-requests/{pending_profile.id}/approve",
            json={"role": "viewer"},
            headers=headers,
        )

        assert [r["id"] for r in listed["requests"]] == [str(pending_profile.id)]
        assert response.status_code == 200
        assert response.json()["is_active"] is True
        assert store.tables.profiles[pending_profile.id].request_status is RequestStatus.APPROVED

    def test_approve_internal_without_team_conflicts(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
        pending_profile: Profile,
    ) -> None:
        """Test lifecycle conflicts map to 409."""
        store.seed(admin, pending_profile)

        response = client.post(
            f"/api/v1/access-requests/{pending_profile.id}/approve",
            json={"role": "internal"},
            headers=auth_headers(identity, admin),
        )

        assert response.status_code == 409

    def test_deny_and_filter(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
        pending_profile: Profile,
    ) -> None:
        """Test a denied request moves to the denied filter."""
        store.seed(admin, pending_profile)
        headers = auth_headers(identity, admin)

        client.post(f"/api/v1/access-requests/{pending_profile.id}/deny", headers=headers)
        pending = client.get("/api/v1/access-requests", headers=headers).json()
        denied = client.get("/api/v1/access-requests?status=denied", headers=headers).json()

        assert pending["total"] == 0
        assert denied["total"] == 1


class TestInviteRoutes:
    """Tests for /invites."""

    def test_create_then_duplicate(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
    ) -> None:
        """Test a second invitation for the same email conflicts."""
        store.seed(admin)
        headers = auth_headers(identity, admin)
        body = {"email": "guest@example.com", "role": "viewer"}

        first = client.post("/api/v1/invites", json=body, headers=headers)
        second = client.post("/api/v1/invites", json=body, headers=headers)

        assert first.status_code == 201
        assert first.json()["invitation"]["status"] == "pending"
        assert second.status_code == 409

    def test_list_status_follows_service_clock(
        self,
        app: FastAPI,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
        clock: FrozenClock,
    ) -> None:
        """Test listed statuses are computed with the same clock as the filter."""
        invitation = Invitation(
            id=uuid4(),
            org_id=ORG_ID,
            email="later@example.com",
            expires_at=NOW + timedelta(days=1),
            created_at=NOW,
        )
        store.seed(admin, invitation)
        app.dependency_overrides[get_invitation_service] = lambda: InvitationService(
            store, clock=clock
        )
        headers = auth_headers(identity, admin)

        pending = client.get("/api/v1/invites?status=pending", headers=headers).json()
        clock.advance(days=2)
        expired = client.get("/api/v1/invites?status=expired", headers=headers).json()

        assert pending["total"] == 1
        assert pending["invites"][0]["status"] == "pending"
        assert expired["total"] == 1
        assert expired["invites"][0]["status"] == "expired"
        assert store.tables.invitations[invitation.id].status is InvitationStatus.PENDING

    def test_existing_profile_conflict_names_profile(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        super_admin: Profile,
        pending_profile: Profile,
    ) -> None:
        """Test the conflict tells the admin which profile already exists."""
        store.seed(super_admin, pending_profile)

        response = client.post(
            "/api/v1/invites",
            json={"email": pending_profile.email, "role": "viewer"},
            headers=auth_headers(identity, super_admin),
        )

        assert response.status_code == 409
        assert str(pending_profile.id) in response.json()["detail"]

    def test_activate_existing(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        super_admin: Profile,
        pending_profile: Profile,
    ) -> None:
        """Test a super admin assigns an existing profile directly."""
        store.seed(super_admin, pending_profile)

        response = client.post(
            "/api/v1/invites",
            json={"email": pending_profile.email, "role": "viewer", "activate_existing": True},
            headers=auth_headers(identity, super_admin),
        )

        assert response.status_code == 201
        data = response.json()
        assert data["invitation"]["status"] == "accepted"
        assert data["activated_profile"]["is_active"] is True

    def test_resend_and_revoke(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
    ) -> None:
        """Test resend issues a new row and revoke closes it."""
        store.seed(admin)
        headers = auth_headers(identity, admin)
        created = client.post(
            "/api/v1/invites",
            json={"email": "guest@example.com", "role": "viewer"},
            headers=headers,
        ).json()["invitation"]

        resent = client.post(f"/api/v1/invites/{created['id']}/resend", headers=headers)
        new_id = resent.json()["invitation"]["id"]
        revoked = client.post(f"/api/v1/invites/{new_id}/revoke", headers=headers)
        again = client.post(f"/api/v1/invites/{new_id}/revoke", headers=headers)

        assert resent.status_code == 201
        assert new_id != created["id"]
        assert revoked.json()["invitation"]["status"] == "revoked"
        assert again.status_code == 409
        statuses = {i.status for i in store.tables.invitations.values()}
        assert statuses == {InvitationStatus.REVOKED}

    def test_unknown_invitation(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
        team: Team,
    ) -> None:
        """Test not-found errors map to 404."""
        store.seed(admin)

        response = client.post(
            f"/api/v1/invites/{team.id}/revoke", headers=auth_headers(identity, admin)
        )

        assert response.status_code == 404


class TestTeamRoutes:
    """Tests for /teams."""

    def test_create_update_delete(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
    ) -> None:
        """Test the team CRUD cycle."""
        store.seed(admin)
        headers = auth_headers(identity, admin)

        created = client.post("/api/v1/teams", json={"name": "Growth"}, headers=headers)
        team_id = created.json()["team"]["id"]
        updated = client.patch(
            f"/api/v1/teams/{team_id}",
            json={"allowed_routes": ["/revenue", "/traffic"]},
            headers=headers,
        )
        deleted = client.delete(f"/api/v1/teams/{team_id}", headers=headers)

        assert created.status_code == 201
        assert created.json()["team"]["allowed_routes"] == ["/"]
        assert updated.json()["team"]["allowed_routes"] == ["/revenue", "/traffic"]
        assert deleted.status_code == 204
        assert store.tables.teams == {}

    def test_invalid_routes_rejected(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
    ) -> None:
        """Test malformed route patterns fail validation."""
        store.seed(admin)

        response = client.post(
            "/api/v1/teams",
            json={"name": "Bad", "allowed_routes": ["revenue"]},
            headers=auth_headers(identity, admin),
        )

        assert response.status_code == 422

    def test_blank_name_rejected(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
    ) -> None:
        """Test a whitespace-only name fails validation and writes nothing."""
        store.seed(admin)

        response = client.post(
            "/api/v1/teams", json={"name": "   "}, headers=auth_headers(identity, admin)
        )

        assert response.status_code == 422
        assert store.tables.teams == {}

    def test_null_fields_rejected(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
        team: Team,
    ) -> None:
        """Test name and routes cannot be nulled, so members keep navigating."""
        member = make_profile(Role.INTERNAL, team_id=team.id)
        store.seed(admin, team, member)
        headers = auth_headers(identity, admin)

        null_routes = client.patch(
            f"/api/v1/teams/{team.id}", json={"allowed_routes": None}, headers=headers
        )
        null_name = client.patch(f"/api/v1/teams/{team.id}", json={"name": None}, headers=headers)
        decided = client.post(
            "/api/v1/navigation/decide",
            json={"path": "/"},
            headers=auth_headers(identity, member),
        )

        assert null_routes.status_code == 422
        assert null_name.status_code == 422
        assert store.tables.teams[team.id] == team
        assert decided.status_code == 200

    def test_members(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
        team: Team,
    ) -> None:
        """Test adding a member blocks deletion until they are removed."""
        member = make_profile(Role.INTERNAL)
        store.seed(admin, team, member)
        headers = auth_headers(identity, admin)

        added = client.post(
            f"/api/v1/teams/{team.id}/members",
            json={"profile_id": str(member.id)},
            headers=headers,
        )
        blocked = client.delete(f"/api/v1/teams/{team.id}", headers=headers)
        listed = client.get("/api/v1/teams", headers=headers).json()
        removed = client.delete(f"/api/v1/teams/{team.id}/members/{member.id}", headers=headers)

        assert added.json()["team_id"] == str(team.id)
        assert blocked.status_code == 409
        assert listed["teams"][0]["member_count"] == 1
        assert removed.json()["team_id"] is None


class TestUserRoutes:
    """Tests for /users."""

    def test_role_activation_and_team(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
        team: Team,
    ) -> None:
        """Test each user change is applied."""
        user = make_profile(Role.VIEWER, email="user@example.com")
        store.seed(admin, team, user)
        headers = auth_headers(identity, admin)

        role = client.patch(
            f"/api/v1/users/{user.id}/role", json={"role": "internal"}, headers=headers
        )
        team_change = client.patch(
            f"/api/v1/users/{user.id}/team", json={"team_id": str(team.id)}, headers=headers
        )
        inactive = client.patch(
            f"/api/v1/users/{user.id}/active", json={"is_active": False}, headers=headers
        )
        listed = client.get("/api/v1/users", headers=headers).json()

        assert role.json()["role"] == "internal"
        assert team_change.json()["team_id"] == str(team.id)
        assert inactive.json()["is_active"] is False
        assert listed["total"] == 2

    def test_admin_cannot_promote_to_super_admin(
        self,
        client: TestClient,
        store: InMemoryMembershipStore,
        identity: StaticIdentityProvider,
        admin: Profile,
        viewer: Profile,
    ) -> None:
        """Test permission errors from services map to 403."""
        store.seed(admin, viewer)

        response = client.patch(
            f"/api/v1/users/{viewer.id}/role",
            json={"role": "super_admin"},
            headers=auth_headers(identity, admin),
        )

        assert response.status_code == 403
