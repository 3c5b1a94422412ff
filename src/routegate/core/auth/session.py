"""Sign-in, sign-out and auth snapshots.

Sign-in is the refresh point where a principal first gets a profile:

1. A principal with a profile keeps it.
2. A principal whose email has a live pending invitation gets an active
   profile carrying the invitation's role, team and organization, and the
   invitation is accepted, in one transaction.
3. Anyone else gets an inactive profile with a pending access request.
"""

from __future__ import annotations

import structlog

from routegate.core.audit.recorder import ActivityRecorder
from routegate.core.audit.types import LoginEventType
from routegate.core.auth.types import AuthSnapshot, Principal, Profile, RequestStatus
from routegate.core.clock import Clock, utc_now
from routegate.core.interfaces import MembershipStore
from routegate.core.membership.types import (
    Invitation,
    InvitationStatus,
    InvitationUpdate,
    ProfileCreate,
    normalize_email,
)
from routegate.core.rbac.permission_service import effective_routes
from routegate.core.rbac.types import Team

logger = structlog.get_logger()


class SessionService:
    """Turns identity-provider principals into auth snapshots."""

    def __init__(
        self,
        store: MembershipStore,
        recorder: ActivityRecorder | None = None,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize the service.

        Args:
            store: Membership store.
            recorder: Where login events go; None disables login history.
            clock: Source of the current time.
        """
        self._store = store
        self._recorder = recorder
        self._clock = clock

    async def sign_in(
        self,
        principal: Principal,
        *,
        session_id: str | None = None,
        provider: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthSnapshot:
        """Make sure the principal has a profile and return its snapshot."""
        profile = await self._store.profiles.get_profile(principal.id)
        if profile is None:
            profile = await self._provision(principal)

        if self._recorder is not None:
            self._recorder.record_login(
                LoginEventType.LOGIN_SUCCESS,
                user_id=principal.id,
                org_id=profile.org_id,
                email=principal.email,
                session_id=session_id,
                provider=provider,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        logger.info(
            "signed_in",
            user_id=str(principal.id),
            is_active=profile.is_active,
            role=profile.role.value if profile.role else None,
        )
        return await self._snapshot(principal, profile)

    async def sign_out(
        self,
        principal: Principal,
        *,
        session_id: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> AuthSnapshot:
        """Record the sign-out; the identity provider ends the session itself."""
        if self._recorder is not None:
            profile = await self._store.profiles.get_profile(principal.id)
            self._recorder.record_login(
                LoginEventType.LOGOUT,
                user_id=principal.id,
                org_id=profile.org_id if profile else None,
                email=principal.email,
                session_id=session_id,
                ip_address=ip_address,
                user_agent=user_agent,
            )
        logger.info("signed_out", user_id=str(principal.id))
        return AuthSnapshot.anonymous()

    def record_failed_sign_in(
        self,
        *,
        email: str | None = None,
        provider: str | None = None,
        ip_address: str | None = None,
        user_agent: str | None = None,
    ) -> None:
        """Record a sign-in the identity provider rejected."""
        logger.warning("sign_in_failed", email=email, provider=provider)
        if self._recorder is not None:
            self._recorder.record_login(
                LoginEventType.LOGIN_FAILED,
                email=email,
                provider=provider,
                ip_address=ip_address,
                user_agent=user_agent,
            )

    async def load_snapshot(self, principal: Principal | None) -> AuthSnapshot:
        """Fetch profile and team for a principal and compute its route scope."""
        if principal is None:
            return AuthSnapshot.anonymous()
        profile = await self._store.profiles.get_profile(principal.id)
        return await self._snapshot(principal, profile)

    async def _snapshot(self, principal: Principal, profile: Profile | None) -> AuthSnapshot:
        team: Team | None = None
        if profile is not None and profile.team_id is not None:
            team = await self._store.teams.get_team(profile.team_id)
            if team is not None and team.org_id != profile.org_id:
                team = None
        return AuthSnapshot(
            principal=principal,
            profile=profile,
            team=team,
            effective_routes=tuple(effective_routes(profile, team)),
        )

    async def _provision(self, principal: Principal) -> Profile:
        email = normalize_email(principal.email)
        now = self._clock()
        invitation = await self._live_invitation(email)

        if invitation is None:
            profile = await self._store.profiles.create_profile(
                ProfileCreate(
                    id=principal.id,
                    email=email,
                    is_active=False,
                    request_status=RequestStatus.PENDING,
                    request_submitted_at=now,
                )
            )
            logger.info("access_request_submitted", user_id=str(principal.id), email=email)
            return profile

        async with self._store.transaction():
            profile = await self._store.profiles.create_profile(
                ProfileCreate(
                    id=principal.id,
                    email=email,
                    role=invitation.role,
                    is_active=True,
                    org_id=invitation.org_id,
                    team_id=invitation.team_id,
                )
            )
            await self._store.invitations.update_invitation(
                invitation.id,
                InvitationUpdate(status=InvitationStatus.ACCEPTED, accepted_at=now),
            )
        logger.info(
            "invitation_accepted",
            invitation_id=str(invitation.id),
            user_id=str(principal.id),
            role=invitation.role.value if invitation.role else None,
        )
        return profile

    async def _live_invitation(self, email: str) -> Invitation | None:
        now = self._clock()
        invitations = await self._store.invitations.list_invitations(
            email=email, status=InvitationStatus.PENDING
        )
        return next((inv for inv in invitations if not inv.is_expired(now)), None)
