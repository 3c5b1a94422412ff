"""Admin-initiated invitations.

    pending -> accepted | revoked
    pending -> expired            (read time only, once expires_at passes)
    expired -> pending            (resend: old row revoked, new row created)

Rows are never re-opened in place; a resend always produces a new row so
the old one stays as history.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any
from uuid import UUID

import structlog

from routegate.core.auth.types import Profile, RequestStatus
from routegate.core.clock import Clock, utc_now
from routegate.core.exceptions import LifecycleConflictError, NotFoundError
from routegate.core.interfaces import MembershipStore
from routegate.core.membership.policy import (
    AdminActor,
    check_role_team,
    load_team,
    require_admin,
    require_assignable,
    require_manageable,
    require_super_admin,
)
from routegate.core.membership.types import (
    Invitation,
    InvitationCreate,
    InvitationStatus,
    InvitationUpdate,
    ProfileUpdate,
    normalize_email,
)
from routegate.core.rbac.types import Role

logger = structlog.get_logger()

DEFAULT_INVITE_EXPIRY_DAYS = 7

_OPEN_STATUSES = (InvitationStatus.PENDING, InvitationStatus.EXPIRED)


@dataclass(frozen=True)
class InvitationResult:
    """Outcome of creating an invitation.

    Attributes:
        invitation: The row that was written.
        activated_profile: The existing profile that was assigned directly,
            when the invitation skipped the pending state.
    """

    invitation: Invitation
    activated_profile: Profile | None = None


class InvitationService:
    """Create, resend, revoke and list invitations."""

    def __init__(
        self,
        store: MembershipStore,
        clock: Clock = utc_now,
        expiry_days: int = DEFAULT_INVITE_EXPIRY_DAYS,
    ) -> None:
        """Initialize the service.

        Args:
            store: Membership store.
            clock: Source of the current time.
            expiry_days: Lifetime of a new or resent invitation.
        """
        self._store = store
        self._clock = clock
        self._expiry = timedelta(days=expiry_days)

    async def list_invitations(
        self,
        actor: Profile | None,
        search: str | None = None,
        status: InvitationStatus | None = None,
    ) -> list[Invitation]:
        """List the organization's invitations, newest first.

        Args:
            actor: Acting profile.
            search: Case-insensitive substring of the email.
            status: Only invitations whose read-time status matches.

        Returns:
            Invitations carrying their read-time status, so lapsed pending
            rows come back as expired.
        """
        org_id = require_admin(actor).org_id
        invitations = await self._store.invitations.list_invitations(org_id=org_id)
        now = self._clock()
        if search:
            needle = search.strip().lower()
            invitations = [inv for inv in invitations if needle in inv.email.lower()]
        if status is not None:
            invitations = [inv for inv in invitations if inv.status_at(now) is status]
        return [inv.as_of(now) for inv in invitations]

    async def create_invitation(
        self,
        actor: Profile | None,
        email: str,
        role: Role,
        team_id: UUID | None = None,
        *,
        activate_existing: bool = False,
    ) -> InvitationResult:
        """Invite an email to the actor's organization.

        When a profile already exists for the email, the invitation can skip
        the pending state: the profile is assigned directly and an `accepted`
        row is written alongside it. That override needs `activate_existing`
        and a super admin.

        Raises:
            PermissionDeniedError: If the actor may not invite, grant `role`
                or override an existing profile.
            NotFoundError: If the team does not exist.
            LifecycleConflictError: If a pending invitation already exists, the
                role/team pairing is invalid, or a profile exists and
                `activate_existing` was not given.
        """
        admin = require_admin(actor)
        email = normalize_email(email)
        if "@" not in email:
            raise LifecycleConflictError(f"Not an email address: {email!r}")
        require_assignable(admin, role)
        check_role_team(role, team_id, team_required=False)
        if team_id is not None:
            await load_team(self._store.teams, team_id, admin.org_id)

        now = self._clock()
        stale = await self._pending_for(admin.org_id, email)
        if any(not inv.is_expired(now) for inv in stale):
            raise LifecycleConflictError(f"A pending invitation already exists for {email}")

        existing = await self._store.profiles.find_profile_by_email(email)
        if existing is not None:
            return await self._activate_existing(
                admin, existing, role, team_id, stale, activate_existing=activate_existing
            )

        async with self._store.transaction():
            await self._revoke_all(stale)
            invitation = await self._store.invitations.create_invitation(
                InvitationCreate(
                    org_id=admin.org_id,
                    email=email,
                    role=role,
                    team_id=team_id,
                    invited_by=admin.id,
                    expires_at=now + self._expiry,
                )
            )

        logger.info(
            "invitation_created",
            invitation_id=str(invitation.id),
            email=email,
            role=role.value,
            invited_by=str(admin.id),
        )
        return InvitationResult(invitation=invitation)

    async def resend_invitation(self, actor: Profile | None, invitation_id: UUID) -> Invitation:
        """Replace a pending or expired invitation with a fresh one.

        The old row is revoked, keeping its original `expires_at`.

        Raises:
            NotFoundError: If the invitation does not exist.
            LifecycleConflictError: If it was already accepted or revoked.
        """
        admin = require_admin(actor)
        old = await self._load(invitation_id, admin.org_id)
        now = self._clock()
        if old.status_at(now) not in _OPEN_STATUSES:
            raise LifecycleConflictError(
                f"Cannot resend an invitation that is {old.status.value}"
            )
        if old.role is not None:
            require_assignable(admin, old.role)
        role = old.role or Role.VIEWER

        async with self._store.transaction():
            await self._store.invitations.update_invitation(
                old.id, InvitationUpdate(status=InvitationStatus.REVOKED)
            )
            invitation = await self._store.invitations.create_invitation(
                InvitationCreate(
                    org_id=old.org_id,
                    email=old.email,
                    role=role,
                    team_id=old.team_id,
                    invited_by=admin.id,
                    expires_at=now + self._expiry,
                )
            )

        logger.info(
            "invitation_resent",
            invitation_id=str(invitation.id),
            replaces=str(old.id),
            email=old.email,
        )
        return invitation

    async def revoke_invitation(self, actor: Profile | None, invitation_id: UUID) -> Invitation:
        """Revoke a pending or expired invitation.

        Raises:
            NotFoundError: If the invitation does not exist.
            LifecycleConflictError: If it was already accepted or revoked.
        """
        admin = require_admin(actor)
        invitation = await self._load(invitation_id, admin.org_id)
        if invitation.status_at(self._clock()) not in _OPEN_STATUSES:
            raise LifecycleConflictError(
                f"Cannot revoke an invitation that is {invitation.status.value}"
            )
        updated = await self._store.invitations.update_invitation(
            invitation.id, InvitationUpdate(status=InvitationStatus.REVOKED)
        )
        if updated is None:
            raise NotFoundError(f"Invitation not found: {invitation_id}")
        logger.info(
            "invitation_revoked", invitation_id=str(invitation.id), revoked_by=str(admin.id)
        )
        return updated

    async def _activate_existing(
        self,
        admin: AdminActor,
        profile: Profile,
        role: Role,
        team_id: UUID | None,
        stale: list[Invitation],
        *,
        activate_existing: bool,
    ) -> InvitationResult:
        if profile.org_id is not None and profile.org_id != admin.org_id:
            raise LifecycleConflictError(
                f"Profile {profile.id} for {profile.email} belongs to another organization"
            )
        if not activate_existing:
            raise LifecycleConflictError(
                f"Profile {profile.id} already exists for {profile.email}; "
                "assign it directly with activate_existing"
            )
        require_super_admin(admin)
        require_manageable(admin, profile)

        now = self._clock()
        fields: dict[str, Any] = {
            "role": role,
            "team_id": team_id,
            "org_id": admin.org_id,
            "is_active": True,
        }
        if profile.request_status in (RequestStatus.PENDING, RequestStatus.DENIED):
            fields.update(
                request_status=RequestStatus.APPROVED,
                request_processed_by=admin.id,
                request_processed_at=now,
            )
        changes = ProfileUpdate(**fields)

        async with self._store.transaction():
            await self._revoke_all(stale)
            updated = await self._store.profiles.update_profile(profile.id, changes)
            if updated is None:
                raise NotFoundError(f"Profile not found: {profile.id}")
            invitation = await self._store.invitations.create_invitation(
                InvitationCreate(
                    org_id=admin.org_id,
                    email=profile.email.lower(),
                    role=role,
                    team_id=team_id,
                    status=InvitationStatus.ACCEPTED,
                    invited_by=admin.id,
                    expires_at=now,
                    accepted_at=now,
                )
            )

        logger.info(
            "invitation_applied_to_existing_profile",
            invitation_id=str(invitation.id),
            profile_id=str(profile.id),
            role=role.value,
            previous_role=profile.role.value if profile.role else None,
            invited_by=str(admin.id),
        )
        return InvitationResult(invitation=invitation, activated_profile=updated)

    async def _pending_for(self, org_id: UUID, email: str) -> list[Invitation]:
        return await self._store.invitations.list_invitations(
            org_id=org_id, email=email, status=InvitationStatus.PENDING
        )

    async def _revoke_all(self, invitations: list[Invitation]) -> None:
        for invitation in invitations:
            await self._store.invitations.update_invitation(
                invitation.id, InvitationUpdate(status=InvitationStatus.REVOKED)
            )

    async def _load(self, invitation_id: UUID, org_id: UUID) -> Invitation:
        invitation = await self._store.invitations.get_invitation(invitation_id)
        if invitation is None or invitation.org_id != org_id:
            raise NotFoundError(f"Invitation not found: {invitation_id}")
        return invitation
