"""Self-serve access requests.

A request is an inactive profile carrying a request status:

    pending -> approved | denied
    denied  -> approved

Denial is not terminal and never deletes the profile, so the pending page
can tell a denied user apart from one who never asked.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog

from routegate.core.auth.types import Profile, RequestStatus
from routegate.core.clock import Clock, utc_now
from routegate.core.exceptions import LifecycleConflictError, NotFoundError
from routegate.core.interfaces import MembershipStore
from routegate.core.membership.policy import (
    check_role_team,
    load_team,
    require_admin,
    require_assignable,
)
from routegate.core.membership.types import AccessRequestFilter, ProfileUpdate
from routegate.core.rbac.types import Role

logger = structlog.get_logger()

_FILTER_STATUSES = {
    AccessRequestFilter.PENDING: (RequestStatus.PENDING,),
    AccessRequestFilter.DENIED: (RequestStatus.DENIED,),
    AccessRequestFilter.ALL: tuple(RequestStatus),
}

_APPROVABLE = (RequestStatus.PENDING, RequestStatus.DENIED)


def _submitted_order(profile: Profile) -> tuple[int, float]:
    # Newest first, unsubmitted first.
    submitted = profile.request_submitted_at
    if submitted is None:
        return (0, 0.0)
    return (1, -submitted.timestamp())


class AccessRequestService:
    """Approve, deny and list self-serve access requests."""

    def __init__(self, store: MembershipStore, clock: Clock = utc_now) -> None:
        """Initialize the service.

        Args:
            store: Membership store.
            clock: Source of the current time.
        """
        self._store = store
        self._clock = clock

    async def list_requests(
        self,
        actor: Profile | None,
        status_filter: AccessRequestFilter = AccessRequestFilter.PENDING,
    ) -> list[Profile]:
        """List inactive profiles with a request status.

        Requests not yet tied to an organization are visible to every admin;
        requests tied to another organization are not.
        """
        org_id = require_admin(actor).org_id
        profiles = await self._store.profiles.list_profiles(
            is_active=False,
            request_statuses=_FILTER_STATUSES[status_filter],
        )
        visible = [p for p in profiles if p.org_id is None or p.org_id == org_id]
        return sorted(visible, key=_submitted_order)

    async def approve(
        self,
        actor: Profile | None,
        profile_id: UUID,
        role: Role,
        team_id: UUID | None = None,
    ) -> Profile:
        """Approve a pending or previously denied request.

        Activates the profile and assigns role, team and organization in a
        single update.

        Raises:
            PermissionDeniedError: If the actor may not approve or grant `role`.
            NotFoundError: If the request or team does not exist.
            LifecycleConflictError: If the request is not pending or denied, or
                the role/team pairing is invalid.
        """
        admin = require_admin(actor)
        org_id = admin.org_id
        require_assignable(admin, role)
        check_role_team(role, team_id, team_required=True)

        profile = await self._load_request(profile_id, org_id)
        if profile.is_active or profile.request_status not in _APPROVABLE:
            raise LifecycleConflictError(
                f"Access request for {profile.email} is not pending or denied"
            )
        if team_id is not None:
            await load_team(self._store.teams, team_id, org_id)

        now: datetime = self._clock()
        updated = await self._store.profiles.update_profile(
            profile_id,
            ProfileUpdate(
                is_active=True,
                role=role,
                team_id=team_id,
                org_id=org_id,
                request_status=RequestStatus.APPROVED,
                request_processed_by=admin.id,
                request_processed_at=now,
            ),
        )
        if updated is None:
            raise NotFoundError(f"Access request not found: {profile_id}")

        logger.info(
            "access_request_approved",
            profile_id=str(profile_id),
            role=role.value,
            team_id=str(team_id) if team_id else None,
            previous_status=profile.request_status.value if profile.request_status else None,
            processed_by=str(admin.id),
        )
        return updated

    async def deny(self, actor: Profile | None, profile_id: UUID) -> Profile:
        """Deny a pending request. The profile stays, inactive.

        Raises:
            PermissionDeniedError: If the actor may not deny requests.
            NotFoundError: If the request does not exist.
            LifecycleConflictError: If the request is not pending.
        """
        admin = require_admin(actor)
        org_id = admin.org_id

        profile = await self._load_request(profile_id, org_id)
        if profile.is_active or profile.request_status is not RequestStatus.PENDING:
            raise LifecycleConflictError(f"Access request for {profile.email} is not pending")

        updated = await self._store.profiles.update_profile(
            profile_id,
            ProfileUpdate(
                is_active=False,
                request_status=RequestStatus.DENIED,
                request_processed_by=admin.id,
                request_processed_at=self._clock(),
            ),
        )
        if updated is None:
            raise NotFoundError(f"Access request not found: {profile_id}")

        logger.info(
            "access_request_denied",
            profile_id=str(profile_id),
            processed_by=str(admin.id),
        )
        return updated

    async def _load_request(self, profile_id: UUID, org_id: UUID) -> Profile:
        profile = await self._store.profiles.get_profile(profile_id)
        if profile is None or (profile.org_id is not None and profile.org_id != org_id):
            raise NotFoundError(f"Access request not found: {profile_id}")
        return profile
