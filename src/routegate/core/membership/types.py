"""Membership domain types: invitations and the write models for the store.

Write models are partial updates: only the fields a caller sets are sent
to the store, so one lifecycle transition is one combined update.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Annotated
from uuid import UUID

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    field_validator,
    model_validator,
)

from routegate.core.auth.types import RequestStatus
from routegate.core.rbac.types import Role, is_valid_route_pattern

TeamName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]


class InvitationStatus(str, Enum):
    """Invitation status.

    Only PENDING, ACCEPTED and REVOKED are ever written. EXPIRED is derived
    at read time from `expires_at`.
    """

    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    REVOKED = "revoked"


class AccessRequestFilter(str, Enum):
    """Which access requests an admin is looking at."""

    PENDING = "pending"
    DENIED = "denied"
    ALL = "all"


class Invitation(BaseModel):
    """An admin-initiated invitation to join an organization."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    org_id: UUID
    email: str
    role: Role | None = None
    team_id: UUID | None = None
    status: InvitationStatus = InvitationStatus.PENDING
    invited_by: UUID | None = None
    expires_at: datetime
    accepted_at: datetime | None = None
    created_at: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: object) -> Role | None:
        if value is None or isinstance(value, str):
            return Role.parse(value)
        return None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Check whether a pending invitation has run past its expiry."""
        if self.status is not InvitationStatus.PENDING:
            return False
        now = now or datetime.now(UTC)
        return self.expires_at < now

    def status_at(self, now: datetime | None = None) -> InvitationStatus:
        """Get the status a reader should see at a given moment."""
        if self.is_expired(now):
            return InvitationStatus.EXPIRED
        return self.status

    def as_of(self, now: datetime) -> Invitation:
        """Copy with the status a reader sees at `now`; expiry is never stored."""
        return self.model_copy(update={"status": self.status_at(now)})


class ProfileCreate(BaseModel):
    """New profile row."""

    id: UUID
    email: str
    display_name: str | None = None
    avatar_url: str | None = None
    role: Role | None = None
    is_active: bool = False
    org_id: UUID | None = None
    team_id: UUID | None = None
    request_status: RequestStatus | None = None
    request_submitted_at: datetime | None = None


class ProfileUpdate(BaseModel):
    """Partial profile update; unset fields are left alone."""

    role: Role | None = None
    is_active: bool | None = None
    org_id: UUID | None = None
    team_id: UUID | None = None
    display_name: str | None = None
    request_status: RequestStatus | None = None
    request_processed_by: UUID | None = None
    request_processed_at: datetime | None = None


class TeamCreate(BaseModel):
    """New team row."""

    org_id: UUID
    name: TeamName
    description: str | None = None
    allowed_routes: list[str] = Field(default_factory=lambda: ["/"])

    @field_validator("allowed_routes")
    @classmethod
    def _check_patterns(cls, value: list[str]) -> list[str]:
        return validate_route_patterns(value)


class TeamUpdate(BaseModel):
    """Partial team update; unset fields are left alone.

    `description` may be cleared with an explicit null. `name` and
    `allowed_routes` may not; a team with no routes is `[]`.
    """

    name: TeamName | None = None
    description: str | None = None
    allowed_routes: list[str] | None = None

    @field_validator("allowed_routes")
    @classmethod
    def _check_patterns(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return validate_route_patterns(value)

    @model_validator(mode="after")
    def _reject_null_required(self) -> TeamUpdate:
        cleared = sorted(
            name
            for name in ("name", "allowed_routes")
            if name in self.model_fields_set and getattr(self, name) is None
        )
        if cleared:
            raise ValueError(f"Fields cannot be null: {cleared}")
        return self


class InvitationCreate(BaseModel):
    """New invitation row."""

    org_id: UUID
    email: str
    role: Role
    team_id: UUID | None = None
    status: InvitationStatus = InvitationStatus.PENDING
    invited_by: UUID | None = None
    expires_at: datetime
    accepted_at: datetime | None = None


class InvitationUpdate(BaseModel):
    """Partial invitation update; unset fields are left alone."""

    status: InvitationStatus | None = None
    accepted_at: datetime | None = None


def validate_route_patterns(routes: list[str]) -> list[str]:
    """Check every pattern is `*` or an absolute path; return them unchanged."""
    invalid = [route for route in routes if not is_valid_route_pattern(route)]
    if invalid:
        raise ValueError(f"Route patterns must be '*' or start with '/': {invalid}")
    return routes


def normalize_email(email: str) -> str:
    """Normalize an email for comparison and storage."""
    return email.strip().lower()
