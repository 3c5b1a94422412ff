"""Auth domain types."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from routegate.core.rbac.types import Role, Team


class Principal(BaseModel):
    """An authenticated identity, as supplied by the identity provider."""

    model_config = ConfigDict(frozen=True)

    id: UUID
    email: str


class RequestStatus(str, Enum):
    """Self-serve access request status."""

    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"


class Profile(BaseModel):
    """Authorization record for a principal within one organization."""

    model_config = ConfigDict(frozen=True)

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
    request_processed_by: UUID | None = None
    request_processed_at: datetime | None = None
    created_at: datetime | None = None

    @field_validator("role", mode="before")
    @classmethod
    def _parse_role(cls, value: object) -> Role | None:
        # Unknown roles are dropped rather than rejected: no role, no routes.
        if value is None or isinstance(value, str):
            return Role.parse(value)
        return None


class AuthSnapshot(BaseModel):
    """Read-only view of who is navigating, taken at a refresh point.

    The guard and the permission functions only ever read from this; it is
    rebuilt on sign-in and whenever an admin change is acknowledged.
    """

    model_config = ConfigDict(frozen=True)

    principal: Principal | None = None
    profile: Profile | None = None
    team: Team | None = None
    effective_routes: tuple[str, ...] = Field(default_factory=tuple)
    is_loading: bool = False

    @classmethod
    def loading(cls) -> AuthSnapshot:
        """Snapshot for the window before identity and profile have been fetched."""
        return cls(is_loading=True)

    @classmethod
    def anonymous(cls) -> AuthSnapshot:
        """Snapshot with no authenticated principal."""
        return cls()
