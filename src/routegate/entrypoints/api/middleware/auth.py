"""Request identity: bearer token to principal to auth snapshot."""

from __future__ import annotations

from collections.abc import Callable
from typing import Annotated, Any

import structlog
from fastapi import Depends, Header, HTTPException, Request, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from routegate.core.auth.session import SessionService
from routegate.core.auth.types import AuthSnapshot, Principal, Profile
from routegate.core.interfaces import IdentityProvider
from routegate.core.rbac import Role, has_min_role
from routegate.entrypoints.api.deps import get_identity_provider, get_session_service

logger = structlog.get_logger()

bearer_scheme = HTTPBearer(auto_error=False)

SESSION_HEADER = "X-Session-Id"


def get_client_ip(request: Request) -> str | None:
    """Extract client IP from request.

    Args:
        request: FastAPI request object.

    Returns:
        Client IP address or None.
    """
    # Proxies put the original client first
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    if request.client:
        return request.client.host
    return None


async def get_principal(
    identity: Annotated[IdentityProvider, Depends(get_identity_provider)],
    credentials: HTTPAuthorizationCredentials | None = Security(bearer_scheme),  # noqa: B008
) -> Principal | None:
    """Resolve the bearer token, if any, to a principal.

    A missing or rejected token yields None; an unreachable provider raises
    IdentityProviderError.
    """
    if not credentials:
        return None
    return await identity.get_principal(credentials.credentials)


OptionalPrincipalDep = Annotated[Principal | None, Depends(get_principal)]
SessionServiceDep = Annotated[SessionService, Depends(get_session_service)]


async def require_principal(principal: OptionalPrincipalDep) -> Principal:
    """Require an authenticated principal."""
    if principal is None:
        raise HTTPException(
            status_code=401,
            detail="Authentication required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return principal


PrincipalDep = Annotated[Principal, Depends(require_principal)]


async def get_auth_snapshot(
    principal: OptionalPrincipalDep,
    sessions: SessionServiceDep,
) -> AuthSnapshot:
    """Load the caller's snapshot; anonymous when there is no principal."""
    return await sessions.load_snapshot(principal)


SnapshotDep = Annotated[AuthSnapshot, Depends(get_auth_snapshot)]


async def get_actor(principal: PrincipalDep, snapshot: SnapshotDep) -> Profile | None:
    """Get the acting profile; services decide whether it may act."""
    return snapshot.profile


ActorDep = Annotated[Profile | None, Depends(get_actor)]


def require_role(min_role: Role) -> Callable[..., Any]:
    """Dependency to require an active profile of a minimum role.

    Usage:
        @router.get("/")
        async def list_items(
            actor: Annotated[Profile, Depends(require_role(Role.ADMIN))],
        ):
            ...

    Args:
        min_role: Minimum required role.

    Returns:
        Dependency function that validates the role.
    """

    async def role_checker(principal: PrincipalDep, snapshot: SnapshotDep) -> Profile:
        profile = snapshot.profile
        if profile is None or not profile.is_active or not has_min_role(profile, min_role):
            logger.info(
                "role_check_failed",
                user_id=str(principal.id),
                required=min_role.value,
            )
            raise HTTPException(
                status_code=403,
                detail=f"Role '{min_role.value}' or higher required",
            )
        return profile

    return role_checker


RequireAdmin = Annotated[Profile, Depends(require_role(Role.ADMIN))]


def get_session_id(
    x_session_id: Annotated[str | None, Header(alias=SESSION_HEADER)] = None,
) -> str | None:
    """Browsing-session id the client generated and keeps for the session."""
    return x_session_id
