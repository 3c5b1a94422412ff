"""Dependency injection and application lifespan management."""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from contextlib import AbstractAsyncContextManager, asynccontextmanager
from typing import TYPE_CHECKING, Annotated

import structlog
from fastapi import Depends, Request

from routegate.adapters.audit import PostgresActivityRepository
from routegate.adapters.db import AppDatabase, InMemoryActivityRepository, InMemoryMembershipStore
from routegate.adapters.identity import (
    HttpIdentityProvider,
    IdentityProviderConfig,
    StaticIdentityProvider,
)
from routegate.config import Settings
from routegate.core.audit.recorder import ActivityRecorder
from routegate.core.audit.service import AuditLogService
from routegate.core.auth.session import SessionService
from routegate.core.interfaces import ActivityRepository, IdentityProvider, MembershipStore
from routegate.core.membership.access_requests import AccessRequestService
from routegate.core.membership.invitations import InvitationService
from routegate.core.membership.teams import TeamService
from routegate.core.membership.users import UserAdminService
from routegate.logging_config import configure_logging

if TYPE_CHECKING:
    from fastapi import FastAPI

logger = structlog.get_logger()

StoreProvider = Callable[[], AbstractAsyncContextManager[MembershipStore]]

settings = Settings()


def _memory_store_provider(store: InMemoryMembershipStore) -> StoreProvider:
    @asynccontextmanager
    async def provide() -> AsyncIterator[MembershipStore]:
        yield store

    return provide


def _identity_provider(config: Settings) -> IdentityProvider:
    if config.identity_url:
        return HttpIdentityProvider(
            IdentityProviderConfig(
                base_url=config.identity_url,
                api_key=config.identity_api_key,
                timeout_seconds=config.identity_timeout_seconds,
            )
        )
    logger.warning("identity_provider_not_configured", fallback="static")
    return StaticIdentityProvider()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan - setup and teardown.

    This context manager handles:
    - Logging configuration
    - Store setup (Postgres pool or in-memory)
    - Identity provider and activity recorder
    """
    config: Settings = getattr(app.state, "settings", settings)
    configure_logging(config.log_level, json=config.log_json)

    app_db: AppDatabase | None = None
    if config.uses_memory_store:
        store = InMemoryMembershipStore()
        app.state.memory_store = store
        app.state.store_provider = _memory_store_provider(store)
        activity_repository: ActivityRepository = InMemoryActivityRepository()
    else:
        app_db = AppDatabase(config.database_url)
        await app_db.connect()
        if config.apply_schema:
            await app_db.apply_schema()
        assert app_db.pool is not None
        app.state.app_db = app_db
        app.state.store_provider = app_db.membership_store
        activity_repository = PostgresActivityRepository(app_db.pool)

    app.state.settings = config
    app.state.activity_repository = activity_repository
    app.state.recorder = ActivityRecorder(activity_repository)
    app.state.identity_provider = _identity_provider(config)
    logger.info("routegate_started", store=config.store)

    yield

    # Let in-flight audit writes finish before the pool goes away.
    await app.state.recorder.drain()
    if app_db is not None:
        await app_db.close()
    logger.info("routegate_stopped")


def get_settings(request: Request) -> Settings:
    """Get the settings the application was started with."""
    config: Settings = request.app.state.settings
    return config


async def get_store(request: Request) -> AsyncIterator[MembershipStore]:
    """Yield a membership store for the duration of the request."""
    provider: StoreProvider = request.app.state.store_provider
    async with provider() as store:
        yield store


def get_identity_provider(request: Request) -> IdentityProvider:
    """Get the identity provider from app state."""
    identity: IdentityProvider = request.app.state.identity_provider
    return identity


def get_recorder(request: Request) -> ActivityRecorder:
    """Get the activity recorder from app state."""
    recorder: ActivityRecorder = request.app.state.recorder
    return recorder


def get_activity_repository(request: Request) -> ActivityRepository:
    """Get the activity repository from app state."""
    repository: ActivityRepository = request.app.state.activity_repository
    return repository


StoreDep = Annotated[MembershipStore, Depends(get_store)]
RecorderDep = Annotated[ActivityRecorder, Depends(get_recorder)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_session_service(store: StoreDep, recorder: RecorderDep) -> SessionService:
    """Build the session service for this request."""
    return SessionService(store, recorder)


def get_access_request_service(store: StoreDep) -> AccessRequestService:
    """Build the access request service for this request."""
    return AccessRequestService(store)


def get_invitation_service(store: StoreDep, config: SettingsDep) -> InvitationService:
    """Build the invitation service for this request."""
    return InvitationService(store, expiry_days=config.invite_expiry_days)


def get_team_service(store: StoreDep) -> TeamService:
    """Build the team service for this request."""
    return TeamService(store)


def get_user_admin_service(store: StoreDep) -> UserAdminService:
    """Build the user admin service for this request."""
    return UserAdminService(store)


def get_audit_log_service(
    repository: Annotated[ActivityRepository, Depends(get_activity_repository)],
) -> AuditLogService:
    """Build the audit log service."""
    return AuditLogService(repository)
