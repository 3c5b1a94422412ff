"""Postgres repositories for profiles, teams and invitations."""

from routegate.adapters.rbac.invitations_repository import InvitationsRepository
from routegate.adapters.rbac.profiles_repository import ProfilesRepository
from routegate.adapters.rbac.teams_repository import TeamsRepository

__all__ = ["InvitationsRepository", "ProfilesRepository", "TeamsRepository"]
