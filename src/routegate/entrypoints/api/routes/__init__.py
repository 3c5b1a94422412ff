"""API route modules."""

from fastapi import APIRouter

from routegate.entrypoints.api.routes.access_requests import router as access_requests_router
from routegate.entrypoints.api.routes.activity import router as activity_router
from routegate.entrypoints.api.routes.invites import router as invites_router
from routegate.entrypoints.api.routes.navigation import router as navigation_router
from routegate.entrypoints.api.routes.session import router as session_router
from routegate.entrypoints.api.routes.teams import router as teams_router
from routegate.entrypoints.api.routes.users import router as users_router

# Create main API router
api_router = APIRouter()

api_router.include_router(session_router)
api_router.include_router(navigation_router)
api_router.include_router(access_requests_router)
api_router.include_router(invites_router)
api_router.include_router(teams_router)
api_router.include_router(users_router)
api_router.include_router(activity_router)

__all__ = ["api_router"]
