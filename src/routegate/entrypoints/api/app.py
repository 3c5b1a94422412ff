"""FastAPI application definition."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from routegate import __version__
from routegate.config import Settings
from routegate.entrypoints.api.deps import lifespan
from routegate.entrypoints.api.deps import settings as default_settings
from routegate.entrypoints.api.errors import register_exception_handlers
from routegate.entrypoints.api.routes import api_router


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to start with; defaults to the environment.
    """
    config = settings or default_settings
    app = FastAPI(
        title="routegate",
        description="Role- and team-scoped route access for analytics dashboards",
        version=__version__,
        lifespan=lifespan,
        redirect_slashes=False,  # Redirects drop the Authorization header
    )
    app.state.settings = config

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api/v1")

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
