"""
FastAPI application entrypoint for the SoundCloud sign-in service.
"""

from __future__ import annotations

from fastapi import FastAPI

from app.api.routes import router as api_router
from app.core.config import get_settings
from app.core.logging import configure_logging


def create_app() -> FastAPI:
    """Factory for the FastAPI application."""
    settings = get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="SoundCloud Sign-In",
        version="0.1.0",
        description="OAuth 2.0 PKCE sign-in with SoundCloud plus profile and liked tracks.",
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
    )
    app.include_router(api_router, prefix="/api")
    return app


app = create_app()

__all__ = ["app", "create_app"]
