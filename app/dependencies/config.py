"""
FastAPI dependency utilities for injecting configuration and request context.
"""

from typing import Optional

from fastapi import Depends, Request

from app.core.config import AppSettings, get_settings


def get_app_settings() -> AppSettings:
    """FastAPI dependency returning application settings."""
    return get_settings()


def get_session_id(
    request: Request, settings: AppSettings = Depends(get_app_settings)
) -> Optional[str]:
    """Read the session identifier from the session cookie, if present."""
    return request.cookies.get(settings.session.cookie_name) or None


__all__ = ["get_app_settings", "get_session_id"]
