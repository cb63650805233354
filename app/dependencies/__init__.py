"""Expose dependency helpers for FastAPI routers."""

from .clients import (
    get_kv_store,
    get_soundcloud_auth_service,
    get_soundcloud_client,
    get_token_cipher_service,
    get_token_store,
)
from .config import get_app_settings, get_session_id

__all__ = [
    "get_app_settings",
    "get_kv_store",
    "get_session_id",
    "get_soundcloud_auth_service",
    "get_soundcloud_client",
    "get_token_cipher_service",
    "get_token_store",
]
