"""
Factory functions to provide shared clients and services as FastAPI dependencies.
"""

import logging
from functools import lru_cache

from app.clients import (
    KeyValueStore,
    SQLiteKeyValueStore,
    SoundCloudOAuthClient,
    UpstashRedisStore,
)
from app.core.config import get_settings
from app.services import SoundCloudAuthService, TokenCipherService, TokenStore

logger = logging.getLogger(__name__)


@lru_cache()
def _settings():
    """Internal helper to cache settings for client factories."""
    return get_settings()


@lru_cache()
def get_soundcloud_client() -> SoundCloudOAuthClient:
    """Create a singleton SoundCloud OAuth client."""
    return SoundCloudOAuthClient(_settings().soundcloud)


@lru_cache()
def get_kv_store() -> KeyValueStore:
    """Provide the Upstash store when configured, otherwise local SQLite."""
    store_settings = _settings().store
    if store_settings.kv_rest_api_url:
        return UpstashRedisStore(
            url=store_settings.kv_rest_api_url,
            token=store_settings.kv_rest_api_token or "",
            timeout_seconds=store_settings.http_timeout_seconds,
        )
    logger.info("KV_REST_API_URL not set; using SQLite store at %s", store_settings.sqlite_path)
    return SQLiteKeyValueStore(store_settings.sqlite_path)


@lru_cache()
def get_token_cipher_service() -> TokenCipherService:
    """Provide symmetric encryption helper for token storage."""
    settings = _settings()
    secret = settings.security.token_encryption_secret or settings.soundcloud.client_secret
    return TokenCipherService(
        secret=secret,
        previous_secrets=settings.security.previous_secrets,
    )


@lru_cache()
def get_token_store() -> TokenStore:
    """Provide the session/token/PKCE store."""
    return TokenStore(get_kv_store(), get_token_cipher_service())


def get_soundcloud_auth_service() -> SoundCloudAuthService:
    """Build the sign-in service using configured clients."""
    return SoundCloudAuthService(
        oauth_client=get_soundcloud_client(),
        token_store=get_token_store(),
    )


__all__ = [
    "get_kv_store",
    "get_soundcloud_auth_service",
    "get_soundcloud_client",
    "get_token_cipher_service",
    "get_token_store",
]
