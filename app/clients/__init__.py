"""Expose constructed client wrappers."""

from .kv_store import KeyValueStore, KeyValueStoreError, UpstashRedisStore
from .soundcloud import OAuthTokenExchangeError, SoundCloudAPIError, SoundCloudOAuthClient
from .sqlite_store import SQLiteKeyValueStore

__all__ = [
    "KeyValueStore",
    "KeyValueStoreError",
    "OAuthTokenExchangeError",
    "SQLiteKeyValueStore",
    "SoundCloudAPIError",
    "SoundCloudOAuthClient",
    "UpstashRedisStore",
]
