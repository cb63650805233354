"""Service layer exports."""

from .soundcloud_auth import AuthorizationResult, InvalidOAuthStateError, SoundCloudAuthService
from .token_cipher import TokenCipherService
from .token_store import TokenStore

__all__ = [
    "AuthorizationResult",
    "InvalidOAuthStateError",
    "SoundCloudAuthService",
    "TokenCipherService",
    "TokenStore",
]
