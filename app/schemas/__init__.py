"""Public schema exports."""

from .auth import (
    AuthorizationUrlResponse,
    ExchangeTokenPayload,
    ExchangeTokenResponse,
    LogoutResponse,
)
from .soundcloud import (
    SoundCloudTrack,
    SoundCloudTracksResponse,
    SoundCloudUser,
    TokenResponse,
)

__all__ = [
    "AuthorizationUrlResponse",
    "ExchangeTokenPayload",
    "ExchangeTokenResponse",
    "LogoutResponse",
    "SoundCloudTrack",
    "SoundCloudTracksResponse",
    "SoundCloudUser",
    "TokenResponse",
]
