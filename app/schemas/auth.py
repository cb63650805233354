"""Schemas related to OAuth flows."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .soundcloud import SoundCloudUser


class ExchangeTokenPayload(BaseModel):
    """Payload sent by the front-end to complete the OAuth exchange."""

    code: Optional[str] = Field(None, description="Authorization code returned by SoundCloud.")
    state: Optional[str] = Field(None, description="State issued when the sign-in started.")


class ExchangeTokenResponse(BaseModel):
    success: bool = True
    user: SoundCloudUser


class AuthorizationUrlResponse(BaseModel):
    authorization_url: str


class LogoutResponse(BaseModel):
    success: bool = True


__all__ = [
    "AuthorizationUrlResponse",
    "ExchangeTokenPayload",
    "ExchangeTokenResponse",
    "LogoutResponse",
]
