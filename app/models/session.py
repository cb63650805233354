"""
Domain models for session, token and PKCE records held in the key-value store.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


class UserTokens(BaseModel):
    """OAuth tokens for one SoundCloud user. Replaced wholesale on refresh."""

    user_id: str
    access_token: str
    refresh_token: str
    expires_at: datetime = Field(..., description="Instant the access token stops working.")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        moment = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return moment >= expires_at


class UserSession(BaseModel):
    """Browser session bound to a SoundCloud user."""

    id: str = Field(..., description="Random session identifier carried in the cookie.")
    user_id: str
    expires_at: datetime


class PKCEEntry(BaseModel):
    """Verifier parked under the OAuth ``state`` until the callback consumes it."""

    code_verifier: str
    user_session_id: str


__all__ = ["PKCEEntry", "UserSession", "UserTokens"]
