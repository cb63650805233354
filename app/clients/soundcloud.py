"""
SoundCloud OAuth and API utilities.

These helpers build the PKCE authorization URL, talk to the token endpoint and
read the signed-in user's data. Every call is a single attempt: any non-2xx
answer is raised to the caller.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional
from urllib.parse import urlencode

import httpx
from pydantic import ValidationError

from app.core.config import SoundCloudSettings
from app.schemas.soundcloud import SoundCloudTracksResponse, SoundCloudUser, TokenResponse

logger = logging.getLogger(__name__)

_JSON_ACCEPT = "application/json; charset=utf-8"


class SoundCloudAPIError(Exception):
    """Raised when SoundCloud answers with a non-2xx status or cannot be reached."""

    def __init__(self, message: str, *, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class OAuthTokenExchangeError(SoundCloudAPIError):
    """Raised when the token endpoint rejects a code exchange or refresh."""


class SoundCloudOAuthClient:
    """Build SoundCloud authorization URLs, exchange codes and call the API."""

    def __init__(
        self,
        settings: SoundCloudSettings,
        *,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._transport = transport

    @property
    def authorize_url(self) -> str:
        return f"{self._settings.auth_base_url}/authorize"

    @property
    def token_url(self) -> str:
        return f"{self._settings.auth_base_url}/oauth/token"

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self._settings.http_timeout_seconds,
            transport=self._transport,
        )

    def build_authorization_url(self, *, state: str, code_challenge: str) -> str:
        """Construct the SoundCloud consent URL for the PKCE flow."""
        params = {
            "client_id": self._settings.client_id,
            "redirect_uri": str(self._settings.redirect_uri),
            "response_type": "code",
            "code_challenge": code_challenge,
            "code_challenge_method": "S256",
            "state": state,
        }
        return f"{self.authorize_url}?{urlencode(params)}"

    async def exchange_authorization_code(self, code: str, code_verifier: str) -> TokenResponse:
        """Exchange an authorization code (plus its PKCE verifier) for tokens."""
        payload = {
            "grant_type": "authorization_code",
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "redirect_uri": str(self._settings.redirect_uri),
            "code_verifier": code_verifier,
            "code": code,
        }
        tokens = await self._post_token(payload, action="exchange code for token")
        if not tokens.refresh_token:
            raise OAuthTokenExchangeError(
                "Incomplete token payload returned from SoundCloud."
            )
        return tokens

    async def refresh_token(self, refresh_token: str) -> TokenResponse:
        """Refresh the access token using a stored refresh token."""
        payload = {
            "grant_type": "refresh_token",
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "refresh_token": refresh_token,
        }
        return await self._post_token(payload, action="refresh token")

    async def get_user_profile(self, access_token: str) -> SoundCloudUser:
        """Fetch the profile of the user owning ``access_token``."""
        body = await self._get("/me", access_token, action="fetch user profile")
        try:
            return SoundCloudUser.model_validate(body)
        except ValidationError as exc:
            raise SoundCloudAPIError(f"Unexpected user profile payload: {exc}") from exc

    async def get_liked_tracks(
        self, access_token: str, *, limit: int = 20, offset: int = 0
    ) -> SoundCloudTracksResponse:
        """Fetch one page of the user's liked tracks."""
        params = {"limit": limit, "offset": offset, "linked_partitioning": "true"}
        body = await self._get(
            "/me/likes/tracks", access_token, params=params, action="fetch liked tracks"
        )
        if isinstance(body, list):
            # Older API revisions return a bare array when partitioning is ignored.
            body = {"collection": body, "next_href": None}
        try:
            return SoundCloudTracksResponse.model_validate(body)
        except ValidationError as exc:
            raise SoundCloudAPIError(f"Unexpected liked tracks payload: {exc}") from exc

    async def _post_token(self, payload: Dict[str, str], *, action: str) -> TokenResponse:
        headers = {
            "Accept": _JSON_ACCEPT,
            "Content-Type": "application/x-www-form-urlencoded",
        }
        try:
            async with self._client() as client:
                response = await client.post(self.token_url, data=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise OAuthTokenExchangeError(f"Failed to {action}: {exc}") from exc

        if not response.is_success:
            logger.warning("SoundCloud token endpoint returned %s", response.status_code)
            raise OAuthTokenExchangeError(
                f"Failed to {action}: {response.text}", status_code=response.status_code
            )

        try:
            return TokenResponse.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise OAuthTokenExchangeError(
                "Incomplete token payload returned from SoundCloud."
            ) from exc

    async def _get(
        self,
        path: str,
        access_token: str,
        *,
        action: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        headers = {
            "Accept": _JSON_ACCEPT,
            "Authorization": f"Bearer {access_token}",
        }
        url = f"{self._settings.api_base_url}{path}"
        try:
            async with self._client() as client:
                response = await client.get(url, params=params, headers=headers)
        except httpx.HTTPError as exc:
            raise SoundCloudAPIError(f"Failed to {action}: {exc}") from exc

        if not response.is_success:
            logger.warning("SoundCloud %s returned %s", path, response.status_code)
            raise SoundCloudAPIError(
                f"Failed to {action}: {response.text}", status_code=response.status_code
            )
        try:
            return response.json()
        except ValueError as exc:
            raise SoundCloudAPIError(f"Failed to {action}: response was not JSON") from exc


__all__ = [
    "OAuthTokenExchangeError",
    "SoundCloudAPIError",
    "SoundCloudOAuthClient",
]
