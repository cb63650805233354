"""
SoundCloud sign-in orchestration.

Ties the PKCE helpers, the SoundCloud client and the token store together:
start the flow, complete it from the callback, and hand out access tokens that
are refreshed once their stored expiry has passed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from app.clients.soundcloud import SoundCloudAPIError, SoundCloudOAuthClient
from app.models.session import PKCEEntry, UserSession, UserTokens
from app.schemas.soundcloud import SoundCloudUser
from app.services.token_store import TokenStore
from app.utils.pkce import create_pkce_pair, generate_state

logger = logging.getLogger(__name__)


class InvalidOAuthStateError(Exception):
    """Raised when a callback presents an unknown, expired or reused state."""


@dataclass(frozen=True)
class AuthorizationResult:
    session_id: str
    user: SoundCloudUser
    tokens: UserTokens


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SoundCloudAuthService:
    """Runs the OAuth 2.0 authorization code + PKCE flow against SoundCloud."""

    def __init__(
        self,
        *,
        oauth_client: SoundCloudOAuthClient,
        token_store: TokenStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._oauth = oauth_client
        self._store = token_store
        self._clock = clock

    async def start_authorization(self, session_id: str) -> str:
        """Park a fresh verifier under a new state and return the consent URL."""
        pair = create_pkce_pair()
        state = generate_state()
        await self._store.store_pkce_data(
            state,
            PKCEEntry(code_verifier=pair.verifier, user_session_id=session_id),
        )
        return self._oauth.build_authorization_url(state=state, code_challenge=pair.challenge)

    async def complete_authorization(self, *, code: str, state: str) -> AuthorizationResult:
        """
        Finish the flow started by :meth:`start_authorization`.

        The PKCE entry is consumed before anything else, so a state can never be
        replayed even when the exchange itself fails. Raises
        :class:`InvalidOAuthStateError` for unknown states and
        :class:`SoundCloudAPIError` for upstream failures.
        """
        entry = await self._store.consume_pkce_data(state)
        if entry is None:
            raise InvalidOAuthStateError("Invalid or expired state parameter")

        issued_at = self._clock()
        token_response = await self._oauth.exchange_authorization_code(code, entry.code_verifier)
        user = await self._oauth.get_user_profile(token_response.access_token)
        user_id = str(user.id)

        tokens = await self._store.store_user_tokens(
            user_id,
            access_token=token_response.access_token,
            refresh_token=token_response.refresh_token or "",
            expires_at=issued_at + timedelta(seconds=token_response.expires_in),
        )
        await self._store.store_user_session(entry.user_session_id, user_id)
        logger.info("SoundCloud user %s signed in", user_id)
        return AuthorizationResult(session_id=entry.user_session_id, user=user, tokens=tokens)

    async def resolve_session(self, session_id: Optional[str]) -> Optional[UserSession]:
        """Return the stored session, or ``None`` when the caller is anonymous."""
        if not session_id:
            return None
        return await self._store.get_user_session(session_id)

    async def get_valid_access_token(self, user_id: str) -> Optional[str]:
        """Return a usable access token for ``user_id``, refreshing if expired."""
        tokens = await self._store.get_user_tokens(user_id)
        if tokens is None:
            return None

        now = self._clock()
        if not tokens.is_expired(now):
            return tokens.access_token

        try:
            refreshed = await self._oauth.refresh_token(tokens.refresh_token)
        except SoundCloudAPIError:
            logger.exception("Token refresh failed for user %s", user_id)
            return None

        await self._store.store_user_tokens(
            user_id,
            access_token=refreshed.access_token,
            refresh_token=refreshed.refresh_token or tokens.refresh_token,
            expires_at=now + timedelta(seconds=refreshed.expires_in),
        )
        logger.info("Refreshed SoundCloud token for user %s", user_id)
        return refreshed.access_token

    async def logout(self, session_id: str) -> None:
        await self._store.delete_user_session(session_id)


__all__ = ["AuthorizationResult", "InvalidOAuthStateError", "SoundCloudAuthService"]
