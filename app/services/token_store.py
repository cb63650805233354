"""
Session, token and PKCE persistence on top of a key-value store.

Three independent keyspaces, each with a fixed TTL enforced by the store:

* ``user:<id>:tokens``  30 days
* ``session:<id>``      7 days
* ``pkce:<state>``      10 minutes
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

from pydantic import ValidationError

from app.clients.kv_store import KeyValueStore
from app.models.session import PKCEEntry, UserSession, UserTokens
from app.services.token_cipher import TokenCipherService

logger = logging.getLogger(__name__)

USER_TOKENS_TTL = timedelta(days=30)
SESSION_TTL = timedelta(days=7)
PKCE_TTL = timedelta(minutes=10)


def user_tokens_key(user_id: str) -> str:
    return f"user:{user_id}:tokens"


def session_key(session_id: str) -> str:
    return f"session:{session_id}"


def pkce_key(state: str) -> str:
    return f"pkce:{state}"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenStore:
    """Reads and writes the records backing the sign-in flow.

    Access and refresh tokens are encrypted before they reach the store. Records
    that cannot be parsed or decrypted are reported as missing.
    """

    def __init__(
        self,
        kv_store: KeyValueStore,
        token_cipher: TokenCipherService,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._kv = kv_store
        self._cipher = token_cipher
        self._clock = clock

    async def store_user_tokens(
        self,
        user_id: str,
        *,
        access_token: str,
        refresh_token: str,
        expires_at: datetime,
    ) -> UserTokens:
        tokens = UserTokens(
            user_id=user_id,
            access_token=access_token,
            refresh_token=refresh_token,
            expires_at=expires_at,
        )
        record = {
            "user_id": user_id,
            "access_token_encrypted": self._cipher.encrypt(access_token),
            "refresh_token_encrypted": self._cipher.encrypt(refresh_token),
            "expires_at": expires_at.isoformat(),
            "updated_at": self._clock().isoformat(),
        }
        await self._kv.set(
            user_tokens_key(user_id),
            record,
            ttl_seconds=int(USER_TOKENS_TTL.total_seconds()),
        )
        return tokens

    async def get_user_tokens(self, user_id: str) -> Optional[UserTokens]:
        key = user_tokens_key(user_id)
        record = await self._kv.get(key)
        if not record:
            return None
        try:
            return UserTokens(
                user_id=record.get("user_id") or user_id,
                access_token=self._cipher.decrypt(record["access_token_encrypted"]),
                refresh_token=self._cipher.decrypt(record["refresh_token_encrypted"]),
                expires_at=record["expires_at"],
            )
        except (KeyError, ValueError, ValidationError) as exc:
            logger.warning("Ignoring unreadable token record %s: %s", key, exc)
            return None

    async def store_pkce_data(self, state: str, entry: PKCEEntry) -> None:
        await self._kv.set(
            pkce_key(state),
            entry.model_dump(),
            ttl_seconds=int(PKCE_TTL.total_seconds()),
        )

    async def consume_pkce_data(self, state: str) -> Optional[PKCEEntry]:
        """Return the PKCE entry for ``state`` and remove it; at most once."""
        record = await self._kv.get_and_delete(pkce_key(state))
        return self._parse(PKCEEntry, record, pkce_key(state))

    async def store_user_session(self, session_id: str, user_id: str) -> UserSession:
        session = UserSession(
            id=session_id,
            user_id=user_id,
            expires_at=self._clock() + SESSION_TTL,
        )
        await self._kv.set(
            session_key(session_id),
            session.model_dump(mode="json"),
            ttl_seconds=int(SESSION_TTL.total_seconds()),
        )
        return session

    async def get_user_session(self, session_id: str) -> Optional[UserSession]:
        record = await self._kv.get(session_key(session_id))
        return self._parse(UserSession, record, session_key(session_id))

    async def delete_user_session(self, session_id: str) -> None:
        await self._kv.delete(session_key(session_id))

    @staticmethod
    def _parse(model: Any, record: Optional[Dict[str, Any]], key: str) -> Any:
        if not record:
            return None
        try:
            return model.model_validate(record)
        except ValidationError as exc:
            logger.warning("Ignoring malformed record %s: %s", key, exc)
            return None


__all__ = [
    "PKCE_TTL",
    "SESSION_TTL",
    "TokenStore",
    "USER_TOKENS_TTL",
    "pkce_key",
    "session_key",
    "user_tokens_key",
]
