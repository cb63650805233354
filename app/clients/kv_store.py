"""
Key-value store backends with per-key expiry.

``UpstashRedisStore`` talks to an Upstash (Redis-compatible) database over its
REST API. Values are JSON objects serialized to strings, matching what the
Upstash SDKs write.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional, Protocol

import httpx

logger = logging.getLogger(__name__)


class KeyValueStoreError(Exception):
    """Raised when the backing store rejects a command or cannot be reached."""


class KeyValueStore(Protocol):
    """Minimal async key-value interface used by the token store."""

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        ...

    async def set(self, key: str, value: Dict[str, Any], *, ttl_seconds: int) -> None:
        ...

    async def delete(self, key: str) -> None:
        ...

    async def get_and_delete(self, key: str) -> Optional[Dict[str, Any]]:
        ...


def _decode(key: str, raw: Any) -> Optional[Dict[str, Any]]:
    if raw is None:
        return None
    if isinstance(raw, dict):
        return raw
    try:
        value = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning("Discarding non-JSON value stored under %s", key)
        return None
    if not isinstance(value, dict):
        logger.warning("Discarding non-object value stored under %s", key)
        return None
    return value


class UpstashRedisStore:
    """Redis commands issued through the Upstash REST endpoint."""

    def __init__(
        self,
        *,
        url: str,
        token: str,
        timeout_seconds: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        if not url or not token:
            raise ValueError("Upstash REST URL and token must both be provided.")
        self._url = url.rstrip("/")
        self._token = token
        self._timeout = timeout_seconds
        self._transport = transport

    async def _command(self, *args: Any) -> Any:
        headers = {"Authorization": f"Bearer {self._token}"}
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout, transport=self._transport
            ) as client:
                response = await client.post(self._url, json=list(args), headers=headers)
        except httpx.HTTPError as exc:
            raise KeyValueStoreError(f"{args[0]} failed: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}
        if not response.is_success or "error" in body:
            detail = body.get("error")
            raise KeyValueStoreError(
                f"{args[0]} failed with status {response.status_code}: {detail or response.text}"
            )
        return body.get("result")

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        return _decode(key, await self._command("GET", key))

    async def set(self, key: str, value: Dict[str, Any], *, ttl_seconds: int) -> None:
        await self._command("SET", key, json.dumps(value), "EX", ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._command("DEL", key)

    async def get_and_delete(self, key: str) -> Optional[Dict[str, Any]]:
        # GETDEL is atomic, so a key can only ever be handed out once.
        return _decode(key, await self._command("GETDEL", key))


__all__ = ["KeyValueStore", "KeyValueStoreError", "UpstashRedisStore"]
