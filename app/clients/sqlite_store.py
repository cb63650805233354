"""SQLite-backed substitute for the Redis store during local development."""

from __future__ import annotations

import json
import sqlite3
import time
from pathlib import Path
from typing import Any, Callable, Dict, Optional

from starlette.concurrency import run_in_threadpool

from app.clients.kv_store import KeyValueStoreError


class SQLiteKeyValueStore:
    """Key-value store with per-key expiry kept in a single SQLite table.

    Expired rows are never returned and are purged lazily on writes.
    """

    def __init__(self, db_path: str, *, clock: Callable[[], float] = time.time) -> None:
        self._db_path = Path(db_path)
        self._clock = clock
        if self._db_path.parent and not self._db_path.parent.exists():
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        return conn

    def _ensure_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv_entries (
                    key TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    expires_at REAL NOT NULL
                )
                """
            )

    def _get(self, key: str) -> Optional[Dict[str, Any]]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT data FROM kv_entries WHERE key = ? AND expires_at > ?",
                (key, self._clock()),
            ).fetchone()
        if not row:
            return None
        return json.loads(row["data"])

    def _set(self, key: str, value: Dict[str, Any], ttl_seconds: int) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        now = self._clock()
        with self._connect() as conn:
            conn.execute("DELETE FROM kv_entries WHERE expires_at <= ?", (now,))
            conn.execute(
                """
                INSERT INTO kv_entries (key, data, expires_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    data = excluded.data,
                    expires_at = excluded.expires_at
                """,
                (key, json.dumps(value), now + ttl_seconds),
            )

    def _delete(self, key: str) -> None:
        with self._connect() as conn:
            conn.execute("DELETE FROM kv_entries WHERE key = ?", (key,))

    def _get_and_delete(self, key: str) -> Optional[Dict[str, Any]]:
        # Single statement, so concurrent callers cannot both receive the row.
        with self._connect() as conn:
            rows = conn.execute(
                "DELETE FROM kv_entries WHERE key = ? RETURNING data, expires_at",
                (key,),
            ).fetchall()
        row = rows[0] if rows else None
        if not row or row["expires_at"] <= self._clock():
            return None
        return json.loads(row["data"])

    async def _run(self, func: Callable[..., Any], *args: Any) -> Any:
        try:
            return await run_in_threadpool(func, *args)
        except (sqlite3.Error, json.JSONDecodeError) as exc:
            raise KeyValueStoreError(f"SQLite store error: {exc}") from exc

    async def get(self, key: str) -> Optional[Dict[str, Any]]:
        return await self._run(self._get, key)

    async def set(self, key: str, value: Dict[str, Any], *, ttl_seconds: int) -> None:
        await self._run(self._set, key, value, ttl_seconds)

    async def delete(self, key: str) -> None:
        await self._run(self._delete, key)

    async def get_and_delete(self, key: str) -> Optional[Dict[str, Any]]:
        return await self._run(self._get_and_delete, key)


__all__ = ["SQLiteKeyValueStore"]
