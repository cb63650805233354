from __future__ import annotations

import sqlite3
from pathlib import Path

import pytest

from app.clients.kv_store import KeyValueStoreError
from app.clients.sqlite_store import SQLiteKeyValueStore


class Clock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture()
def clock() -> Clock:
    return Clock()


@pytest.fixture()
def store(tmp_path: Path, clock: Clock) -> SQLiteKeyValueStore:
    return SQLiteKeyValueStore(str(tmp_path / "nested" / "kv.sqlite3"), clock=clock)


@pytest.mark.anyio
async def test_set_get_and_overwrite(store: SQLiteKeyValueStore) -> None:
    await store.set("session:a", {"id": "a", "user_id": "1"}, ttl_seconds=60)
    assert await store.get("session:a") == {"id": "a", "user_id": "1"}

    await store.set("session:a", {"id": "a", "user_id": "2"}, ttl_seconds=60)
    assert await store.get("session:a") == {"id": "a", "user_id": "2"}
    assert await store.get("session:missing") is None


@pytest.mark.anyio
async def test_entries_expire_after_ttl(store: SQLiteKeyValueStore, clock: Clock) -> None:
    await store.set("pkce:s", {"code_verifier": "v"}, ttl_seconds=600)

    clock.now += 599
    assert await store.get("pkce:s") is not None

    clock.now += 1
    assert await store.get("pkce:s") is None
    assert await store.get_and_delete("pkce:s") is None


@pytest.mark.anyio
async def test_get_and_delete_hands_value_out_once(store: SQLiteKeyValueStore) -> None:
    await store.set("pkce:s", {"code_verifier": "v"}, ttl_seconds=600)

    assert await store.get_and_delete("pkce:s") == {"code_verifier": "v"}
    assert await store.get_and_delete("pkce:s") is None
    assert await store.get("pkce:s") is None


@pytest.mark.anyio
async def test_delete_is_idempotent(store: SQLiteKeyValueStore) -> None:
    await store.set("session:a", {"id": "a"}, ttl_seconds=60)
    await store.delete("session:a")
    await store.delete("session:a")
    assert await store.get("session:a") is None


@pytest.mark.anyio
async def test_rejects_non_positive_ttl(store: SQLiteKeyValueStore) -> None:
    with pytest.raises(ValueError):
        await store.set("session:a", {"id": "a"}, ttl_seconds=0)


@pytest.mark.anyio
async def test_database_errors_surface_as_store_errors(
    tmp_path: Path, clock: Clock
) -> None:
    db_path = tmp_path / "kv.sqlite3"
    store = SQLiteKeyValueStore(str(db_path), clock=clock)
    with sqlite3.connect(db_path) as conn:
        conn.execute("DROP TABLE kv_entries")

    with pytest.raises(KeyValueStoreError):
        await store.get("session:a")
    with pytest.raises(KeyValueStoreError):
        await store.set("session:a", {"id": "a"}, ttl_seconds=60)
    with pytest.raises(KeyValueStoreError):
        await store.get_and_delete("pkce:s")


@pytest.mark.anyio
async def test_corrupt_payload_surfaces_as_store_error(
    store: SQLiteKeyValueStore, clock: Clock, tmp_path: Path
) -> None:
    db_path = tmp_path / "nested" / "kv.sqlite3"
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            "INSERT INTO kv_entries (key, data, expires_at) VALUES (?, ?, ?)",
            ("session:a", "{not json", clock.now + 60),
        )

    with pytest.raises(KeyValueStoreError):
        await store.get("session:a")
