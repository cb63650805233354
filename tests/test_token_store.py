from __future__ import annotations

from datetime import timedelta

import pytest

from app.models.session import PKCEEntry
from app.services.token_store import (
    PKCE_TTL,
    SESSION_TTL,
    USER_TOKENS_TTL,
    pkce_key,
    session_key,
    user_tokens_key,
)


def test_keyspaces() -> None:
    assert user_tokens_key("42") == "user:42:tokens"
    assert session_key("abc") == "session:abc"
    assert pkce_key("xyz") == "pkce:xyz"
    assert USER_TOKENS_TTL == timedelta(days=30)
    assert SESSION_TTL == timedelta(days=7)
    assert PKCE_TTL == timedelta(minutes=10)


@pytest.mark.anyio
async def test_user_tokens_are_encrypted_at_rest(token_store, memory_kv, frozen_clock) -> None:
    expires_at = frozen_clock.now + timedelta(hours=1)
    await token_store.store_user_tokens(
        "42", access_token="access", refresh_token="refresh", expires_at=expires_at
    )

    record = memory_kv.data["user:42:tokens"]
    assert memory_kv.ttls["user:42:tokens"] == 30 * 24 * 60 * 60
    assert "access" not in record.values()
    assert "refresh" not in record.values()

    tokens = await token_store.get_user_tokens("42")
    assert tokens is not None
    assert tokens.user_id == "42"
    assert tokens.access_token == "access"
    assert tokens.refresh_token == "refresh"
    assert tokens.expires_at == expires_at


@pytest.mark.anyio
async def test_user_tokens_are_replaced_wholesale(token_store, frozen_clock) -> None:
    await token_store.store_user_tokens(
        "42", access_token="a1", refresh_token="r1", expires_at=frozen_clock.now
    )
    await token_store.store_user_tokens(
        "42",
        access_token="a2",
        refresh_token="r2",
        expires_at=frozen_clock.now + timedelta(hours=1),
    )

    tokens = await token_store.get_user_tokens("42")
    assert (tokens.access_token, tokens.refresh_token) == ("a2", "r2")


@pytest.mark.anyio
async def test_unreadable_token_record_counts_as_missing(token_store, memory_kv) -> None:
    memory_kv.data["user:7:tokens"] = {
        "user_id": "7",
        "access_token_encrypted": "garbage",
        "refresh_token_encrypted": "garbage",
        "expires_at": "2026-01-01T00:00:00+00:00",
    }
    assert await token_store.get_user_tokens("7") is None
    assert await token_store.get_user_tokens("unknown") is None


@pytest.mark.anyio
async def test_pkce_entry_is_consumed_at_most_once(token_store, memory_kv) -> None:
    entry = PKCEEntry(code_verifier="verifier", user_session_id="session-1")
    await token_store.store_pkce_data("state-1", entry)
    assert memory_kv.ttls["pkce:state-1"] == 600

    assert await token_store.consume_pkce_data("state-1") == entry
    assert await token_store.consume_pkce_data("state-1") is None
    assert "pkce:state-1" not in memory_kv.data


@pytest.mark.anyio
async def test_session_lifecycle(token_store, memory_kv, frozen_clock) -> None:
    session = await token_store.store_user_session("session-1", "42")
    assert session.expires_at == frozen_clock.now + timedelta(days=7)
    assert memory_kv.ttls["session:session-1"] == 7 * 24 * 60 * 60

    loaded = await token_store.get_user_session("session-1")
    assert loaded is not None
    assert loaded.user_id == "42"

    await token_store.delete_user_session("session-1")
    await token_store.delete_user_session("session-1")
    assert await token_store.get_user_session("session-1") is None


@pytest.mark.anyio
async def test_malformed_session_counts_as_missing(token_store, memory_kv) -> None:
    memory_kv.data["session:broken"] = {"id": "broken"}
    assert await token_store.get_user_session("broken") is None
