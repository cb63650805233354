"""Pytest configuration and fakes shared across the suite."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover
    import _bootstrap  # type: ignore # noqa: F401

import copy
import json
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from app.clients.kv_store import KeyValueStoreError
from app.clients.soundcloud import OAuthTokenExchangeError, SoundCloudAPIError
from app.schemas.soundcloud import SoundCloudTracksResponse, SoundCloudUser, TokenResponse
from app.services.soundcloud_auth import SoundCloudAuthService
from app.services.token_cipher import TokenCipherService
from app.services.token_store import TokenStore


@pytest.fixture
def anyio_backend() -> str:
    """Force AnyIO-powered tests to run against asyncio backend only."""
    return "asyncio"


class InMemoryKeyValueStore:
    """Dict-backed stand-in for the Redis store; records TTLs instead of enforcing them."""

    def __init__(self) -> None:
        self.data: dict[str, dict] = {}
        self.ttls: dict[str, int] = {}
        self.fail = False

    def _check(self) -> None:
        if self.fail:
            raise KeyValueStoreError("store unavailable")

    async def get(self, key: str):
        self._check()
        value = self.data.get(key)
        return copy.deepcopy(value)

    async def set(self, key: str, value: dict, *, ttl_seconds: int) -> None:
        self._check()
        self.data[key] = json.loads(json.dumps(value))
        self.ttls[key] = ttl_seconds

    async def delete(self, key: str) -> None:
        self._check()
        self.data.pop(key, None)
        self.ttls.pop(key, None)

    async def get_and_delete(self, key: str):
        self._check()
        self.ttls.pop(key, None)
        return self.data.pop(key, None)


class StubSoundCloudClient:
    """Records calls and serves canned SoundCloud responses."""

    def __init__(self) -> None:
        self.authorizations: list[tuple[str, str]] = []
        self.exchanges: list[tuple[str, str]] = []
        self.refreshes: list[str] = []
        self.profile_tokens: list[str] = []
        self.liked_calls: list[tuple[str, int, int]] = []
        self.fail_exchange = False
        self.fail_refresh = False
        self.fail_api = False
        self.user = SoundCloudUser(id=42, username="dj-test", full_name="DJ Test")
        self.exchange_response = TokenResponse(
            access_token="access-1", refresh_token="refresh-1", expires_in=3600
        )
        self.refresh_response = TokenResponse(
            access_token="access-2", refresh_token="refresh-2", expires_in=3600
        )
        self.liked_response = SoundCloudTracksResponse.model_validate(
            {
                "collection": [
                    {
                        "id": 7,
                        "title": "First Like",
                        "duration": 180000,
                        "user": {"id": 9, "username": "artist"},
                    }
                ],
                "next_href": "https://api.soundcloud.com/me/likes/tracks?offset=1",
            }
        )

    def build_authorization_url(self, *, state: str, code_challenge: str) -> str:
        self.authorizations.append((state, code_challenge))
        return f"https://secure.example.com/authorize?state={state}"

    def challenge_for(self, state: str) -> str:
        return dict(self.authorizations)[state]

    async def exchange_authorization_code(self, code: str, code_verifier: str) -> TokenResponse:
        self.exchanges.append((code, code_verifier))
        if self.fail_exchange:
            raise OAuthTokenExchangeError("invalid_grant", status_code=400)
        return self.exchange_response

    async def refresh_token(self, refresh_token: str) -> TokenResponse:
        self.refreshes.append(refresh_token)
        if self.fail_refresh:
            raise OAuthTokenExchangeError("invalid_grant", status_code=401)
        return self.refresh_response

    async def get_user_profile(self, access_token: str) -> SoundCloudUser:
        self.profile_tokens.append(access_token)
        if self.fail_api:
            raise SoundCloudAPIError("boom", status_code=503)
        return self.user

    async def get_liked_tracks(
        self, access_token: str, *, limit: int = 20, offset: int = 0
    ) -> SoundCloudTracksResponse:
        self.liked_calls.append((access_token, limit, offset))
        if self.fail_api:
            raise SoundCloudAPIError("boom", status_code=503)
        return self.liked_response


class FrozenClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture()
def memory_kv() -> InMemoryKeyValueStore:
    return InMemoryKeyValueStore()


@pytest.fixture()
def soundcloud_stub() -> StubSoundCloudClient:
    return StubSoundCloudClient()


@pytest.fixture()
def frozen_clock() -> FrozenClock:
    return FrozenClock(datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc))


@pytest.fixture()
def token_store(memory_kv, frozen_clock) -> TokenStore:
    return TokenStore(memory_kv, TokenCipherService(secret="store-secret"), clock=frozen_clock)


@pytest.fixture()
def auth_service(soundcloud_stub, token_store, frozen_clock) -> SoundCloudAuthService:
    return SoundCloudAuthService(
        oauth_client=soundcloud_stub, token_store=token_store, clock=frozen_clock
    )


@pytest.fixture()
def api_context(memory_kv, soundcloud_stub, token_store, auth_service, frozen_clock):
    """Wire the FastAPI app to in-memory fakes via dependency overrides."""
    from app import dependencies
    from app.core.config import get_settings
    from app.main import app

    settings = copy.deepcopy(get_settings())
    settings.frontend_base_url = None

    app.dependency_overrides.update(
        {
            dependencies.get_soundcloud_auth_service: lambda: auth_service,
            dependencies.get_soundcloud_client: lambda: soundcloud_stub,
            dependencies.get_app_settings: lambda: settings,
        }
    )

    yield SimpleNamespace(
        app=app,
        kv=memory_kv,
        soundcloud=soundcloud_stub,
        store=token_store,
        service=auth_service,
        settings=settings,
        clock=frozen_clock,
    )

    app.dependency_overrides.clear()

