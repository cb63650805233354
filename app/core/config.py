"""
Application configuration models and helpers.

Centralizes settings management so the FastAPI app, the token store and the
maintenance scripts share a consistent configuration surface.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

import os

from pydantic import AnyHttpUrl, Field, HttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :]
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class SoundCloudSettings(BaseSettings):
    """Credentials and endpoints for the SoundCloud OAuth application."""

    client_id: str = Field(..., validation_alias="SOUNDCLOUD_CLIENT_ID")
    client_secret: str = Field(..., validation_alias="SOUNDCLOUD_CLIENT_SECRET")
    redirect_uri: AnyHttpUrl = Field(..., validation_alias="SOUNDCLOUD_REDIRECT_URI")
    auth_base_url: str = Field(
        "https://secure.soundcloud.com", validation_alias="SOUNDCLOUD_AUTH_BASE_URL"
    )
    api_base_url: str = Field(
        "https://api.soundcloud.com", validation_alias="SOUNDCLOUD_API_BASE_URL"
    )
    http_timeout_seconds: float = Field(10.0, validation_alias="SOUNDCLOUD_HTTP_TIMEOUT")

    @field_validator("auth_base_url", "api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")


class StoreSettings(BaseSettings):
    """Key-value store used for sessions, tokens and PKCE entries."""

    kv_rest_api_url: Optional[str] = Field(
        None,
        validation_alias="KV_REST_API_URL",
        description="Upstash Redis REST endpoint. SQLite is used when omitted.",
    )
    kv_rest_api_token: Optional[str] = Field(None, validation_alias="KV_REST_API_TOKEN")
    sqlite_path: str = Field(
        "var/token_store.sqlite3",
        validation_alias="TOKEN_STORE_DB_PATH",
        description="Location of the local development store.",
    )
    http_timeout_seconds: float = Field(5.0, validation_alias="KV_REST_API_TIMEOUT")


class SessionSettings(BaseSettings):
    """Session cookie configuration."""

    cookie_name: str = Field("soundcloud_session", validation_alias="SESSION_COOKIE_NAME")
    cookie_secure: Optional[bool] = Field(
        None,
        validation_alias="SESSION_COOKIE_SECURE",
        description="Defaults to true when APP_ENV is production.",
    )


class SecuritySettings(BaseSettings):
    """Security-related configuration."""

    token_encryption_secret: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_SECRET",
        description=(
            "Secret used to derive the symmetric key for encrypting stored tokens."
        ),
    )
    previous_token_encryption_secrets: Optional[str] = Field(
        None,
        validation_alias="TOKEN_ENCRYPTION_PREVIOUS_SECRETS",
        description="Comma-separated retired secrets still accepted for decryption.",
    )

    @property
    def previous_secrets(self) -> tuple[str, ...]:
        raw = self.previous_token_encryption_secrets or ""
        return tuple(item.strip() for item in raw.split(",") if item.strip())


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    frontend_base_url: Optional[HttpUrl] = Field(
        None,
        validation_alias="FRONTEND_BASE_URL",
        description="Optional URL for redirecting users back to the front-end.",
    )
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    store: StoreSettings = Field(default_factory=StoreSettings)
    soundcloud: SoundCloudSettings = Field(default_factory=SoundCloudSettings)

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def session_cookie_secure(self) -> bool:
        if self.session.cookie_secure is not None:
            return self.session.cookie_secure
        return self.is_production


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()  # type: ignore[call-arg]


__all__ = [
    "AppSettings",
    "SecuritySettings",
    "SessionSettings",
    "SoundCloudSettings",
    "StoreSettings",
    "get_settings",
]
