"""Schemas mirroring the SoundCloud API payloads this service relays."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class _SoundCloudModel(BaseModel):
    # SoundCloud adds fields without notice; keep them when relaying.
    model_config = ConfigDict(extra="allow")


class TokenResponse(_SoundCloudModel):
    """Body returned by the SoundCloud token endpoint."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int
    scope: Optional[str] = None
    token_type: Optional[str] = None


class SoundCloudQuota(_SoundCloudModel):
    unlimited_upload_quota: Optional[bool] = None
    upload_seconds_used: Optional[int] = None
    upload_seconds_left: Optional[int] = None


class SoundCloudProduct(_SoundCloudModel):
    id: str
    name: str


class SoundCloudSubscription(_SoundCloudModel):
    product: SoundCloudProduct
    recurring: Optional[bool] = None


class SoundCloudUser(_SoundCloudModel):
    """Authenticated user profile as returned by ``GET /me``."""

    id: int
    username: str
    urn: Optional[str] = None
    kind: Optional[str] = None
    permalink: Optional[str] = None
    permalink_url: Optional[str] = None
    uri: Optional[str] = None
    avatar_url: Optional[str] = None
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    description: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None
    locale: Optional[str] = None
    website: Optional[str] = None
    website_title: Optional[str] = None
    discogs_name: Optional[str] = None
    plan: Optional[str] = None
    created_at: Optional[str] = None
    last_modified: Optional[str] = None
    online: Optional[bool] = None
    primary_email_confirmed: Optional[bool] = None
    followers_count: Optional[int] = None
    followings_count: Optional[int] = None
    likes_count: Optional[int] = None
    public_favorites_count: Optional[int] = None
    reposts_count: Optional[int] = None
    track_count: Optional[int] = None
    playlist_count: Optional[int] = None
    private_tracks_count: Optional[int] = None
    private_playlists_count: Optional[int] = None
    upload_seconds_left: Optional[int] = None
    quota: Optional[SoundCloudQuota] = None
    subscriptions: list[SoundCloudSubscription] = Field(default_factory=list)


class SoundCloudTrackUser(_SoundCloudModel):
    id: int
    username: str
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    permalink_url: Optional[str] = None


class SoundCloudTrack(_SoundCloudModel):
    id: int
    title: str
    user: SoundCloudTrackUser
    duration: Optional[int] = Field(None, description="Track length in milliseconds.")
    description: Optional[str] = None
    artwork_url: Optional[str] = None
    waveform_url: Optional[str] = None
    created_at: Optional[str] = None
    genre: Optional[str] = None
    tag_list: Optional[str] = None
    permalink_url: Optional[str] = None
    stream_url: Optional[str] = None
    download_url: Optional[str] = None
    purchase_url: Optional[str] = None
    kind: Optional[str] = None
    uri: Optional[str] = None
    urn: Optional[str] = None
    playback_count: Optional[int] = None
    likes_count: Optional[int] = None
    reposts_count: Optional[int] = None
    comment_count: Optional[int] = None
    download_count: Optional[int] = None
    public: Optional[bool] = None
    downloadable: Optional[bool] = None
    streamable: Optional[bool] = None


class SoundCloudTracksResponse(_SoundCloudModel):
    """One page of liked tracks (``linked_partitioning`` format)."""

    collection: list[SoundCloudTrack] = Field(default_factory=list)
    next_href: Optional[str] = None


__all__ = [
    "SoundCloudProduct",
    "SoundCloudQuota",
    "SoundCloudSubscription",
    "SoundCloudTrack",
    "SoundCloudTrackUser",
    "SoundCloudTracksResponse",
    "SoundCloudUser",
    "TokenResponse",
]
