"""PKCE (RFC 7636) helpers for the SoundCloud authorization code flow."""

from __future__ import annotations

import base64
import hashlib
import secrets
from dataclasses import dataclass

_VERIFIER_BYTES = 32
_STATE_BYTES = 16


def _base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def generate_code_verifier() -> str:
    """Return a high-entropy verifier (43 characters of base64url)."""
    return _base64url(secrets.token_bytes(_VERIFIER_BYTES))


def generate_code_challenge(verifier: str) -> str:
    """Derive the S256 challenge for ``verifier``."""
    digest = hashlib.sha256(verifier.encode("ascii")).digest()
    return _base64url(digest)


def generate_state() -> str:
    """Return a random anti-CSRF state value."""
    return _base64url(secrets.token_bytes(_STATE_BYTES))


@dataclass(frozen=True)
class PKCEPair:
    verifier: str
    challenge: str
    method: str = "S256"


def create_pkce_pair() -> PKCEPair:
    verifier = generate_code_verifier()
    return PKCEPair(verifier=verifier, challenge=generate_code_challenge(verifier))


__all__ = [
    "PKCEPair",
    "create_pkce_pair",
    "generate_code_challenge",
    "generate_code_verifier",
    "generate_state",
]
