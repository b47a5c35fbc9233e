"""
Credential generators.

A new identity and its first bearer token are cut from a single draw of the
OS CSPRNG: the first half becomes the secret key, the second half the token.
The halves never overlap, so neither value can be derived from the other.
"""

from __future__ import annotations

import secrets

SECRET_KEY_BYTES = 16
TOKEN_BYTES = 16


def generate_credentials() -> tuple[bytes, bytes]:
    """Return a fresh ``(secret_key, token)`` pair."""
    raw = secrets.token_bytes(SECRET_KEY_BYTES + TOKEN_BYTES)
    return raw[:SECRET_KEY_BYTES], raw[SECRET_KEY_BYTES:]
