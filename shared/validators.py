"""
Input validators for credential encodings. Pure functions.

Tokens and registration keys travel as hex strings on the wire. Decoding
failures are caller errors and surface as ``ValidationError`` (400), which is
distinct from an unknown-but-well-formed token (401).
"""

from __future__ import annotations

from typing import Optional

from errors import ValidationError

MAX_CREDENTIAL_BYTES = 64


def decode_hex(value: str, *, field: str = "token") -> bytes:
    """Decode a hex-encoded credential.

    Raises:
        ValidationError: *value* is empty, not hex, or longer than
            ``MAX_CREDENTIAL_BYTES`` once decoded.
    """
    raw = (value or "").strip()
    if not raw:
        raise ValidationError(f"{field} is required", field=field)
    try:
        decoded = bytes.fromhex(raw)
    except ValueError:
        raise ValidationError(f"{field} must be hex-encoded", field=field) from None
    if len(decoded) > MAX_CREDENTIAL_BYTES:
        raise ValidationError(f"{field} is too long", field=field)
    return decoded


def decode_optional_hex(value: Optional[str], *, field: str) -> Optional[bytes]:
    """Like :func:`decode_hex` but ``None`` / empty input yields ``None``."""
    if value is None or not value.strip():
        return None
    return decode_hex(value, field=field)
