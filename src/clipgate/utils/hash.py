# src/clipgate/utils/hash.py
"""Hashing helpers built on BLAKE3."""

from __future__ import annotations

import secrets

from blake3 import blake3

from clipgate.core.identity import FINGERPRINT_HEX_LENGTH, OPAQUE_ID_HEX_LENGTH


def blake3_hexdigest(data: bytes) -> str:
    """Return the hexadecimal digest of the supplied data."""
    return blake3(data).hexdigest()


def keyed_hexdigest(text: str, secret: str) -> str:
    """Return ``BLAKE3(text || secret)`` as hex."""
    return blake3_hexdigest((text + secret).encode("utf-8"))


def content_fingerprint(data: bytes) -> str:
    """Return the 32-hex-character fingerprint of a media payload."""
    return blake3(data).hexdigest(length=FINGERPRINT_HEX_LENGTH // 2)


def new_opaque_id() -> str:
    """Generate a fresh 24-hex-character opaque identifier."""
    return secrets.token_hex(OPAQUE_ID_HEX_LENGTH // 2)
