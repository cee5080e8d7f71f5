"""Resolution of client-supplied resource identifiers.

A video can be addressed either by the opaque identifier generated when it was
stored (24 hex characters) or by the fingerprint derived from its content
(32 hex characters). Both the read and the write path go through
:func:`resolve` so storage lookups and rate-limit keys agree on the same
canonical form.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final, Literal

from clipgate.core.errors import InvalidIdentifierError

OPAQUE_ID_HEX_LENGTH: Final[int] = 24
FINGERPRINT_HEX_LENGTH: Final[int] = 32

_OPAQUE_ID_RE: Final = re.compile(r"[0-9a-fA-F]{24}")
_FINGERPRINT_RE: Final = re.compile(r"[0-9a-fA-F]{32}")


@dataclass(frozen=True, slots=True)
class OpaqueId:
    """Generated 12-byte identifier."""

    value: bytes
    kind: Literal["id"] = "id"

    @property
    def hex(self) -> str:
        return self.value.hex()

    @property
    def lookup_key(self) -> str:
        return f"id:{self.hex}"


@dataclass(frozen=True, slots=True)
class Fingerprint:
    """Content-derived identifier, always lowercase hex."""

    value: str
    kind: Literal["fp"] = "fp"

    def __post_init__(self) -> None:
        if self.value != self.value.lower() or not _FINGERPRINT_RE.fullmatch(self.value):
            raise InvalidIdentifierError()

    @property
    def hex(self) -> str:
        return self.value

    @property
    def lookup_key(self) -> str:
        return f"fp:{self.value}"


ResourceKey = OpaqueId | Fingerprint


def resolve(raw: object) -> ResourceKey:
    """Classify ``raw`` as an opaque id or a fingerprint.

    Args:
        raw: Identifier exactly as received from the client.

    Returns:
        The canonical resource key.

    Raises:
        InvalidIdentifierError: If ``raw`` is not a string of either shape.
    """
    if not isinstance(raw, str):
        raise InvalidIdentifierError()
    if _OPAQUE_ID_RE.fullmatch(raw):
        return OpaqueId(bytes.fromhex(raw))
    if _FINGERPRINT_RE.fullmatch(raw):
        return Fingerprint(raw.lower())
    raise InvalidIdentifierError()


def try_resolve(raw: object) -> ResourceKey | None:
    """Return the resolved key or ``None`` for an invalid identifier."""
    try:
        return resolve(raw)
    except InvalidIdentifierError:
        return None
