"""Client origin extraction."""

from __future__ import annotations

from fastapi import Request

_IPV4_MAPPED_PREFIX = "::ffff:"


def normalize_address(address: str | None) -> str | None:
    """Strip whitespace and the IPv6-mapped-IPv4 prefix from an address."""
    if not address:
        return None
    address = address.strip()
    if address.lower().startswith(_IPV4_MAPPED_PREFIX):
        address = address[len(_IPV4_MAPPED_PREFIX):]
    return address or None


def client_origin(request: Request, *, trust_forwarded_for: bool = True) -> str | None:
    """Return the origin address of ``request``.

    The first entry of ``X-Forwarded-For`` wins when the deployment sits behind a
    trusted proxy; otherwise the socket peer is used.
    """
    if trust_forwarded_for:
        forwarded = request.headers.get("x-forwarded-for")
        if forwarded:
            origin = normalize_address(forwarded.split(",")[0])
            if origin:
                return origin
    if request.client is None:
        return None
    return normalize_address(request.client.host)
