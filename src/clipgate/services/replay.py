"""Replay protection for challenge digests."""

from __future__ import annotations

import time
from collections.abc import Callable
from threading import Lock
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from redis.asyncio import Redis


class ChallengeReplayGuard(Protocol):
    async def consume(self, digest: str) -> bool:
        """Mark ``digest`` as used; return False if it already was."""
        ...


class InMemoryReplayGuard:
    """Remember consumed digests in process memory until they expire."""

    def __init__(self, ttl_seconds: int, *, clock: Callable[[], float] = time.time) -> None:
        self._ttl = int(ttl_seconds)
        self._clock = clock
        self._seen: dict[str, float] = {}
        self._lock = Lock()

    async def consume(self, digest: str) -> bool:
        now = self._clock()
        with self._lock:
            for stale in [d for d, expiry in self._seen.items() if expiry <= now]:
                del self._seen[stale]
            if digest in self._seen:
                return False
            self._seen[digest] = now + self._ttl
            return True


class RedisReplayGuard:
    """Consume digests with ``SET NX EX`` so concurrent replays race safely."""

    def __init__(self, client: Redis, ttl_seconds: int, *, prefix: str = "challenge") -> None:
        self._redis = client
        self._ttl = int(ttl_seconds)
        self._prefix = prefix

    async def consume(self, digest: str) -> bool:
        stored = await self._redis.set(f"{self._prefix}:{digest}", "1", nx=True, ex=self._ttl)
        return bool(stored)
