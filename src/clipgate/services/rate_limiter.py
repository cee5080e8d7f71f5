"""Sliding-window rate limiting for the two admission points.

Comments are limited per (resource, origin); uploads per origin. Both use the
same rolling-window mechanism over a :class:`UsageStore`:

1. :meth:`RateLimiter.acquire` atomically reserves a slot, or reports how long
   the caller must wait.
2. :meth:`RateLimiter.record` confirms the reservation once the guarded action
   has durably succeeded.
3. :meth:`RateLimiter.release` gives the slot back when the action did not
   happen, so failed submissions never consume quota.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from clipgate.core.identity import ResourceKey
from clipgate.core.settings import Settings
from clipgate.services.usage_store import UsageStore


@dataclass(frozen=True)
class RateLimitPolicy:
    """A fixed limit of accepted actions per rolling window."""

    name: str
    limit: int
    window_seconds: float

    def comment_key(self, resource: ResourceKey, origin: str) -> str:
        return f"{self.name}:{resource.lookup_key}:{origin}"

    def origin_key(self, origin: str) -> str:
        return f"{self.name}:{origin}"


def comment_policy(settings: Settings) -> RateLimitPolicy:
    return RateLimitPolicy("comment", settings.comment_rate_limit, settings.comment_rate_window_seconds)


def upload_policy(settings: Settings) -> RateLimitPolicy:
    return RateLimitPolicy("upload", settings.upload_rate_limit, settings.upload_rate_window_seconds)


@dataclass(frozen=True)
class RateLimitDecision:
    """Admission answer for one key."""

    allowed: bool
    retry_after: float | None = None


@dataclass(frozen=True)
class Reservation:
    """A held slot that must be either recorded or released."""

    key: str
    token: str
    policy: RateLimitPolicy


class RateLimiter:
    """Apply :class:`RateLimitPolicy` instances over a shared usage store."""

    def __init__(
        self,
        store: UsageStore,
        *,
        lease_seconds: float = 120.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._lease = float(lease_seconds)
        self._clock = clock

    @property
    def store(self) -> UsageStore:
        return self._store

    async def check(self, policy: RateLimitPolicy, key: str) -> RateLimitDecision:
        """Report whether ``key`` could act now, without holding a slot."""
        now = self._clock()
        snapshot = await self._store.snapshot(key, now=now, window=policy.window_seconds)
        if snapshot.used < policy.limit:
            return RateLimitDecision(allowed=True)
        return RateLimitDecision(
            allowed=False, retry_after=snapshot.retry_after(now, policy.window_seconds)
        )

    async def acquire(
        self, policy: RateLimitPolicy, key: str
    ) -> tuple[RateLimitDecision, Reservation | None]:
        """Atomically check the limit and hold a slot when under it."""
        result = await self._store.reserve(
            key,
            now=self._clock(),
            window=policy.window_seconds,
            limit=policy.limit,
            lease=self._lease,
        )
        if not result.allowed or result.token is None:
            return RateLimitDecision(allowed=False, retry_after=result.retry_after or 0.0), None
        return RateLimitDecision(allowed=True), Reservation(key=key, token=result.token, policy=policy)

    async def record(self, reservation: Reservation) -> bool:
        """Record the accepted action behind ``reservation``.

        Returns False if the slot had been lost in the meantime and the window
        was already full; nothing is written in that case.
        """
        return await self._store.commit(
            reservation.key,
            reservation.token,
            now=self._clock(),
            window=reservation.policy.window_seconds,
            limit=reservation.policy.limit,
        )

    async def release(self, reservation: Reservation) -> None:
        """Return an unused slot."""
        await self._store.release(reservation.key, reservation.token)

    async def usage(self, policy: RateLimitPolicy, key: str) -> tuple[float, ...]:
        """Return committed timestamps for ``key`` inside the current window."""
        snapshot = await self._store.snapshot(key, now=self._clock(), window=policy.window_seconds)
        return snapshot.committed
