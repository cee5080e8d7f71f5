"""Storage for rolling usage windows.

Each rate-limited key owns two collections:

* committed timestamps of accepted actions, pruned once they are a full window old;
* pending reservations, each holding a slot until its lease expires.

Every operation is a single atomic step against the store, so concurrent
submissions for the same key can never push the number of committed entries
inside the window past the configured limit.
"""

from __future__ import annotations

import bisect
import math
import secrets
from collections.abc import Iterable
from dataclasses import dataclass, field
from itertools import islice
from threading import Lock
from typing import TYPE_CHECKING, Any, Final, Protocol

if TYPE_CHECKING:  # pragma: no cover - typing helper
    from redis.asyncio import Redis

MILLISECONDS_PER_SECOND: Final[int] = 1000


def retry_after_for(oldest: float, now: float, window: float) -> float:
    """Return how long until an entry recorded at ``oldest`` leaves the window."""
    return max(0.0, window - (now - oldest))


def soonest_free_slot(
    committed: Iterable[float], lease_expiries: Iterable[float], now: float, window: float
) -> float:
    """Return how long until the next slot frees up in a full window.

    A slot frees when the oldest committed entry leaves the window or when a
    pending lease expires, whichever comes first.
    """
    candidates = [retry_after_for(oldest, now, window) for oldest in islice(committed, 1)]
    candidates.extend(max(0.0, expiry - now) for expiry in lease_expiries)
    return min(candidates) if candidates else 0.0


@dataclass(frozen=True)
class ReserveResult:
    """Outcome of an atomic reservation attempt."""

    allowed: bool
    token: str | None = None
    retry_after: float | None = None


@dataclass(frozen=True)
class UsageSnapshot:
    """Read-only view of a key's window after pruning."""

    committed: tuple[float, ...]
    lease_expiries: tuple[float, ...] = ()

    @property
    def pending(self) -> int:
        return len(self.lease_expiries)

    @property
    def used(self) -> int:
        return len(self.committed) + self.pending

    def retry_after(self, now: float, window: float) -> float:
        return soonest_free_slot(self.committed, self.lease_expiries, now, window)


class UsageStore(Protocol):
    """Atomic primitives over per-key usage windows."""

    async def reserve(
        self, key: str, *, now: float, window: float, limit: int, lease: float
    ) -> ReserveResult:
        """Hold a slot for ``key`` if fewer than ``limit`` are in use."""
        ...

    async def commit(self, key: str, token: str, *, now: float, window: float, limit: int) -> bool:
        """Turn a reservation into an accepted action recorded at ``now``.

        Returns False when the reservation was lost and no slot remained, in
        which case nothing is recorded.
        """
        ...

    async def release(self, key: str, token: str) -> None:
        """Drop a reservation without recording anything."""
        ...

    async def snapshot(self, key: str, *, now: float, window: float) -> UsageSnapshot:
        """Return the pruned window for ``key``."""
        ...


def new_reservation_token() -> str:
    return secrets.token_hex(8)


@dataclass
class _Window:
    committed: list[tuple[float, str]] = field(default_factory=list)
    pending: dict[str, float] = field(default_factory=dict)

    def prune(self, now: float, window: float) -> None:
        cutoff = now - window
        # Entries exactly one window old have expired.
        index = bisect.bisect_right(self.committed, (cutoff, "\uffff"))
        if index:
            del self.committed[:index]
        for token in [t for t, expiry in self.pending.items() if expiry <= now]:
            del self.pending[token]

    @property
    def used(self) -> int:
        return len(self.committed) + len(self.pending)

    def retry_after(self, now: float, window: float) -> float:
        return soonest_free_slot((ts for ts, _ in self.committed), self.pending.values(), now, window)


class InMemoryUsageStore:
    """Process-local usage store guarded by a single lock.

    Suitable for a single server process and for tests. Windows are created on
    first use and only ever shrink through pruning.
    """

    def __init__(self) -> None:
        self._windows: dict[str, _Window] = {}
        self._lock = Lock()

    async def reserve(
        self, key: str, *, now: float, window: float, limit: int, lease: float
    ) -> ReserveResult:
        with self._lock:
            entry = self._windows.setdefault(key, _Window())
            entry.prune(now, window)
            if entry.used >= limit:
                return ReserveResult(allowed=False, retry_after=entry.retry_after(now, window))
            token = new_reservation_token()
            entry.pending[token] = now + lease
            return ReserveResult(allowed=True, token=token)

    async def commit(self, key: str, token: str, *, now: float, window: float, limit: int) -> bool:
        with self._lock:
            entry = self._windows.setdefault(key, _Window())
            entry.prune(now, window)
            if entry.pending.pop(token, None) is None and entry.used >= limit:
                return False
            bisect.insort(entry.committed, (now, token))
            return True

    async def release(self, key: str, token: str) -> None:
        with self._lock:
            entry = self._windows.get(key)
            if entry is not None:
                entry.pending.pop(token, None)

    async def snapshot(self, key: str, *, now: float, window: float) -> UsageSnapshot:
        with self._lock:
            entry = self._windows.get(key)
            if entry is None:
                return UsageSnapshot(committed=())
            entry.prune(now, window)
            return UsageSnapshot(
                committed=tuple(ts for ts, _ in entry.committed),
                lease_expiries=tuple(sorted(entry.pending.values())),
            )


# KEYS[1] committed zset (member token, score ms), KEYS[2] pending zset (score lease expiry ms)
# ARGV: now_ms, window_ms, limit, lease_ms, token
_RESERVE_LUA: Final[str] = """
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
local lease = tonumber(ARGV[4])
redis.call('ZREMRANGEBYSCORE', KEYS[1], '-inf', now - window)
redis.call('ZREMRANGEBYSCORE', KEYS[2], '-inf', now)
local used = redis.call('ZCARD', KEYS[1]) + redis.call('ZCARD', KEYS[2])
if used < limit then
  redis.call('ZADD', KEYS[2], now + lease, ARGV[5])
  redis.call('PEXPIRE', KEYS[2], lease)
  return {1, '0'}
end
local retry = -1
local oldest = redis.call('ZRANGE', KEYS[1], 0, 0, 'WITHSCORES')
if oldest[2] then
  retry = tonumber(oldest[2]) + window - now
end
local soonest = redis.call('ZRANGE', KEYS[2], 0, 0, 'WITHSCORES')
if soonest[2] then
  local wait = tonumber(soonest[2]) - now
  if retry < 0 or wait < retry then
    retry = wait
  end
end
if retry < 0 then
  retry = 0
end
return {0, tostring(retry)}
"""

# ARGV: now_ms, window_ms, limit, token
_COMMIT_LUA: Final[str] = """
local now = tonumber(ARGV[1])
local window = tonumber(ARGV[2])
local limit = tonumber(ARGV[3])
redis.call('ZREMRANGEBYSCORE', KEYS[1], '-inf', now - window)
redis.call('ZREMRANGEBYSCORE', KEYS[2], '-inf', now)
local held = redis.call('ZREM', KEYS[2], ARGV[4])
if held == 0 then
  local used = redis.call('ZCARD', KEYS[1]) + redis.call('ZCARD', KEYS[2])
  if used >= limit then
    return 0
  end
end
redis.call('ZADD', KEYS[1], now, ARGV[4])
redis.call('PEXPIRE', KEYS[1], window)
return 1
"""


def _to_ms(seconds: float) -> int:
    return int(math.floor(seconds * MILLISECONDS_PER_SECOND))


def _duration_ms(seconds: float) -> int:
    return max(1, int(math.ceil(seconds * MILLISECONDS_PER_SECOND)))


class RedisUsageStore:
    """Usage store shared by every server process through Redis.

    Reservation and commit each run as one Lua script, which Redis executes
    atomically; keys expire on their own once a window passes without activity.
    """

    def __init__(self, client: Redis, *, prefix: str = "usage") -> None:
        self._redis = client
        self._prefix = prefix
        self._reserve = client.register_script(_RESERVE_LUA)
        self._commit = client.register_script(_COMMIT_LUA)

    def _keys(self, key: str) -> list[str]:
        base = f"{self._prefix}:{key}"
        return [f"{base}:committed", f"{base}:pending"]

    async def reserve(
        self, key: str, *, now: float, window: float, limit: int, lease: float
    ) -> ReserveResult:
        token = new_reservation_token()
        reply: Any = await self._reserve(
            keys=self._keys(key),
            args=[_to_ms(now), _duration_ms(window), int(limit), _duration_ms(lease), token],
        )
        allowed, retry_ms = int(reply[0]), _as_text(reply[1])
        if allowed:
            return ReserveResult(allowed=True, token=token)
        return ReserveResult(allowed=False, retry_after=float(retry_ms) / MILLISECONDS_PER_SECOND)

    async def commit(self, key: str, token: str, *, now: float, window: float, limit: int) -> bool:
        reply = await self._commit(
            keys=self._keys(key),
            args=[_to_ms(now), _duration_ms(window), int(limit), token],
        )
        return bool(int(reply))

    async def release(self, key: str, token: str) -> None:
        await self._redis.zrem(self._keys(key)[1], token)

    async def snapshot(self, key: str, *, now: float, window: float) -> UsageSnapshot:
        committed_key, pending_key = self._keys(key)
        now_ms = _to_ms(now)
        async with self._redis.pipeline(transaction=True) as pipe:
            pipe.zremrangebyscore(committed_key, "-inf", now_ms - _duration_ms(window))
            pipe.zremrangebyscore(pending_key, "-inf", now_ms)
            pipe.zrange(committed_key, 0, -1, withscores=True)
            pipe.zrange(pending_key, 0, -1, withscores=True)
            _, _, committed, pending = await pipe.execute()
        return UsageSnapshot(
            committed=tuple(float(score) / MILLISECONDS_PER_SECOND for _, score in committed),
            lease_expiries=tuple(float(score) / MILLISECONDS_PER_SECOND for _, score in pending),
        )


def _as_text(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("ascii")
    return str(value)
