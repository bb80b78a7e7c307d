"""In-process counter store for single-instance deployments and tests."""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from threading import Lock

from cachetools import TLRUCache  # type: ignore[import-untyped]

from limiter.errors import CacheMiss, StoreError

from .base import MIN_COUNTER_TTL_SECONDS, tracked_call

_INT64_MAX = 2**63 - 1
_INT64_MIN = -(2**63)

_Entry = tuple[int, float]


def _time_to_use(_key: str, entry: _Entry, now: float) -> float:
    return now + entry[1]


class MemoryCounterStore:
    """Counters held in a TLRU cache so every key expires on its own TTL.

    A full store refuses new keys rather than letting the cache evict a live
    counter, which would silently shrink windowed totals.

    Only callers inside this process share the counts; use the Redis store
    when several processes must see the same usage.
    """

    name = "memory"

    def __init__(
        self,
        *,
        ttl: int = MIN_COUNTER_TTL_SECONDS,
        max_items: int = 1_000_000,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_items <= 0:
            raise ValueError("max_items must be positive")
        self._ttl = max(int(ttl), MIN_COUNTER_TTL_SECONDS)
        self._lock = Lock()
        self._cache: TLRUCache = TLRUCache(maxsize=max_items, ttu=_time_to_use, timer=timer)

    @property
    def ttl(self) -> int:
        return self._ttl

    def _reserve(self, key: str) -> None:
        # Caller holds the lock.
        if key in self._cache:
            return
        self._cache.expire()
        if self._cache.currsize >= self._cache.maxsize:
            raise StoreError(f"memory store full ({self._cache.maxsize} live counters)")

    async def read(self, key: str) -> int:
        async with tracked_call(self.name, "read"):
            with self._lock:
                entry = self._cache.get(key)
            if entry is None:
                raise CacheMiss(key)
            return entry[0]

    async def exists(self, key: str) -> bool:
        async with tracked_call(self.name, "exists"):
            with self._lock:
                return key in self._cache

    async def write(self, key: str, value: int, ttl: int) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        async with tracked_call(self.name, "write"):
            _check_range(key, value)
            with self._lock:
                self._reserve(key)
                self._cache[key] = (int(value), float(ttl))

    async def incr_by(self, key: str, delta: int) -> int:
        async with tracked_call(self.name, "incr_by"):
            with self._lock:
                entry = self._cache.get(key)
                total = (entry[0] if entry is not None else 0) + int(delta)
                _check_range(key, total)
                if entry is None:
                    self._reserve(key)
                # Re-inserting refreshes the expiry, matching INCRBY + EXPIRE.
                self._cache[key] = (total, float(self._ttl))
            return total

    async def sum_keys(self, keys: Sequence[str]) -> int:
        if not keys:
            return 0
        async with tracked_call(self.name, "sum_keys"):
            with self._lock:
                entries = [self._cache.get(key) for key in keys]
            return sum(entry[0] for entry in entries if entry is not None)


def _check_range(key: str, value: int) -> None:
    if not _INT64_MIN <= value <= _INT64_MAX:
        raise StoreError(f"counter {key!r} would overflow a 64-bit integer")
