"""Counter store contract and shared instrumentation for store adapters."""

from __future__ import annotations

import time
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Protocol, runtime_checkable

from prometheus_client import Counter, Histogram

# Counters must outlive the largest window (one day).
MIN_COUNTER_TTL_SECONDS = 86400

STORE_LATENCY = Histogram(
    "limiter_store_operation_seconds",
    "Counter store call latency by store and operation.",
    ("store", "operation"),
)
STORE_ERRORS = Counter(
    "limiter_store_errors_total",
    "Counter store calls that raised, by store and operation.",
    ("store", "operation"),
)


@runtime_checkable
class CounterStore(Protocol):
    """Key/value store of 64-bit counters shared by every limiter process.

    ``incr_by`` must be atomic under concurrent callers. ``sum_keys`` reads
    all keys in one round trip and treats absent keys as zero. Failures are
    raised as :class:`limiter.errors.StoreError`; nothing is retried.
    """

    async def read(self, key: str) -> int: ...

    async def exists(self, key: str) -> bool: ...

    async def write(self, key: str, value: int, ttl: int) -> None: ...

    async def incr_by(self, key: str, delta: int) -> int: ...

    async def sum_keys(self, keys: Sequence[str]) -> int: ...


@asynccontextmanager
async def tracked_call(store: str, operation: str) -> AsyncIterator[None]:
    """Record latency and failures for one store operation.

    Usage::

        async with tracked_call("redis", "incr_by"):
            await client.incrby(key, delta)
    """

    start = time.perf_counter()
    try:
        yield
    except Exception:
        STORE_ERRORS.labels(store=store, operation=operation).inc()
        raise
    finally:
        STORE_LATENCY.labels(store=store, operation=operation).observe(
            time.perf_counter() - start
        )
