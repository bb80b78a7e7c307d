"""Redis-backed counter store shared by every limiter process."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from redis.asyncio import Redis
from redis.asyncio.retry import Retry
from redis.backoff import NoBackoff
from redis.exceptions import RedisError

from limiter.errors import CacheMiss, StoreError

from .base import MIN_COUNTER_TTL_SECONDS, tracked_call

logger = logging.getLogger(__name__)


def build_redis_client(redis_url: str, *, timeout: float | None = None) -> Redis:
    """Create an asyncio client that fails fast instead of retrying."""
    return Redis.from_url(
        redis_url,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
        retry_on_timeout=False,
        retry=Retry(NoBackoff(), 0),
    )


def _to_int(key: str, raw: Any) -> int:
    try:
        return int(raw)
    except (TypeError, ValueError) as exc:
        raise StoreError(f"counter {key!r} holds a non-integer value") from exc


class RedisCounterStore:
    """Counters stored as Redis integers.

    ``incr_by`` runs ``INCRBY`` and ``EXPIRE`` in one ``MULTI`` block so a
    bucket always carries the retention TTL. ``sum_keys`` is a single
    ``MGET``; it is not a snapshot across keys.
    """

    name = "redis"

    def __init__(self, client: Redis, *, ttl: int = MIN_COUNTER_TTL_SECONDS) -> None:
        self._client = client
        self._ttl = max(int(ttl), MIN_COUNTER_TTL_SECONDS)

    @property
    def ttl(self) -> int:
        return self._ttl

    @asynccontextmanager
    async def _call(self, operation: str) -> AsyncIterator[None]:
        async with tracked_call(self.name, operation):
            try:
                yield
            except RedisError as exc:
                logger.warning(
                    "redis %s failed: %s",
                    operation,
                    exc,
                    extra={"operation": operation, "error": type(exc).__name__},
                )
                raise StoreError(f"redis {operation} failed: {exc}") from exc

    async def read(self, key: str) -> int:
        async with self._call("read"):
            raw = await self._client.get(key)
        if raw is None:
            raise CacheMiss(key)
        return _to_int(key, raw)

    async def exists(self, key: str) -> bool:
        async with self._call("exists"):
            count = await self._client.exists(key)
        return bool(count)

    async def write(self, key: str, value: int, ttl: int) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        async with self._call("write"):
            await self._client.set(key, int(value), ex=int(ttl))

    async def incr_by(self, key: str, delta: int) -> int:
        async with self._call("incr_by"):
            async with self._client.pipeline(transaction=True) as pipe:
                pipe.incrby(key, int(delta))
                pipe.expire(key, self._ttl)
                total, _ = await pipe.execute()
        return int(total)

    async def sum_keys(self, keys: Sequence[str]) -> int:
        if not keys:
            return 0
        async with self._call("sum_keys"):
            values = await self._client.mget(list(keys))
        return sum(_to_int(key, raw) for key, raw in zip(keys, values) if raw is not None)

    async def close(self) -> None:
        await self._client.aclose()
