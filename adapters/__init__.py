"""Counter store adapters and the process-wide store selection."""

from __future__ import annotations

import logging
from threading import Lock

from limiter import config

from .base import CounterStore, tracked_call
from .memory import MemoryCounterStore
from .redis_store import RedisCounterStore, build_redis_client

logger = logging.getLogger(__name__)

_STORE_LOCK = Lock()
_STORE: CounterStore | None = None


def _build_redis_client(redis_url: str):
    return build_redis_client(redis_url, timeout=config.store_timeout_seconds())


def get_store() -> CounterStore:
    """Return the shared counter store, Redis when ``REDIS_URL`` is set."""
    global _STORE
    with _STORE_LOCK:
        if _STORE is not None:
            return _STORE
        ttl = config.counter_ttl_seconds()
        redis_url = config.redis_url()
        if redis_url:
            _STORE = RedisCounterStore(_build_redis_client(redis_url), ttl=ttl)
        else:
            _STORE = MemoryCounterStore(ttl=ttl, max_items=config.memory_store_max_items())
        logger.info("counter store: %s (ttl=%ss)", type(_STORE).__name__, ttl)
        return _STORE


def reset_store() -> None:
    """Forget the shared store (useful for tests)."""
    global _STORE
    with _STORE_LOCK:
        _STORE = None


__all__ = [
    "CounterStore",
    "MemoryCounterStore",
    "RedisCounterStore",
    "build_redis_client",
    "get_store",
    "reset_store",
    "tracked_call",
]
