"""Multi-window usage limits over a shared counter store."""

from .clock import Clock, FixedClock, SystemClock
from .core import RateLimiter, Usage
from .errors import (
    CacheMiss,
    EntityNotConfigured,
    LimiterError,
    LimitExceeded,
    LimitNotConfigured,
    StoreError,
    StoreTimeoutError,
)
from .granularity import STORED_GRANULARITIES, Granularity
from .limits import LimitLookup, LimitTable, LookupStatus
from .windows import Bucket, bucket_key, window_buckets, window_keys

__all__ = [
    "Bucket",
    "CacheMiss",
    "Clock",
    "EntityNotConfigured",
    "FixedClock",
    "Granularity",
    "LimitExceeded",
    "LimitLookup",
    "LimitNotConfigured",
    "LimitTable",
    "LimiterError",
    "LookupStatus",
    "RateLimiter",
    "STORED_GRANULARITIES",
    "StoreError",
    "StoreTimeoutError",
    "SystemClock",
    "Usage",
    "bucket_key",
    "window_buckets",
    "window_keys",
]
