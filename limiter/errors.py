"""Exceptions raised by the limiter and its counter stores."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .core import Usage
    from .granularity import Granularity


class LimiterError(Exception):
    """Base class for limiter failures."""


class EntityNotConfigured(LimiterError, LookupError):
    def __init__(self, entity: str) -> None:
        super().__init__(f"limiter: entity {entity!r} is not configured")
        self.entity = entity


class LimitNotConfigured(LimiterError, LookupError):
    def __init__(self, entity: str, granularity: Granularity) -> None:
        super().__init__(
            f"limiter: no {granularity.name.lower()} limit configured for {entity!r}"
        )
        self.entity = entity
        self.granularity = granularity


class LimitExceeded(LimiterError):
    """Observed usage is above the configured threshold."""

    def __init__(self, usage: Usage) -> None:
        super().__init__(
            f"limiter: {usage.entity!r} used {usage.used} over the last "
            f"{usage.granularity.name.lower()} (limit {usage.limit})"
        )
        self.usage = usage


class CacheMiss(LimiterError, KeyError):
    """A point read found no value for the key."""

    def __init__(self, key: str) -> None:
        super().__init__(key)
        self.key = key

    def __str__(self) -> str:
        return f"cache: key {self.key!r} not found"


class StoreError(LimiterError):
    """The counter store failed (I/O error, timeout, bad payload)."""


class StoreTimeoutError(StoreError, TimeoutError):
    """A limiter call ran past its deadline."""
