"""Record usage and check it against per-window limits."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from dataclasses import dataclass
from typing import TYPE_CHECKING, TypeVar

from prometheus_client import Counter

from .clock import Clock, SystemClock
from .errors import (
    EntityNotConfigured,
    LimitExceeded,
    LimitNotConfigured,
    StoreTimeoutError,
)
from .granularity import STORED_GRANULARITIES, Granularity
from .limits import LimitTable, LookupStatus
from .windows import bucket_key, window_keys

if TYPE_CHECKING:  # pragma: no cover
    from adapters.base import CounterStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

RECORDS = Counter("limiter_records_total", "Record calls that reached the store.", ("entity",))
CHECKS = Counter(
    "limiter_checks_total",
    "Check outcomes by entity and window.",
    ("entity", "granularity", "outcome"),
)


@dataclass(frozen=True)
class Usage:
    """Windowed usage for one entity compared with its threshold."""

    entity: str
    granularity: Granularity
    used: int
    limit: int

    @property
    def remaining(self) -> int:
        return max(0, self.limit - self.used)

    @property
    def exceeded(self) -> bool:
        return self.used > self.limit


class RateLimiter:
    """Multi-window limiter over a shared counter store.

    ``record`` adds to the second, minute and hour buckets for ``now``;
    ``check`` sums the buckets covering a trailing window and compares the
    total with the configured threshold. Nothing is cached between calls.

    The three increments in ``record`` are not transactional. If the minute
    increment fails the second bucket has already been updated and stays
    updated; callers see the store error and decide whether to retry.
    """

    def __init__(
        self,
        store: CounterStore,
        limits: LimitTable,
        *,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._limits = limits
        self._clock = clock or SystemClock()

    @property
    def limits(self) -> LimitTable:
        return self._limits

    async def _bounded(self, call: Awaitable[T], timeout: float | None) -> T:
        if timeout is None:
            return await call
        deadline = asyncio.timeout(timeout)
        try:
            async with deadline:
                return await call
        except TimeoutError as exc:
            if not deadline.expired():
                raise
            raise StoreTimeoutError(f"limiter call exceeded {timeout}s") from exc

    def _threshold(self, entity: str, granularity: Granularity) -> int:
        result = self._limits.lookup(entity, granularity)
        if result.status is LookupStatus.ENTITY_NOT_CONFIGURED:
            raise EntityNotConfigured(entity)
        if result.status is LookupStatus.LIMIT_NOT_CONFIGURED:
            raise LimitNotConfigured(entity, granularity)
        if result.threshold is None:
            raise LimitNotConfigured(entity, granularity)
        return result.threshold

    async def record(self, entity: str, amount: int, *, timeout: float | None = None) -> None:
        """Add ``amount`` to the entity's second, minute and hour buckets."""
        if not self._limits.has_entity(entity):
            raise EntityNotConfigured(entity)
        if isinstance(amount, bool) or not isinstance(amount, int) or amount < 0:
            raise ValueError(f"amount must be a non-negative integer, got {amount!r}")
        await self._bounded(self._record(entity, amount), timeout)
        RECORDS.labels(entity=entity).inc()

    async def _record(self, entity: str, amount: int) -> None:
        now = self._clock.now()
        for granularity in STORED_GRANULARITIES:
            await self._store.incr_by(bucket_key(entity, granularity, now), amount)
        logger.debug("recorded %s for %s", amount, entity)

    async def usage(
        self, entity: str, granularity: Granularity, *, timeout: float | None = None
    ) -> int:
        """Return the entity's total over the trailing ``granularity`` window."""
        if not self._limits.has_entity(entity):
            raise EntityNotConfigured(entity)
        return await self._bounded(self._sum(entity, granularity), timeout)

    async def _sum(self, entity: str, granularity: Granularity) -> int:
        keys = window_keys(entity, self._clock.now(), granularity)
        return await self._store.sum_keys(keys)

    async def check(
        self, entity: str, granularity: Granularity, *, timeout: float | None = None
    ) -> Usage:
        """Compare windowed usage with the threshold.

        Returns the :class:`Usage` when it is at or under the limit and raises
        :class:`LimitExceeded` otherwise.
        """
        limit = self._threshold(entity, granularity)
        used = await self._bounded(self._sum(entity, granularity), timeout)
        usage = Usage(entity, granularity, used, limit)
        label = granularity.name.lower()
        if usage.exceeded:
            CHECKS.labels(entity=entity, granularity=label, outcome="exceeded").inc()
            logger.warning(
                "limit exceeded for %s",
                entity,
                extra={"entity": entity, "granularity": label, "used": used, "limit": limit},
            )
            raise LimitExceeded(usage)
        CHECKS.labels(entity=entity, granularity=label, outcome="allowed").inc()
        return usage

    async def check_all(self, entity: str, *, timeout: float | None = None) -> list[Usage]:
        """Check every configured window, finest first.

        Stops at the first window over its limit.
        """
        if not self._limits.has_entity(entity):
            raise EntityNotConfigured(entity)
        return await self._bounded(self._check_all(entity), timeout)

    async def _check_all(self, entity: str) -> list[Usage]:
        return [await self.check(entity, g) for g in self._limits.granularities(entity)]
