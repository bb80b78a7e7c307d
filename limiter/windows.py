"""Trailing-window decomposition into mixed-granularity buckets.

Summing one second bucket per elapsed second would need 86,400 reads for a
day window. Instead the fully contained middle of a window is read from
coarser pre-aggregated buckets and only the two partial edges are read at
finer resolution:

* second window: 1 second bucket
* minute window: 60 second buckets
* hour window: 119 buckets (seconds, minutes, seconds)
* day window: 142 buckets (seconds, minutes, hours, minutes, seconds)

The buckets of a window cover every whole second in ``[now - D, now - 1s]``
exactly once.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import NamedTuple

from .granularity import Granularity

_SECOND = timedelta(seconds=1)
_MINUTE = timedelta(minutes=1)
_HOUR = timedelta(hours=1)


class Bucket(NamedTuple):
    """A stored counter position: a resolution plus the instant it starts at."""

    granularity: Granularity
    instant: datetime

    @property
    def timestamp(self) -> str:
        return self.granularity.format(self.instant)

    def key(self, entity: str) -> str:
        return bucket_key(entity, self.granularity, self.instant)

    def seconds_covered(self) -> list[datetime]:
        """Every whole second this bucket aggregates."""
        start = self.granularity.truncate(self.instant)
        return [start + timedelta(seconds=i) for i in range(self.granularity.seconds)]


def bucket_key(entity: str, granularity: Granularity, instant: datetime) -> str:
    """Return ``"{entity}:{timestamp}"`` for the bucket holding ``instant``."""
    return f"{entity}:{granularity.format(_normalize(instant))}"


def _normalize(now: datetime) -> datetime:
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    return now.replace(microsecond=0)


def window_buckets(now: datetime, granularity: Granularity) -> list[Bucket]:
    """Decompose the trailing window of length ``granularity`` ending at ``now``."""
    now = _normalize(now)
    start = now - granularity.duration
    sec, minute, hour = Granularity.SECOND, Granularity.MINUTE, Granularity.HOUR

    if granularity is Granularity.SECOND:
        return [Bucket(sec, start)]

    if granularity is Granularity.MINUTE:
        return [Bucket(sec, start + i * _SECOND) for i in range(60)]

    if granularity is Granularity.HOUR:
        s = start.second
        buckets = [Bucket(sec, start + i * _SECOND) for i in range(60 - s)]
        buckets.extend(Bucket(minute, start + i * _MINUTE) for i in range(1, 60))
        buckets.extend(Bucket(sec, now - i * _SECOND) for i in range(s, 0, -1))
        return buckets

    if granularity is Granularity.DAY:
        s, m = start.second, start.minute
        buckets = [Bucket(sec, start + i * _SECOND) for i in range(60 - s)]
        buckets.extend(Bucket(minute, start + i * _MINUTE) for i in range(1, 60 - m))
        buckets.extend(Bucket(hour, start + i * _HOUR) for i in range(1, 24))
        buckets.extend(Bucket(minute, now - i * _MINUTE) for i in range(m, 0, -1))
        buckets.extend(Bucket(sec, now - i * _SECOND) for i in range(s, 0, -1))
        return buckets

    raise ValueError(f"unsupported granularity: {granularity!r}")


def window_keys(entity: str, now: datetime, granularity: Granularity) -> list[str]:
    """Return the ordered bucket keys whose sum is the entity's windowed usage."""
    return [bucket.key(entity) for bucket in window_buckets(now, granularity)]
