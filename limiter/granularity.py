"""Time resolutions used for bucket keys and trailing windows."""

from __future__ import annotations

from datetime import datetime, timedelta
from enum import IntEnum


class Granularity(IntEnum):
    """Ordered time resolutions: ``SECOND < MINUTE < HOUR < DAY``.

    The integer value is only used for ordering. ``DAY`` is a window length
    and never has a stored bucket of its own.
    """

    SECOND = 1
    MINUTE = 2
    HOUR = 3
    DAY = 4

    @property
    def seconds(self) -> int:
        return _SECONDS[self]

    @property
    def duration(self) -> timedelta:
        return timedelta(seconds=self.seconds)

    @property
    def stored(self) -> bool:
        """Whether counters are materialized at this resolution."""
        return self in _FORMATS

    def truncate(self, instant: datetime) -> datetime:
        """Drop every field of ``instant`` finer than this resolution."""
        instant = instant.replace(microsecond=0)
        if self >= Granularity.MINUTE:
            instant = instant.replace(second=0)
        if self >= Granularity.HOUR:
            instant = instant.replace(minute=0)
        if self >= Granularity.DAY:
            instant = instant.replace(hour=0)
        return instant

    def format(self, instant: datetime) -> str:
        """Return the bucket timestamp for ``instant`` at this resolution."""
        try:
            fmt = _FORMATS[self]
        except KeyError:
            raise ValueError(f"{self.name.lower()} buckets are not stored") from None
        return instant.strftime(fmt)

    @classmethod
    def parse(cls, value: str | Granularity) -> Granularity:
        """Resolve a granularity from its case-insensitive name."""
        if isinstance(value, Granularity):
            return value
        try:
            return cls[str(value).strip().upper()]
        except KeyError:
            valid = ", ".join(g.name.lower() for g in cls)
            raise ValueError(f"unknown granularity {value!r} (expected one of: {valid})") from None


_SECONDS = {
    Granularity.SECOND: 1,
    Granularity.MINUTE: 60,
    Granularity.HOUR: 3600,
    Granularity.DAY: 86400,
}

_FORMATS = {
    Granularity.SECOND: "%Y%m%d%H%M%S",
    Granularity.MINUTE: "%Y%m%d%H%M",
    Granularity.HOUR: "%Y%m%d%H",
}

# Record writes these in this order.
STORED_GRANULARITIES: tuple[Granularity, ...] = (
    Granularity.SECOND,
    Granularity.MINUTE,
    Granularity.HOUR,
)
