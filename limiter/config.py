"""Environment settings and limit-file loading."""

from __future__ import annotations

import os
from pathlib import Path
from typing import TYPE_CHECKING, Annotated

import yaml
from pydantic import BaseModel, ConfigDict, Field, StrictInt, ValidationError

from .clock import Clock, SystemClock
from .granularity import Granularity
from .limits import LimitTable
from .logging_setup import configure_logging

if TYPE_CHECKING:  # pragma: no cover
    from .core import RateLimiter

# Counters have to survive at least as long as the day window.
_MIN_TTL_SECONDS = Granularity.DAY.seconds


def redis_url() -> str | None:
    url = os.getenv("REDIS_URL", "").strip()
    return url or None


def counter_ttl_seconds() -> int:
    return max(int(os.getenv("COUNTER_TTL_SECONDS", str(_MIN_TTL_SECONDS))), _MIN_TTL_SECONDS)


def store_timeout_seconds() -> float:
    return float(os.getenv("STORE_TIMEOUT_SECONDS", "1.0"))


def memory_store_max_items() -> int:
    return max(int(os.getenv("MEMORY_STORE_MAX_ITEMS", "1000000")), 1)


def limits_path() -> Path:
    return Path(os.getenv("LIMITS_FILE", "limits.yml"))


Threshold = Annotated[StrictInt, Field(ge=0)]


class LimitsDocument(BaseModel):
    """Schema of a limits YAML file."""

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "examples": [{"limits": {"api_calls": {"second": 5, "minute": 10, "day": 300}}}]
        },
    )
    limits: dict[str, dict[Granularity, Threshold]] = Field(
        default_factory=dict, description="Thresholds per entity and granularity"
    )

    @classmethod
    def from_yaml_data(cls, data: dict) -> LimitsDocument:
        # Granularity names in files are lower-case; the enum is keyed by name.
        limits = data.get("limits")
        if limits is None:
            limits = {}
        if not isinstance(limits, dict):
            raise ValueError("'limits' must be a mapping of entity to thresholds")
        normalized = {}
        for entity, thresholds in limits.items():
            if thresholds is None:
                thresholds = {}
            if not isinstance(thresholds, dict):
                raise ValueError(f"thresholds for {entity!r} must be a mapping")
            normalized[entity] = {
                Granularity.parse(name): value for name, value in thresholds.items()
            }
        return cls.model_validate({**data, "limits": normalized})


def parse_limit_table(text: str) -> LimitTable:
    """Build a :class:`LimitTable` from YAML text."""
    data = yaml.safe_load(text)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValueError("limits document must be a mapping")
    try:
        document = LimitsDocument.from_yaml_data(data)
    except ValidationError as exc:
        raise ValueError(f"invalid limits document: {exc}") from exc
    return LimitTable.from_mapping(document.limits)


def load_limit_table(path: Path | str | None = None) -> LimitTable:
    """Read the limit table from ``path`` (default ``LIMITS_FILE``)."""
    config_path = Path(path) if path is not None else limits_path()
    return parse_limit_table(config_path.read_text(encoding="utf-8"))


def build_rate_limiter(
    limits: LimitTable | None = None,
    *,
    clock: Clock | None = None,
    service_name: str | None = None,
) -> RateLimiter:
    """Wire the shared store, the configured limits and the system clock.

    Also installs the JSON log handler, tagged with ``service_name``.
    """
    # Imported here: adapters depends on this module for its settings.
    from adapters import get_store

    from .core import RateLimiter

    configure_logging(service_name)
    return RateLimiter(
        get_store(),
        limits if limits is not None else load_limit_table(),
        clock=clock or SystemClock(),
    )
