"""Immutable per-entity thresholds."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from .granularity import Granularity


class LookupStatus(str, Enum):
    FOUND = "found"
    ENTITY_NOT_CONFIGURED = "entity_not_configured"
    LIMIT_NOT_CONFIGURED = "limit_not_configured"


@dataclass(frozen=True)
class LimitLookup:
    """Result of looking up ``(entity, granularity)`` in a :class:`LimitTable`."""

    entity: str
    granularity: Granularity
    status: LookupStatus
    threshold: int | None = None

    @property
    def found(self) -> bool:
        return self.status is LookupStatus.FOUND


@dataclass(frozen=True)
class LimitTable:
    """Thresholds keyed by ``(entity, granularity)``.

    An entity that is present with no thresholds is still a known entity:
    recording against it succeeds, checking it reports a missing limit.
    """

    _limits: Mapping[tuple[str, Granularity], int] = field(repr=False)
    _entities: frozenset[str]

    def __post_init__(self) -> None:
        # Copy so a caller holding the original dict cannot change the table.
        object.__setattr__(self, "_limits", MappingProxyType(dict(self._limits)))
        object.__setattr__(self, "_entities", frozenset(self._entities))

    @classmethod
    def from_mapping(
        cls, limits: Mapping[str, Mapping[Granularity | str, int]]
    ) -> LimitTable:
        flat: dict[tuple[str, Granularity], int] = {}
        for entity, thresholds in limits.items():
            if not isinstance(entity, str) or not entity:
                raise ValueError(f"entity must be a non-empty string, got {entity!r}")
            for raw_granularity, threshold in (thresholds or {}).items():
                granularity = Granularity.parse(raw_granularity)
                # bool is an int subclass; True as a threshold is a config mistake.
                if isinstance(threshold, bool) or not isinstance(threshold, int):
                    raise ValueError(
                        f"threshold for {entity}/{granularity.name.lower()} must be an integer"
                    )
                if threshold < 0:
                    raise ValueError(
                        f"threshold for {entity}/{granularity.name.lower()} must be non-negative"
                    )
                flat[(entity, granularity)] = threshold
        return cls(MappingProxyType(flat), frozenset(limits))

    def has_entity(self, entity: str) -> bool:
        return entity in self._entities

    def entities(self) -> list[str]:
        return sorted(self._entities)

    def lookup(self, entity: str, granularity: Granularity) -> LimitLookup:
        if entity not in self._entities:
            return LimitLookup(entity, granularity, LookupStatus.ENTITY_NOT_CONFIGURED)
        threshold = self._limits.get((entity, granularity))
        if threshold is None:
            return LimitLookup(entity, granularity, LookupStatus.LIMIT_NOT_CONFIGURED)
        return LimitLookup(entity, granularity, LookupStatus.FOUND, threshold)

    def granularities(self, entity: str) -> list[Granularity]:
        """Configured granularities for ``entity``, finest first."""
        return sorted(g for (name, g) in self._limits if name == entity)

    def coarsest(self, entity: str) -> Granularity | None:
        configured = self.granularities(entity)
        return configured[-1] if configured else None
