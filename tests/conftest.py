"""Shared fixtures for limiter tests."""

import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Ensure repository root is on sys.path for direct package imports.
sys.path.append(str(Path(__file__).resolve().parents[1]))

from limiter import FixedClock, Granularity, LimitTable  # noqa: E402

# 2024-02-29 23:11:11 UTC, a leap day one second past a minute boundary.
SCENARIO_NOW = datetime(2024, 2, 29, 23, 11, 11, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(SCENARIO_NOW)


@pytest.fixture
def limits() -> LimitTable:
    return LimitTable.from_mapping(
        {
            "metric_test": {
                Granularity.DAY: 300,
                Granularity.HOUR: 30,
                Granularity.MINUTE: 10,
                Granularity.SECOND: 5,
            }
        }
    )
