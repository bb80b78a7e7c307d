import pytest
from prometheus_client import REGISTRY

from adapters import base


def _sample(name: str, operation: str):
    labels = {"store": "test", "operation": operation}
    return REGISTRY.get_sample_value(name, labels) or 0.0


@pytest.mark.asyncio
async def test_tracked_call_observes_latency():
    before = _sample("limiter_store_operation_seconds_count", "ok")
    async with base.tracked_call("test", "ok"):
        pass
    assert _sample("limiter_store_operation_seconds_count", "ok") == before + 1


@pytest.mark.asyncio
async def test_tracked_call_counts_and_reraises_errors():
    errors_before = _sample("limiter_store_errors_total", "boom")
    calls_before = _sample("limiter_store_operation_seconds_count", "boom")

    with pytest.raises(RuntimeError, match="boom"):
        async with base.tracked_call("test", "boom"):
            raise RuntimeError("boom")

    assert _sample("limiter_store_errors_total", "boom") == errors_before + 1
    assert _sample("limiter_store_operation_seconds_count", "boom") == calls_before + 1


def test_counter_ttl_floor_matches_day_window():
    from limiter import Granularity

    assert base.MIN_COUNTER_TTL_SECONDS == Granularity.DAY.seconds
