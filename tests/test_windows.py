from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest

from limiter import Granularity, window_buckets, window_keys

SCENARIO_NOW = datetime(2024, 2, 29, 23, 11, 11, tzinfo=timezone.utc)

EXPECTED_SIZES = {
    Granularity.SECOND: 1,
    Granularity.MINUTE: 60,
    Granularity.HOUR: 119,
    Granularity.DAY: 142,
}

# Offsets chosen to hit second/minute/hour/day/month/year boundaries.
CLOCKS = [
    SCENARIO_NOW,
    datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc),
    datetime(2023, 12, 31, 23, 59, 59, tzinfo=timezone.utc),
    datetime(2024, 3, 1, 0, 0, 1, tzinfo=timezone.utc),
    datetime(2024, 6, 15, 12, 59, 0, tzinfo=timezone.utc),
    datetime(2024, 6, 15, 12, 0, 59, tzinfo=timezone.utc),
    datetime(2025, 7, 4, 8, 30, 30, 999999, tzinfo=timezone.utc),
]


def _covered_seconds(now: datetime, granularity: Granularity) -> Counter:
    seconds: Counter = Counter()
    for bucket in window_buckets(now, granularity):
        seconds.update(bucket.seconds_covered())
    return seconds


@pytest.mark.parametrize("now", CLOCKS)
@pytest.mark.parametrize("granularity", list(Granularity))
def test_window_size_does_not_depend_on_clock(now, granularity):
    assert len(window_buckets(now, granularity)) == EXPECTED_SIZES[granularity]


@pytest.mark.parametrize("now", CLOCKS)
@pytest.mark.parametrize("granularity", list(Granularity))
def test_window_covers_each_second_exactly_once(now, granularity):
    covered = _covered_seconds(now, granularity)
    end = now.replace(microsecond=0)
    expected = {end - timedelta(seconds=i) for i in range(1, granularity.seconds + 1)}

    assert set(covered) == expected
    assert set(covered.values()) == {1}


def test_window_covers_every_second_offset_in_a_day():
    base = datetime(2024, 2, 29, 23, 0, 0, tzinfo=timezone.utc)
    for offset in range(0, 3600, 397):
        now = base + timedelta(seconds=offset)
        covered = _covered_seconds(now, Granularity.DAY)
        assert len(covered) == 86400
        assert max(covered.values()) == 1
        assert len(window_buckets(now, Granularity.HOUR)) == 119


def test_window_is_deterministic():
    first = window_keys("m", SCENARIO_NOW, Granularity.DAY)
    second = window_keys("m", SCENARIO_NOW, Granularity.DAY)
    assert first == second


def test_naive_and_aware_clocks_agree_in_utc():
    aware = SCENARIO_NOW.astimezone(timezone(timedelta(hours=7)))
    naive = SCENARIO_NOW.replace(tzinfo=None)
    assert window_keys("m", aware, Granularity.HOUR) == window_keys(
        "m", naive, Granularity.HOUR
    )


def test_second_window_keys():
    assert window_keys("m", SCENARIO_NOW, Granularity.SECOND) == ["m:20240229231110"]


def test_minute_window_keys():
    keys = window_keys("m", SCENARIO_NOW, Granularity.MINUTE)

    assert len(keys) == 60
    assert keys[0] == "m:20240229231011"
    assert keys[48] == "m:20240229231059"
    assert keys[49] == "m:20240229231100"
    assert keys[-1] == "m:20240229231110"


def test_hour_window_keys():
    keys = window_keys("m", SCENARIO_NOW, Granularity.HOUR)

    head = [f"m:202402292211{s:02d}" for s in range(11, 60)]
    middle = [f"m:20240229{h:02d}{mi:02d}" for h, mi in _minutes(22, 12, 59)]
    tail = [f"m:202402292311{s:02d}" for s in range(0, 11)]
    assert keys == head + middle + tail


def test_day_window_keys():
    keys = window_keys("m", SCENARIO_NOW, Granularity.DAY)

    head_seconds = [f"m:202402282311{s:02d}" for s in range(11, 60)]
    head_minutes = [f"m:2024022823{mi:02d}" for mi in range(12, 60)]
    hours = [f"m:20240229{h:02d}" for h in range(0, 23)]
    tail_minutes = [f"m:2024022923{mi:02d}" for mi in range(0, 11)]
    tail_seconds = [f"m:202402292311{s:02d}" for s in range(0, 11)]

    assert keys == head_seconds + head_minutes + hours + tail_minutes + tail_seconds
    assert keys[0] == "m:20240228231111"
    assert keys[-1] == "m:20240229231110"


def test_day_window_on_hour_boundary_uses_only_hours_and_head():
    now = datetime(2024, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
    buckets = window_buckets(now, Granularity.DAY)

    granularities = Counter(bucket.granularity for bucket in buckets)
    assert granularities == {
        Granularity.SECOND: 60,
        Granularity.MINUTE: 59,
        Granularity.HOUR: 23,
    }


def test_bucket_timestamp_matches_key_suffix():
    bucket = window_buckets(SCENARIO_NOW, Granularity.DAY)[97]
    assert bucket.granularity is Granularity.HOUR
    assert bucket.key("m") == f"m:{bucket.timestamp}"


def _minutes(hour: int, start_minute: int, count: int):
    moment = datetime(2024, 2, 29, hour, start_minute)
    for i in range(count):
        current = moment + timedelta(minutes=i)
        yield current.hour, current.minute
