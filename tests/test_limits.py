import pytest

from limiter import Granularity, LimitTable, LookupStatus


def test_lookup_distinguishes_missing_entity_from_missing_limit():
    table = LimitTable.from_mapping({"known": {"minute": 10}, "empty": {}})

    found = table.lookup("known", Granularity.MINUTE)
    assert found.found
    assert found.threshold == 10

    assert table.lookup("known", Granularity.DAY).status is LookupStatus.LIMIT_NOT_CONFIGURED
    assert table.lookup("empty", Granularity.DAY).status is LookupStatus.LIMIT_NOT_CONFIGURED
    missing = table.lookup("unknown", Granularity.DAY)
    assert missing.status is LookupStatus.ENTITY_NOT_CONFIGURED
    assert missing.threshold is None


def test_entities_and_granularities(limits):
    assert limits.entities() == ["metric_test"]
    assert limits.has_entity("metric_test")
    assert not limits.has_entity("other")
    assert limits.granularities("metric_test") == [
        Granularity.SECOND,
        Granularity.MINUTE,
        Granularity.HOUR,
        Granularity.DAY,
    ]
    assert limits.coarsest("metric_test") is Granularity.DAY


def test_coarsest_of_partial_and_empty_entities():
    table = LimitTable.from_mapping({"a": {"second": 1, "hour": 2}, "b": {}})
    assert table.coarsest("a") is Granularity.HOUR
    assert table.coarsest("b") is None


def test_table_is_immutable():
    source = {"a": {Granularity.SECOND: 1}}
    table = LimitTable.from_mapping(source)
    source["a"][Granularity.SECOND] = 100
    source["b"] = {}

    assert table.lookup("a", Granularity.SECOND).threshold == 1
    assert not table.has_entity("b")
    with pytest.raises(AttributeError):
        table._entities = frozenset()  # type: ignore[misc]


def test_direct_construction_copies_mutable_inputs():
    limits = {("a", Granularity.MINUTE): 10}
    entities = {"a"}
    table = LimitTable(limits, entities)  # type: ignore[arg-type]

    limits[("a", Granularity.MINUTE)] = 1000
    limits[("a", Granularity.HOUR)] = 5
    entities.add("b")

    assert table.lookup("a", Granularity.MINUTE).threshold == 10
    assert table.granularities("a") == [Granularity.MINUTE]
    assert not table.has_entity("b")
    with pytest.raises(TypeError):
        table._limits[("a", Granularity.DAY)] = 1  # type: ignore[index]


@pytest.mark.parametrize("threshold", [-1, 1.5, "10", True])
def test_invalid_thresholds_raise(threshold):
    with pytest.raises(ValueError):
        LimitTable.from_mapping({"a": {"second": threshold}})


def test_empty_entity_name_raises():
    with pytest.raises(ValueError):
        LimitTable.from_mapping({"": {"second": 1}})
