from dataclasses import dataclass, field, replace
from typing import Dict, Optional

import pytest

from kafkaclient.aggregator import (
    Aggregated,
    Aggregator,
    NoCapacity,
    RecordAggregator,
    RecordAggregatorStatusDeaggregator,
)


@dataclass
class Record:
    key: Optional[bytes]
    value: Optional[bytes]
    headers: Dict[str, bytes] = field(default_factory=dict)
    timestamp: int = 1337

    def approximate_size(self) -> int:
        return (
            len(self.key or b"")
            + len(self.value or b"")
            + sum(len(k) + len(v) for k, v in self.headers.items())
            + 8
        )


def test_record_aggregator():
    r1 = Record(key=bytes(45), value=bytes(2))
    r2 = replace(r1, value=bytes(34))

    assert r1.approximate_size() < r2.approximate_size()
    assert r2.approximate_size() < r2.approximate_size() * 2

    aggregator = RecordAggregator(r1.approximate_size() * 2)
    t1 = aggregator.try_push(r1).unwrap_tag()
    t2 = aggregator.try_push(r1).unwrap_tag()

    assert aggregator.try_push(r1).unwrap_input() == r1
    assert aggregator.try_push(r1).unwrap_input() == r1

    records, deagg = aggregator.flush()
    assert len(records) == 2
    assert deagg.deaggregate([10, 20], t1) == 10
    assert deagg.deaggregate([10, 20], t2) == 20

    t1 = aggregator.try_push(r1).unwrap_tag()
    records, deagg = aggregator.flush()
    assert len(records) == 1
    assert deagg.deaggregate([10], t1) == 10

    t1 = aggregator.try_push(r1).unwrap_tag()
    t2 = aggregator.try_push(r1).unwrap_tag()
    records, deagg = aggregator.flush()
    assert len(records) == 2
    assert deagg.deaggregate([10, 20], t1) == 10
    assert deagg.deaggregate([10, 20], t2) == 20

    records, _deagg = aggregator.flush()
    assert len(records) == 0

    aggregator.try_push(r1).unwrap_tag()
    assert aggregator.try_push(r2).unwrap_input() == r2
    assert len(aggregator.flush()[0]) == 1
    aggregator.try_push(r2).unwrap_tag()

    aggregator = RecordAggregator(r1.approximate_size())
    assert aggregator.try_push(r2).unwrap_input() == r2


def test_unwrap_input_ok():
    assert NoCapacity(42).unwrap_input() == 42


def test_unwrap_input_panic():
    with pytest.raises(ValueError, match="Aggregated"):
        Aggregated(42).unwrap_input()


def test_unwrap_tag_ok():
    assert Aggregated(42).unwrap_tag() == 42


def test_unwrap_tag_panic():
    with pytest.raises(ValueError, match="NoCapacity"):
        NoCapacity(42).unwrap_tag()


def test_flush_keeps_push_order():
    aggregator = RecordAggregator(1000)
    records = [Record(key=bytes([i]), value=None) for i in range(3)]
    tags = [aggregator.try_push(r).unwrap_tag() for r in records]
    flushed, _deagg = aggregator.flush()
    assert flushed == records
    assert tags == [0, 1, 2]


def test_deaggregator_out_of_range():
    with pytest.raises(IndexError):
        RecordAggregatorStatusDeaggregator().deaggregate([1], 3)


def test_aggregator_is_abstract():
    with pytest.raises(TypeError):
        Aggregator()