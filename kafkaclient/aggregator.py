"""Aggregation of produce inputs into record batches."""

from __future__ import annotations

import abc
from dataclasses import dataclass, field
from typing import Any, ClassVar, Generic, List, Sequence, Tuple, TypeVar, Union

I = TypeVar("I")
T = TypeVar("T")


class AggregatorError(Exception):
    """Error raised by aggregator and deaggregator implementations."""


class _TryPushOutcome:
    """Shared unwrapping for the outcomes of ``try_push``."""

    _holds: ClassVar[str]

    def _unwrap(self, wanted: str) -> Any:
        if wanted != self._holds:
            raise ValueError(type(self).__name__)
        return getattr(self, wanted)


@dataclass(frozen=True)
class NoCapacity(_TryPushOutcome, Generic[I]):
    """The aggregator had no room; the input is handed back."""

    _holds: ClassVar[str] = "input"

    input: I

    def unwrap_input(self) -> I:
        """Return the rejected input."""
        return self._unwrap("input")

    def unwrap_tag(self) -> Any:
        """Raise ValueError: a rejected input has no tag."""
        return self._unwrap("tag")


@dataclass(frozen=True)
class Aggregated(_TryPushOutcome, Generic[T]):
    """The input was aggregated; the tag retrieves its status later."""

    _holds: ClassVar[str] = "tag"

    tag: T

    def unwrap_input(self) -> Any:
        """Raise ValueError: the input was taken by the aggregator."""
        return self._unwrap("input")

    def unwrap_tag(self) -> T:
        """Return the tag of the aggregated input."""
        return self._unwrap("tag")


TryPush = Union[NoCapacity, Aggregated]


class StatusDeaggregator(abc.ABC):
    """Splits the status of a produce call into per-input statuses."""

    @abc.abstractmethod
    def deaggregate(self, statuses: Sequence[int], tag: Any) -> Any:
        """Return the status belonging to ``tag``."""


class Aggregator(abc.ABC):
    """Collects inputs and flushes them as one list of records."""

    @abc.abstractmethod
    def try_push(self, record: Any) -> TryPush:
        """Add ``record``; return :class:`Aggregated` or :class:`NoCapacity`.

        The aggregator must only change when :class:`Aggregated` is returned.
        """

    @abc.abstractmethod
    def flush(self) -> Tuple[List[Any], StatusDeaggregator]:
        """Return the collected records and their deaggregator, and reset."""


@dataclass(frozen=True)
class RecordAggregatorStatusDeaggregator(StatusDeaggregator):
    """Maps a record's position in the batch to its offset."""

    def deaggregate(self, statuses: Sequence[int], tag: int) -> int:
        return statuses[tag]


@dataclass
class RecordAggregator(Aggregator):
    """Batches records up to ``max_batch_size`` approximate bytes."""

    max_batch_size: int
    _batch_size: int = field(default=0, init=False, repr=False)
    _records: List[Any] = field(default_factory=list, init=False, repr=False)

    def try_push(self, record: Any) -> TryPush:
        record_size = record.approximate_size()
        if self._batch_size + record_size > self.max_batch_size:
            return NoCapacity(record)
        tag = len(self._records)
        self._batch_size += record_size
        self._records.append(record)
        return Aggregated(tag)

    def flush(self) -> Tuple[List[Any], RecordAggregatorStatusDeaggregator]:
        records = self._records
        self._records = []
        self._batch_size = 0
        return records, RecordAggregatorStatusDeaggregator()