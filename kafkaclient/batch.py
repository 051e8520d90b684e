"""Batches produce inputs and writes them to a partition in the background."""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Sequence, Union

from .aggregator import Aggregated, Aggregator, NoCapacity, StatusDeaggregator, TryPush
from .broadcast import BroadcastDropped, BroadcastOnce, BroadcastOnceReceiver

logger = logging.getLogger(__name__)


class Compression(enum.Enum):
    """Compression applied to produced record batches."""

    NO_COMPRESSION = "none"
    GZIP = "gzip"
    LZ4 = "lz4"
    SNAPPY = "snappy"
    ZSTD = "zstd"


class ProducerError(Exception):
    """Base class of errors seen by producers."""


class FlushError(ProducerError):
    """The batch was never written."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(f"Flush error: {message}")


class AggregatorFailure(ProducerError):
    """The aggregator or deaggregator raised an error."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Aggregator error: {cause}")


class ProduceFailure(ProducerError):
    """Writing the batch to the broker failed."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Client error: {cause}")


class _ProducerClient(Protocol):
    async def produce(self, records: List[Any], compression: Compression) -> List[int]: ...


@dataclass(frozen=True)
class AggregatedStatus:
    """The offsets of a written batch and the deaggregator that splits them."""

    aggregated_status: Sequence[int]
    status_deagg: StatusDeaggregator


BatchWriteResult = Union[AggregatedStatus, ProducerError]


class ResultHandle:
    """Handle for one pushed input, used to fetch its produce result."""

    def __init__(self, receiver: BroadcastOnceReceiver, tag: Any) -> None:
        self._receiver = receiver
        self.tag = tag

    async def wait(self) -> BatchWriteResult:
        """Wait until the batch is written or fails.

        Returns the batch outcome, which is an :class:`AggregatedStatus` or a
        :class:`ProducerError`. Raises :class:`FlushError` if the batch was
        dropped without an outcome.
        """
        try:
            return await self._receiver.receive()
        except BroadcastDropped as exc:
            raise FlushError(str(exc)) from exc

    def result(self, status: BatchWriteResult) -> Any:
        """Return this input's status from the batch outcome, or raise its error."""
        if isinstance(status, BaseException):
            raise status
        try:
            return status.status_deagg.deaggregate(status.aggregated_status, self.tag)
        except Exception as exc:
            raise AggregatorFailure(exc) from exc


@dataclass
class FlushResult:
    """Outcome of a flush: always a fresh builder, plus the write task or an error."""

    builder: "BatchBuilder"
    task: Optional[asyncio.Task] = None
    error: Optional[ProducerError] = None


class BatchBuilder:
    """Fills an aggregator and hands out result handles for each input."""

    def __init__(self, aggregator: Aggregator) -> None:
        self._aggregator = aggregator
        self._results: BroadcastOnce = BroadcastOnce()

    def __repr__(self) -> str:
        return f"BatchBuilder(aggregator={self._aggregator!r})"

    def try_push(self, data: Any) -> TryPush:
        """Push ``data``; return :class:`Aggregated` holding a :class:`ResultHandle`,
        or :class:`NoCapacity` holding ``data`` when the batch should be flushed."""
        try:
            outcome = self._aggregator.try_push(data)
        except Exception as exc:
            raise AggregatorFailure(exc) from exc
        if isinstance(outcome, NoCapacity):
            return outcome
        return Aggregated(ResultHandle(self._results.receiver(), outcome.tag))

    def background_flush(self, client: _ProducerClient, compression: Compression) -> FlushResult:
        """Start writing the batch and return a fresh builder for the next one.

        Must be called from a running event loop when there is data to write.
        """
        results = self._results
        try:
            batch, status_deagg = self._aggregator.flush()
        except Exception as exc:
            results.close()
            return FlushResult(BatchBuilder(self._aggregator), error=AggregatorFailure(exc))

        if not batch:
            logger.debug("No data aggregated, skipping client request (client=%r)", client)
            results.broadcast(AggregatedStatus([], status_deagg))
            return FlushResult(BatchBuilder(self._aggregator))

        async def write() -> None:
            with results:
                try:
                    status = await client.produce(batch, compression)
                    outcome: BatchWriteResult = AggregatedStatus(list(status), status_deagg)
                except Exception as exc:
                    logger.error("Failed to produce records (client=%r): %r", client, exc)
                    outcome = ProduceFailure(exc)
                results.broadcast(outcome)

        task = asyncio.get_running_loop().create_task(write())
        return FlushResult(BatchBuilder(self._aggregator), task=task)