"""Stream consumption of a partition, starting at a chosen offset."""

from __future__ import annotations

import asyncio
import contextlib
import copy
import logging
from collections import deque
from typing import Any, Deque, List, Optional, Tuple

from .errors import ServerError
from .offsets import FetchClient, OffsetAt, StartOffset

logger = logging.getLogger(__name__)

_OFFSET_OUT_OF_RANGE_CODE = 1
_RETRY_BACKOFF_SECS = 1.0


def _is_offset_out_of_range(protocol_error: Any) -> bool:
    """True for the broker's "offset out of range" error, given as enum, code or name."""
    name = getattr(protocol_error, "name", None)
    if isinstance(name, str):
        return name.replace("_", "").lower() == "offsetoutofrange"
    if isinstance(protocol_error, bool):
        return False
    if isinstance(protocol_error, int):
        return protocol_error == _OFFSET_OUT_OF_RANGE_CODE
    if isinstance(protocol_error, str):
        return protocol_error.replace("_", "").lower() == "offsetoutofrange"
    return False


class StreamConsumerBuilder:
    """Configures and builds a :class:`StreamConsumer`.

    Defaults match common consumer settings: wait up to 500 ms, for at least
    1 byte, fetching at most 52428800 bytes per batch.
    """

    def __init__(self, client: FetchClient, start_offset: StartOffset) -> None:
        self._client = client
        self._start_offset = start_offset
        self._max_wait_ms = 500
        self._min_batch_size = 1
        self._max_batch_size = 52428800

    def __repr__(self) -> str:
        return (
            f"StreamConsumerBuilder(client={self._client!r}, "
            f"start_offset={self._start_offset!r}, max_wait_ms={self._max_wait_ms}, "
            f"min_batch_size={self._min_batch_size}, "
            f"max_batch_size={self._max_batch_size})"
        )

    def _replace(self, **changes: int) -> "StreamConsumerBuilder":
        builder = copy.copy(self)
        for name, value in changes.items():
            setattr(builder, name, value)
        return builder

    def with_min_batch_size(self, min_batch_size: int) -> "StreamConsumerBuilder":
        """Wait for at least ``min_batch_size`` bytes of data."""
        return self._replace(_min_batch_size=min_batch_size)

    def with_max_batch_size(self, max_batch_size: int) -> "StreamConsumerBuilder":
        """Fetch at most this amount of data in a single batch."""
        return self._replace(_max_batch_size=max_batch_size)

    def with_max_wait_ms(self, max_wait_ms: int) -> "StreamConsumerBuilder":
        """Wait at most this long for data before a fetch returns."""
        return self._replace(_max_wait_ms=max_wait_ms)

    def build(self) -> "StreamConsumer":
        """Create the stream."""
        return StreamConsumer(
            client=self._client,
            start_offset=self._start_offset,
            min_batch_size=self._min_batch_size,
            max_batch_size=self._max_batch_size,
            max_wait_ms=self._max_wait_ms,
        )


class StreamConsumer:
    """Async iterator of ``(record_and_offset, high_watermark)`` pairs.

    An error from the fetch client is raised once; the stream ends after it.
    The exception is an offset-out-of-range server error while starting at
    the earliest or latest offset: the offset is then resolved again after a
    short pause, since records may have been removed between the lookup and
    the fetch.

    A fetch in progress survives cancellation of the awaiting call, so
    wrapping iteration in timeouts loses no data.
    """

    def __init__(
        self,
        client: FetchClient,
        start_offset: StartOffset,
        min_batch_size: int,
        max_batch_size: int,
        max_wait_ms: int,
    ) -> None:
        self._client = client
        self._start_offset = start_offset
        self._min_batch_size = min_batch_size
        self._max_batch_size = max_batch_size
        self._max_wait_ms = max_wait_ms
        self._next_offset: Optional[int] = None
        self._next_backoff: Optional[float] = None
        self._terminated = False
        self._last_high_watermark = -1
        self._buffer: Deque[Any] = deque()
        self._fetch_task: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        return (
            f"StreamConsumer(client={self._client!r}, "
            f"min_batch_size={self._min_batch_size}, "
            f"max_batch_size={self._max_batch_size}, "
            f"max_wait_ms={self._max_wait_ms}, next_offset={self._next_offset!r}, "
            f"terminated={self._terminated}, "
            f"last_high_watermark={self._last_high_watermark}, "
            f"buffer={list(self._buffer)!r}, ...)"
        )

    def __aiter__(self) -> "StreamConsumer":
        return self

    async def _fetch(
        self, next_offset: Optional[int], backoff: Optional[float]
    ) -> Tuple[List[Any], int, int]:
        if backoff is not None:
            await asyncio.sleep(backoff)

        if next_offset is not None:
            offset = next_offset
        elif self._start_offset.offset_at is OffsetAt.EARLIEST:
            offset = await self._client.get_offset(OffsetAt.EARLIEST)
            logger.debug("resolved `earliest` offset: %d", offset)
        elif self._start_offset.offset_at is OffsetAt.LATEST:
            offset = await self._client.get_offset(OffsetAt.LATEST)
            logger.debug("resolved `latest` offset: %d", offset)
        else:
            offset = self._start_offset.offset

        records, watermark = await self._client.fetch_records(
            offset, self._min_batch_size, self._max_batch_size, self._max_wait_ms
        )
        return list(records), watermark, offset

    async def __anext__(self) -> Tuple[Any, int]:
        while True:
            if self._terminated:
                raise StopAsyncIteration
            if self._buffer:
                return self._buffer.popleft(), self._last_high_watermark

            if self._fetch_task is None:
                logger.debug(
                    "Fetching records at offset (start_offset=%r, next_offset=%r)",
                    self._start_offset,
                    self._next_offset,
                )
                backoff, self._next_backoff = self._next_backoff, None
                self._fetch_task = asyncio.get_running_loop().create_task(
                    self._fetch(self._next_offset, backoff)
                )

            task = self._fetch_task
            try:
                records, watermark, used_offset = await asyncio.shield(task)
            except asyncio.CancelledError:
                if task.done():
                    self._fetch_task = None
                raise
            except Exception as exc:
                self._fetch_task = None
                if (
                    isinstance(exc, ServerError)
                    and _is_offset_out_of_range(exc.protocol_error)
                    and self._start_offset.offset_at is not None
                ):
                    self._next_offset = None
                    logger.warning(
                        "Records are gone between ListOffsets and Fetch, backoff a bit "
                        "(start_offset=%r, backoff_secs=%d)",
                        self._start_offset,
                        int(_RETRY_BACKOFF_SECS),
                    )
                    self._next_backoff = _RETRY_BACKOFF_SECS
                    continue
                self._terminated = True
                raise

            self._fetch_task = None
            logger.debug(
                "Received records and a high watermark "
                "(high_watermark=%d, n_records=%d)",
                watermark,
                len(records),
            )
            # Keep the resolved offset so earliest/latest is not looked up again.
            self._next_offset = used_offset
            records.sort(key=lambda item: item.offset)
            self._last_high_watermark = watermark
            if records:
                self._next_offset = records[-1].offset + 1
                self._buffer.extend(records)

    async def aclose(self) -> None:
        """End the stream and cancel any fetch in progress."""
        self._terminated = True
        self._buffer.clear()
        task, self._fetch_task = self._fetch_task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError, Exception):
                await task