"""A channel that publishes a single value to any number of receivers."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Generic, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class BroadcastDropped(Exception):
    """The sender was closed without publishing a value."""

    def __init__(self) -> None:
        super().__init__("BroadcastOnce dropped")


class _Shared(Generic[T]):
    def __init__(self) -> None:
        self.done = False
        self.value: Optional[T] = None
        self.error: Optional[BroadcastDropped] = None
        self.event = asyncio.Event()

    def publish(self, value: Any, error: Optional[BroadcastDropped]) -> None:
        self.value = value
        self.error = error
        self.done = True
        self.event.set()


class BroadcastOnceReceiver(Generic[T]):
    """Waits for the value published by a :class:`BroadcastOnce`."""

    def __init__(self, shared: _Shared[T]) -> None:
        self._shared = shared

    def peek(self) -> Optional[T]:
        """Return the published value, or None if nothing was published yet.

        Raises :class:`BroadcastDropped` if the sender was closed without a value.
        """
        if not self._shared.done:
            return None
        if self._shared.error is not None:
            raise BroadcastDropped()
        return self._shared.value

    async def receive(self) -> T:
        """Wait for the value; raise :class:`BroadcastDropped` if none will come."""
        if not self._shared.done:
            await self._shared.event.wait()
        if self._shared.error is not None:
            raise BroadcastDropped()
        return self._shared.value  # type: ignore[return-value]


class BroadcastOnce(Generic[T]):
    """Sender side: publish one value, or close to signal that none will come."""

    def __init__(self) -> None:
        self._shared: _Shared[T] = _Shared()

    def __enter__(self) -> "BroadcastOnce[T]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def receiver(self) -> BroadcastOnceReceiver[T]:
        """Return a new receiver for this channel."""
        return BroadcastOnceReceiver(self._shared)

    def broadcast(self, value: T) -> None:
        """Publish ``value`` to all receivers; a second publish is an error."""
        if self._shared.done:
            raise RuntimeError("double publish")
        self._shared.publish(value, None)

    def close(self) -> None:
        """Mark the channel dropped if nothing was published."""
        if not self._shared.done:
            logger.warning("BroadcastOnce dropped without producing")
            self._shared.publish(None, BroadcastDropped())