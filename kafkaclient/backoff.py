"""Exponential backoff with jitter for retrying broker requests."""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BackoffConfig:
    """Backoff settings; durations are in seconds."""

    init_backoff: float = 0.1
    max_backoff: float = 500.0
    base: float = 3.0


@dataclass(frozen=True)
class Throttle:
    """A pause requested by the broker, in seconds; it does not grow the backoff."""

    duration: float


class _RandomSource(Protocol):
    def random(self) -> float: ...


class Backoff:
    """Yields growing, jittered delays between retries."""

    def __init__(
        self,
        config: Optional[BackoffConfig] = None,
        rng: Optional[_RandomSource] = None,
    ) -> None:
        config = config if config is not None else BackoffConfig()
        self._init_backoff = config.init_backoff
        self._next_backoff = config.init_backoff
        self._max_backoff = config.max_backoff
        self._base = config.base
        self._rng: _RandomSource = rng if rng is not None else random.Random()

    def __repr__(self) -> str:
        return (
            f"Backoff(init_backoff={self._init_backoff!r}, "
            f"next_backoff={self._next_backoff!r}, "
            f"max_backoff={self._max_backoff!r}, base={self._base!r})"
        )

    def next_backoff(self) -> float:
        """Return the next delay to wait for, in seconds."""
        low = self._init_backoff
        high = self._next_backoff * self._base
        jittered = low + self._rng.random() * (high - low)
        current = self._next_backoff
        self._next_backoff = min(self._max_backoff, jittered)
        return current

    async def retry_with_backoff(
        self,
        request_name: str,
        do_stuff: Callable[[], Awaitable[Any]],
    ) -> Any:
        """Run ``do_stuff`` until it yields a final result.

        ``do_stuff`` is awaited repeatedly. If it returns a :class:`Throttle`,
        the broker-requested duration is slept. If it returns an exception
        instance, the error is treated as non-fatal and the next backoff delay
        is slept. Any other return value is the result. Exceptions raised by
        ``do_stuff`` are fatal and propagate unchanged.
        """
        while True:
            outcome = await do_stuff()
            if isinstance(outcome, Throttle):
                logger.info(
                    "broker asked us to throttle (request=%s, throttle=%ss)",
                    request_name,
                    outcome.duration,
                )
                delay = outcome.duration
            elif isinstance(outcome, BaseException):
                delay = self.next_backoff()
                logger.info(
                    "request encountered non-fatal error - backing off "
                    "(request=%s, error=%s, backoff_secs=%d)",
                    request_name,
                    outcome,
                    int(delay),
                )
            else:
                return outcome
            await asyncio.sleep(delay)