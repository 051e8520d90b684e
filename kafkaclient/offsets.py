"""Where a consumer starts reading, and the fetch interface it reads through."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass
from typing import Any, ClassVar, List, Optional, Tuple

_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


class OffsetAt(enum.Enum):
    """Which offset to ask the broker for.

    The values are the special timestamps the offset lookup sends.
    """

    EARLIEST = -2
    """Earliest record still kept; it moves when records are pruned or deleted."""

    LATEST = -1
    """The latest existing record."""


@dataclass(frozen=True)
class StartOffset:
    """Position at which a stream starts.

    Either a broker-resolved position (:attr:`EARLIEST`, :attr:`LATEST`) or
    a specific offset built with :meth:`at`. Starting at an offset the broker
    does not know ends the stream with an offset-out-of-range server error.
    """

    offset_at: Optional[OffsetAt] = None
    offset: Optional[int] = None

    EARLIEST: ClassVar["StartOffset"]
    LATEST: ClassVar["StartOffset"]

    def __post_init__(self) -> None:
        if (self.offset_at is None) == (self.offset is None):
            raise ValueError("exactly one of offset_at and offset must be given")
        if self.offset_at is not None and not isinstance(self.offset_at, OffsetAt):
            raise TypeError(f"offset_at must be an OffsetAt, got {self.offset_at!r}")
        if self.offset is not None:
            if isinstance(self.offset, bool) or not isinstance(self.offset, int):
                raise TypeError(f"offset must be an int, got {self.offset!r}")
            if not _INT64_MIN <= self.offset <= _INT64_MAX:
                raise ValueError(f"offset {self.offset} does not fit in 64 bits")

    @classmethod
    def at(cls, offset: int) -> "StartOffset":
        """Start at a specific offset."""
        return cls(offset=offset)

    def __repr__(self) -> str:
        if self.offset_at is not None:
            return f"StartOffset.{self.offset_at.name}"
        return f"StartOffset.at({self.offset})"


StartOffset.EARLIEST = StartOffset(offset_at=OffsetAt.EARLIEST)
StartOffset.LATEST = StartOffset(offset_at=OffsetAt.LATEST)


class FetchClient(abc.ABC):
    """Source of records for a stream consumer."""

    @abc.abstractmethod
    async def fetch_records(
        self,
        offset: int,
        min_bytes: int,
        max_bytes: int,
        max_wait_ms: int,
    ) -> Tuple[List[Any], int]:
        """Fetch records starting at ``offset``.

        Waits up to ``max_wait_ms`` for at least ``min_bytes`` of data and
        returns less than ``max_bytes``. Returns the records with their
        offsets and the current high watermark.
        """

    @abc.abstractmethod
    async def get_offset(self, at: OffsetAt) -> int:
        """Return the offset the broker reports for ``at``."""