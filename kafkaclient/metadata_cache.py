"""Look-aside cache for cluster metadata responses."""

from __future__ import annotations

import copy
import dataclasses
import logging
import threading
from typing import Any, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)


def _with_topics(metadata: Any, topics: list) -> Any:
    if dataclasses.is_dataclass(metadata) and not isinstance(metadata, type):
        return dataclasses.replace(metadata, topics=topics)
    metadata.topics = topics
    return metadata


class MetadataCache:
    """Holds the latest metadata response together with a generation counter.

    The generation guards against invalidating a newer entry with a request
    based on an older one. The cached object must expose a ``topics`` list
    whose items carry a ``name`` string.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._metadata: Optional[Any] = None
        self._generation = 0

    def get(self, topics: Optional[Sequence[str]] = None) -> Optional[Tuple[Any, int]]:
        """Return a copy of the cached metadata and its generation, or None.

        With ``topics`` given, only those topics are kept. If any requested
        topic is missing from the cached entry, the cache is invalidated and
        None is returned.
        """
        with self._lock:
            if self._metadata is None:
                return None
            metadata = copy.deepcopy(self._metadata)
            generation = self._generation

        if topics is not None:
            wanted = list(topics)
            filtered = [t for t in metadata.topics if t.name in wanted]
            metadata = _with_topics(metadata, filtered)
            if len(filtered) != len(wanted):
                logger.debug("cached metadata query for unknown topic")
                self.invalidate("get from metadata cache: unknown topic", generation)
                return None

        logger.debug("using cached metadata response: %r", metadata)
        return metadata, generation

    def invalidate(self, reason: str, generation: int) -> None:
        """Drop the cached entry if it still belongs to ``generation``."""
        with self._lock:
            if self._generation != generation:
                logger.debug(
                    "stale invalidation request for metadata cache "
                    "(reason=%s, current_gen=%d, request_gen=%d)",
                    reason,
                    self._generation,
                    generation,
                )
                return
            self._metadata = None
        logger.info("invalidated metadata cache (reason=%s)", reason)

    def update(self, metadata: Any) -> None:
        """Store a fresh metadata response and start a new generation."""
        with self._lock:
            self._metadata = copy.deepcopy(metadata)
            self._generation += 1
        logger.debug("updated metadata cache")