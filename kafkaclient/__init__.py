"""Asyncio building blocks for a Kafka client: backoff, broadcast, metadata cache, batching and consumption."""

__version__ = "0.4.0"

__all__ = [
    "aggregator",
    "backoff",
    "batch",
    "broadcast",
    "consumer",
    "errors",
    "metadata_cache",
    "offsets",
]