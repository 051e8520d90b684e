from dataclasses import dataclass, field
from typing import List, Optional

from kafkaclient.metadata_cache import MetadataCache


@dataclass
class Topic:
    name: str
    error: Optional[int] = None
    is_internal: Optional[bool] = None
    partitions: List[int] = field(default_factory=list)


@dataclass
class Response:
    throttle_time_ms: Optional[int] = None
    brokers: List[int] = field(default_factory=list)
    cluster_id: Optional[str] = None
    controller_id: Optional[int] = None
    topics: List[Topic] = field(default_factory=list)


def response_with_topics(topics=None):
    return Response(throttle_time_ms=42, topics=[Topic(name=t) for t in topics or []])


def test_get():
    cache = MetadataCache()
    assert cache.get(None) is None

    m = response_with_topics(None)
    cache.update(m)

    got, _gen = cache.get(None)
    assert got == m


def test_get_topic_subset_filtered():
    cache = MetadataCache()
    cache.update(response_with_topics(["bananas", "platanos"]))

    got, _gen = cache.get(["bananas"])
    assert got == response_with_topics(["bananas"])

    got, _gen = cache.get([])
    assert got == response_with_topics([])

    got, _gen = cache.get(None)
    assert got == response_with_topics(["bananas", "platanos"])


def test_get_missing_topic_invalidate():
    cache = MetadataCache()
    cache.update(response_with_topics(["bananas", "platanos"]))

    assert cache.get(["bananas"]) is not None
    assert cache.get(["goats"]) is None
    assert cache.get(["bananas"]) is None


def test_explicit_invalidate():
    cache = MetadataCache()
    cache.update(Response())

    _data, gen1 = cache.get(None)
    cache.invalidate("test", gen1)
    assert cache.get(None) is None

    cache.update(Response())
    _data, gen2 = cache.get(None)

    cache.invalidate("test", gen1)
    assert cache.get(None) == (Response(), gen2)

    cache.invalidate("test", gen2)
    assert cache.get(None) is None


def test_generation_grows_with_updates():
    cache = MetadataCache()
    cache.update(Response())
    _d, gen1 = cache.get(None)
    cache.update(Response())
    _d, gen2 = cache.get(None)
    assert gen2 > gen1


def test_returned_copy_does_not_alter_cache():
    cache = MetadataCache()
    cache.update(response_with_topics(["bananas"]))
    got, _gen = cache.get(None)
    got.topics.append(Topic(name="goats"))

    again, _gen = cache.get(None)
    assert [t.name for t in again.topics] == ["bananas"]