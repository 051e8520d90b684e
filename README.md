# kafkaclient

Asyncio building blocks for a Kafka client: retry with exponential backoff,
a one-shot broadcast channel, a metadata cache, record aggregation for
batched producing, and a stream consumer that follows a partition through a
fetch client you supply.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Backoff (`kafkaclient.backoff`)

`Backoff` takes a `BackoffConfig` (`init_backoff=0.1`, `max_backoff=500.0`
seconds, `base=3.0`) and an optional random source with a `random()` method.
`next_backoff()` returns the current delay in seconds and draws the next one
uniformly between `init_backoff` and `current * base`, capped at
`max_backoff`.

```python
from kafkaclient.backoff import Backoff, BackoffConfig

backoff = Backoff(BackoffConfig())
delay = backoff.next_backoff()   # 0.1 the first time
```

`await backoff.retry_with_backoff(request_name, do_stuff)` awaits
`do_stuff()` repeatedly:

- if it returns a `Throttle(duration)`, it sleeps that many seconds and tries
  again, without growing the backoff;
- if it returns an exception instance, the error is treated as non-fatal: it
  sleeps `next_backoff()` and tries again;
- any other return value is the result;
- an exception raised by `do_stuff` propagates unchanged.

## Broadcast channel (`kafkaclient.broadcast`)

`BroadcastOnce` publishes a single value to any number of receivers.
`receiver()` returns a `BroadcastOnceReceiver`; `broadcast(value)` publishes
(publishing twice raises `RuntimeError`); `close()` marks the channel dropped
if nothing was published. Used as a context manager it closes on exit.

`BroadcastOnceReceiver.peek()` returns the value or `None` if none has been
published; `await receive()` waits for it. Both raise `BroadcastDropped` once
the channel was closed without a value, and both can be called any number of
times.

## Metadata cache (`kafkaclient.metadata_cache`)

`MetadataCache` stores a metadata object that has a `topics` list whose items
have a `name`. `update(metadata)` stores a copy and starts a new generation.
`get(topics=None)` returns `(copy, generation)` or `None`; with a list of
topic names the copy keeps only those topics, and if any requested topic is
missing the cache is invalidated and `None` is returned.
`invalidate(reason, generation)` drops the entry only if `generation` is
still current.

## Producing in batches (`kafkaclient.aggregator`, `kafkaclient.batch`)

`RecordAggregator(max_batch_size)` collects records (objects with an
`approximate_size()` method) up to a byte budget. `try_push(record)` returns
`Aggregated(tag)`, where the tag is the record's position in the batch, or
`NoCapacity(record)` when it does not fit. `flush()` returns the records and
a `RecordAggregatorStatusDeaggregator`, whose `deaggregate(statuses, tag)`
returns `statuses[tag]`. Custom aggregators subclass `Aggregator` and
`StatusDeaggregator`; `unwrap_input()` and `unwrap_tag()` on the wrong
outcome raise `ValueError`.

`BatchBuilder(aggregator)` wraps an aggregator. `try_push(data)` returns
`Aggregated(ResultHandle)` or `NoCapacity(data)`.
`background_flush(client, compression)` must be called inside a running event
loop; it returns a `FlushResult` holding a fresh `builder`, the background
write `task` (or `None` when the batch was empty) and an `error` if the
aggregator failed. The client is any object with
`async produce(records, compression) -> list[int]`; `Compression` lists
`NO_COMPRESSION`, `GZIP`, `LZ4`, `SNAPPY` and `ZSTD`.

```python
outcome = builder.try_push(record)
handle = outcome.unwrap_tag()
flushed = builder.background_flush(client, Compression.NO_COMPRESSION)
builder = flushed.builder
status = await handle.wait()
offset = handle.result(status)
```

`ResultHandle.wait()` raises `FlushError` if the batch was dropped;
`result()` raises `ProduceFailure` if the write failed and
`AggregatorFailure` if deaggregation failed. All three derive from
`ProducerError`.

## Consuming (`kafkaclient.offsets`, `kafkaclient.consumer`)

Implement `FetchClient` with `async fetch_records(offset, min_bytes,
max_bytes, max_wait_ms)`, returning records that have an `offset` attribute
plus the high watermark, and `async get_offset(at)` for an `OffsetAt`
(`EARLIEST` or `LATEST`).

`StreamConsumerBuilder(client, start_offset)` takes a `StartOffset`
(`StartOffset.EARLIEST`, `StartOffset.LATEST` or `StartOffset.at(offset)`)
and defaults to `max_wait_ms=500`, `min_batch_size=1` and
`max_batch_size=52428800`; `with_max_wait_ms`, `with_min_batch_size` and
`with_max_batch_size` return a modified copy. `build()` creates a
`StreamConsumer`, an async iterator of `(record_and_offset, high_watermark)`
pairs, ordered by offset:

```python
from kafkaclient.consumer import StreamConsumerBuilder
from kafkaclient.offsets import StartOffset

stream = (
    StreamConsumerBuilder(client, StartOffset.EARLIEST)
    .with_max_wait_ms(100)
    .build()
)
async for record_and_offset, high_watermark in stream:
    ...
```

An error from the client is raised once and ends the stream. The exception
is a `ServerError` for an out-of-range offset when starting from the earliest
or latest offset: the offset is then resolved again after a one-second pause.
A fetch in progress survives cancellation of the awaiting call, so iteration
can be wrapped in timeouts. `aclose()` ends the stream and cancels any fetch.

## Errors (`kafkaclient.errors`)

`ClientError` is the base of `RequestError`, `InvalidResponseError`,
`ServerError` and `ClientTimeoutError`. `ServerError` carries the protocol
error, a request context (`TopicContext`, `PartitionContext` or
`FetchContext`), an optional broker message, optional response data
(`LeaderForward` or `PartitionFetchState`) and an `is_virtual` flag.
`exactly_one_topic(n)` and `exactly_one_partition(n)` build the
`InvalidResponseError` for a response of the wrong size. `DEFAULT_CLIENT_ID`
is `"kafkaclient"`.

## What this package does not do

It opens no network connections and does not encode or decode the Kafka wire
protocol. There is no broker connection, cluster client, partition client or
topic administration: the `FetchClient` a consumer reads through and the
producer client a `BatchBuilder` writes through must be supplied by you.