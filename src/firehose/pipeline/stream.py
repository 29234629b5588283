from __future__ import annotations

import asyncio
import enum
import logging
from collections.abc import AsyncIterator, Iterator
from typing import Any

from firehose.config import FirehoseConfig
from firehose.errors import DecodeError, NoMoreRecords, RelayClosed
from firehose.pipeline.producer import Producer
from firehose.pipeline.relay import RelayQueue
from firehose.records.decoder import RecordDecoder
from firehose.records.models import StatusRecord
from firehose.transport.base import ByteSource
from firehose.transport.concat import ConcatenatedJsonFramer

logger = logging.getLogger(__name__)


class StreamState(enum.Enum):
    HAS_MORE = "has_more"
    EXHAUSTED = "exhausted"


class StatusStream:
    """Forward-only cursor over a live feed.

    next_record() blocks until a record is decoded or the feed has ended and
    every queued value was handed out. Values that fail to decode are logged
    and skipped, so a bad record is never mistaken for the end of the stream.
    """

    def __init__(
        self,
        relay: RelayQueue,
        decoder: RecordDecoder | None = None,
        *,
        producer: Producer | None = None,
        source: Any = None,
    ) -> None:
        self._relay = relay
        self._decoder = decoder or RecordDecoder()
        self._producer = producer
        self._source = source
        self.skipped = 0

    @property
    def state(self) -> StreamState:
        return StreamState.EXHAUSTED if self._relay.is_exhausted() else StreamState.HAS_MORE

    @property
    def producer(self) -> Producer | None:
        return self._producer

    def has_next(self) -> bool:
        """Non-blocking; False only once the feed is disconnected and drained.

        True does not promise next_record() succeeds: the remaining values may
        all fail to decode.
        """
        return not self._relay.is_exhausted()

    def next_record(self, timeout: float | None = None) -> StatusRecord:
        """Block for the next decoded record.

        Raises NoMoreRecords once exhausted, TimeoutError if a finite timeout
        elapses with nothing queued.
        """
        while True:
            try:
                raw = self._relay.take(timeout)
            except RelayClosed:
                raise NoMoreRecords("No more statuses to return") from None
            try:
                return self._decoder.decode(raw)
            except DecodeError as e:
                if self._decoder.is_fatal(e):
                    raise
                self.skipped += 1
                logger.warning("Failed to decode status: %s", e)

    def __iter__(self) -> StatusStream:
        return self

    def __next__(self) -> StatusRecord:
        try:
            return self.next_record()
        except NoMoreRecords:
            raise StopIteration from None

    def __aiter__(self) -> AsyncIterator[StatusRecord]:
        return self._aiter()

    async def _aiter(self) -> AsyncIterator[StatusRecord]:
        while True:
            try:
                yield await asyncio.to_thread(self.next_record)
            except NoMoreRecords:
                return

    def close(self) -> None:
        """Close the byte source, which ends the producer's read loop."""
        close = getattr(self._source, "close", None)
        if close is not None:
            close()

    def __enter__(self) -> StatusStream:
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        self.close()
        return False


def open_stream(source: ByteSource, cfg: FirehoseConfig | None = None) -> StatusStream:
    """Wire framer, relay, producer and decoder over a byte source and start reading."""
    cfg = cfg or FirehoseConfig()
    framer = ConcatenatedJsonFramer(
        source,
        chunk_size=cfg.source.chunk_size,
        max_frame_bytes=cfg.max_frame_bytes,
    )
    relay = RelayQueue(cfg.queue_capacity)
    producer = Producer(framer, relay, name=cfg.name)
    decoder = RecordDecoder(cfg.drift_policy)
    producer.start()
    return StatusStream(relay, decoder, producer=producer, source=source)


def iter_records(
    source: ByteSource, cfg: FirehoseConfig | None = None
) -> Iterator[StatusRecord]:
    """Decode a captured body on the calling thread, without the relay.

    A file has no upstream to keep pace with, so nothing is dropped here.
    Malformed frames and undecodable values are logged and skipped.
    """
    cfg = cfg or FirehoseConfig()
    framer = ConcatenatedJsonFramer(
        source,
        chunk_size=cfg.source.chunk_size,
        max_frame_bytes=cfg.max_frame_bytes,
    )
    decoder = RecordDecoder(cfg.drift_policy)
    for raw in framer:
        try:
            yield decoder.decode(raw)
        except DecodeError as e:
            if decoder.is_fatal(e):
                raise
            logger.warning("Failed to decode status: %s", e)
