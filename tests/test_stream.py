import io
import json
import threading
from unittest.mock import Mock

import pytest

from firehose.config import FirehoseConfig
from firehose.errors import NoMoreRecords, SchemaDrift
from firehose.pipeline.relay import ConnectionState, RelayQueue
from firehose.pipeline.stream import StatusStream, StreamState, iter_records, open_stream
from firehose.records.decoder import RecordDecoder
from firehose.records.models import DeleteNotice, Tweet, UnknownRecord

TWEET = {"text": "hi", "user": {"screen_name": "bob", "name": "Bob"}}
DELETE = {"delete": {"status": {"id": "1", "user_id": "2"}}}
LIMIT = {"limit": {"track": 12}}
BAD_DATE = {"text": "late", "created_at": "not-a-date"}


def body(*objs) -> bytes:
    return b"".join(json.dumps(o).encode("utf-8") for o in objs)


def stream_over(*raws, policy="fallback"):
    relay = RelayQueue(capacity=max(len(raws), 1))
    for raw in raws:
        assert relay.offer(raw)
    relay.disconnect()
    return StatusStream(relay, RecordDecoder(policy))


def test_open_stream_yields_records_in_order():
    with open_stream(io.BytesIO(body(TWEET, DELETE, LIMIT))) as stream:
        records = list(stream)
    assert [type(r) for r in records] == [Tweet, DeleteNotice, UnknownRecord]
    assert records[0].user.screen_name == "bob"
    assert records[1] == DeleteNotice(status_id="1", user_id="2")
    assert records[2].raw == LIMIT
    assert stream.producer.state is ConnectionState.DISCONNECTED
    assert stream.state is StreamState.EXHAUSTED


def test_truncated_source_drains_then_ends():
    stream = open_stream(io.BytesIO(body(TWEET, DELETE) + b'{"text":"cut o'))
    assert isinstance(stream.next_record(), Tweet)
    assert isinstance(stream.next_record(), DeleteNotice)
    with pytest.raises(NoMoreRecords):
        stream.next_record()
    # Exhaustion is terminal
    with pytest.raises(NoMoreRecords):
        stream.next_record()
    assert stream.has_next() is False


def test_queued_records_are_returned_before_exhaustion():
    stream = stream_over(TWEET, DELETE)
    assert stream.has_next() is True
    assert stream.state is StreamState.HAS_MORE
    assert isinstance(stream.next_record(), Tweet)
    assert stream.has_next() is True
    assert isinstance(stream.next_record(), DeleteNotice)
    assert stream.has_next() is False
    with pytest.raises(NoMoreRecords):
        stream.next_record()


def test_decode_failure_is_skipped_not_end_of_stream(caplog):
    stream = stream_over(BAD_DATE, TWEET)
    assert isinstance(stream.next_record(), Tweet)
    assert stream.skipped == 1
    assert "Failed to decode status" in caplog.text


def test_trailing_bad_record_still_ends_with_no_more_records():
    stream = stream_over(TWEET, BAD_DATE)
    assert list(stream) == [Tweet.model_validate(TWEET)]
    assert stream.skipped == 1


def test_skip_policy_drops_drifted_records():
    stream = stream_over({**TWEET, "new_field": 1}, DELETE, policy="skip")
    assert list(stream) == [DeleteNotice(status_id="1", user_id="2")]


def test_fatal_policy_escalates_schema_drift():
    stream = stream_over({**TWEET, "new_field": 1}, DELETE, policy="fatal")
    with pytest.raises(SchemaDrift):
        stream.next_record()
    # The stream itself is still usable
    assert isinstance(stream.next_record(), DeleteNotice)


def test_blocked_consumer_is_released_by_disconnect():
    relay = RelayQueue(capacity=5)
    stream = StatusStream(relay)
    outcome = []

    def consume():
        try:
            stream.next_record()
        except NoMoreRecords:
            outcome.append("done")

    t = threading.Thread(target=consume)
    t.start()
    relay.disconnect()
    t.join(timeout=5)
    assert not t.is_alive()
    assert outcome == ["done"]


def test_concurrent_consumers_share_records_without_hanging():
    relay = RelayQueue(capacity=200)
    stream = StatusStream(relay)
    results: list[list] = [[] for _ in range(4)]

    def consume(bucket):
        bucket.extend(stream)

    threads = [threading.Thread(target=consume, args=(b,)) for b in results]
    for t in threads:
        t.start()
    for i in range(100):
        assert relay.offer({"text": str(i), "user": {"screen_name": "u"}})
    relay.disconnect()
    for t in threads:
        t.join(timeout=5)
    assert not any(t.is_alive() for t in threads)
    texts = sorted(int(r.text) for bucket in results for r in bucket)
    assert texts == list(range(100))


def test_next_record_timeout():
    stream = StatusStream(RelayQueue(capacity=1))
    with pytest.raises(TimeoutError):
        stream.next_record(timeout=0.01)


def test_context_exit_closes_source():
    source = Mock()
    stream = StatusStream(RelayQueue(capacity=1), source=source)
    with stream:
        pass
    source.close.assert_called_once()


def test_open_stream_uses_config():
    cfg = FirehoseConfig(queue_capacity=2, drift_policy="skip")
    stream = open_stream(io.BytesIO(body(*([TWEET] * 5))), cfg)
    stream.producer.join(timeout=5)
    assert len(list(stream)) == 2


@pytest.mark.asyncio
async def test_async_iteration():
    stream = open_stream(io.BytesIO(body(TWEET, DELETE)))
    records = [r async for r in stream]
    assert [r.kind for r in records] == ["tweet", "delete"]


def test_iter_records_decodes_synchronously(caplog):
    data = body(TWEET, BAD_DATE) + b"{broken}" + body(*([DELETE] * 60))
    records = list(iter_records(io.BytesIO(data)))
    assert isinstance(records[0], Tweet)
    assert len(records) == 61
    assert "Skipping malformed frame" in caplog.text


def test_iter_records_fatal_drift():
    cfg = FirehoseConfig(drift_policy="fatal")
    with pytest.raises(SchemaDrift):
        list(iter_records(io.BytesIO(body({**TWEET, "new_field": 1})), cfg))
