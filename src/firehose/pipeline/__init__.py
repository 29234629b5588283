from firehose.pipeline.producer import Producer
from firehose.pipeline.relay import ConnectionState, RelayQueue
from firehose.pipeline.stream import StatusStream, StreamState, iter_records, open_stream

__all__ = [
    "ConnectionState",
    "Producer",
    "RelayQueue",
    "StatusStream",
    "StreamState",
    "iter_records",
    "open_stream",
]
