from firehose.transport.base import ByteSource, ValueFramer
from firehose.transport.concat import ConcatenatedJsonFramer

__all__ = ["ByteSource", "ValueFramer", "ConcatenatedJsonFramer"]
