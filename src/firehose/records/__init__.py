from firehose.records.decoder import RecordDecoder, decode_record
from firehose.records.models import (
    DeleteNotice,
    StatusRecord,
    Tweet,
    UnknownRecord,
    User,
)

__all__ = [
    "DeleteNotice",
    "RecordDecoder",
    "StatusRecord",
    "Tweet",
    "UnknownRecord",
    "User",
    "decode_record",
]
