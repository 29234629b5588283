from firehose.config import FirehoseConfig, SourceConfig
from firehose.errors import (
    DecodeError,
    FatalSourceFailure,
    FirehoseError,
    MalformedFrame,
    MalformedTimestamp,
    NoMoreRecords,
    SchemaDrift,
)
from firehose.pipeline import ConnectionState, StatusStream, open_stream
from firehose.records import DeleteNotice, StatusRecord, Tweet, UnknownRecord, User

__version__ = "0.1.0"

__all__ = [
    "ConnectionState",
    "DecodeError",
    "DeleteNotice",
    "FatalSourceFailure",
    "FirehoseConfig",
    "FirehoseError",
    "MalformedFrame",
    "MalformedTimestamp",
    "NoMoreRecords",
    "SchemaDrift",
    "SourceConfig",
    "StatusRecord",
    "StatusStream",
    "Tweet",
    "UnknownRecord",
    "User",
    "open_stream",
]
