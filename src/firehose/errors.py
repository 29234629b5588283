from __future__ import annotations


class FirehoseError(Exception):
    """Base class for all pipeline errors."""


class MalformedFrame(FirehoseError):
    """One fragment of the byte stream did not form a valid JSON value."""

    def __init__(self, fragment: str, reason: str | None = None) -> None:
        self.fragment = fragment
        self.reason = reason
        msg = f"Malformed JSON frame ({len(fragment)} chars)"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class FatalSourceFailure(FirehoseError):
    """The byte source errored or can no longer produce data."""


class SourceExhausted(FatalSourceFailure):
    """The byte source reached end of input."""

    def __init__(self, partial: str = "") -> None:
        self.partial = partial
        msg = "Byte source exhausted"
        if partial:
            msg += f" with {len(partial)} chars of an incomplete value"
        super().__init__(msg)


class DecodeError(FirehoseError):
    """A raw value could not be mapped into a status record."""


class SchemaDrift(DecodeError):
    def __init__(self, key: str, container: str, path: tuple[str, ...] = ()) -> None:
        self.key = key
        self.container = container
        self.path = path
        where = ".".join((*path, key))
        super().__init__(f"Unrecognized field {key!r} in {container} (at {where})")


class MalformedTimestamp(DecodeError):
    def __init__(self, field: str, value: object) -> None:
        self.field = field
        self.value = value
        super().__init__(f"Malformed timestamp in {field!r}: {value!r}")


class InvalidRecord(DecodeError):
    """Known fields carried values of the wrong type."""


class QueueFull(FirehoseError):
    pass


class RelayClosed(FirehoseError):
    """The relay is disconnected and holds no more values."""


class NoMoreRecords(FirehoseError):
    """The stream is disconnected and fully drained."""


__all__ = [
    "FirehoseError",
    "MalformedFrame",
    "FatalSourceFailure",
    "SourceExhausted",
    "DecodeError",
    "SchemaDrift",
    "MalformedTimestamp",
    "InvalidRecord",
    "QueueFull",
    "RelayClosed",
    "NoMoreRecords",
]
