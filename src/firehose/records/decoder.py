from __future__ import annotations

import logging
from typing import Any, TypeVar, get_args

from pydantic import BaseModel, ValidationError

from firehose.config import DriftPolicy
from firehose.errors import DecodeError, InvalidRecord, MalformedTimestamp, SchemaDrift
from firehose.records.models import (
    DeleteMessage,
    DeleteNotice,
    StatusRecord,
    Tweet,
    UnknownRecord,
)

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

DELETE_MARKER = "delete"
# Top-level keys that mark an object as a status update.
TWEET_MARKERS = ("user", "text")


def _nested_model(annotation: Any) -> type[BaseModel] | None:
    if isinstance(annotation, type) and issubclass(annotation, BaseModel):
        return annotation
    for arg in get_args(annotation):
        found = _nested_model(arg)
        if found is not None:
            return found
    return None


def _container_name(model: type[BaseModel], path: tuple[str, ...]) -> str:
    """Name of the model reached by following wire keys from the root model."""
    current = model
    for part in path:
        nested = None
        for name, field in current.model_fields.items():
            if (field.alias or name) == part:
                nested = _nested_model(field.annotation)
                break
        if nested is None:
            break
        current = nested
    return current.__name__


def _translate(model: type[BaseModel], exc: ValidationError) -> DecodeError:
    errors = exc.errors()
    # Drift wins: a renamed field usually shows up as a type error elsewhere too.
    for err in errors:
        if err["type"] == "extra_forbidden":
            loc = tuple(str(p) for p in err["loc"])
            return SchemaDrift(loc[-1], _container_name(model, loc[:-1]), loc[:-1])
    for err in errors:
        if err["type"] == "malformed_timestamp":
            return MalformedTimestamp(".".join(str(p) for p in err["loc"]), err.get("input"))
    first = errors[0]
    where = ".".join(str(p) for p in first["loc"]) or model.__name__
    return InvalidRecord(
        f"{model.__name__} failed validation at {where}: {first['msg']} "
        f"({exc.error_count()} error(s))"
    )


def _validate(model: type[M], raw: dict[str, Any]) -> M:
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        raise _translate(model, e) from e


def decode_record(raw: Any) -> StatusRecord:
    """Classify one raw feed value and map it into a status record.

    Deletions are recognised by their wrapper key, status updates by an author
    or text field; anything else comes back as UnknownRecord. Within the known
    shapes every key must be part of the schema: an unrecognised one raises
    SchemaDrift, a date in the wrong format raises MalformedTimestamp.
    """
    if not isinstance(raw, dict):
        return UnknownRecord(raw=raw)
    if DELETE_MARKER in raw:
        msg = _validate(DeleteMessage, raw)
        status = msg.delete.status
        return DeleteNotice(status_id=status.id, user_id=status.user_id)
    if any(key in raw for key in TWEET_MARKERS):
        return _validate(Tweet, raw)
    return UnknownRecord(raw=raw)


class RecordDecoder:
    """decode_record plus the caller's policy for schema drift.

    - fallback: log and pass the value through as UnknownRecord
    - skip: raise, the stream logs it and moves on
    - fatal: raise, the stream lets it escape to the consumer
    """

    def __init__(self, drift_policy: DriftPolicy = "fallback") -> None:
        self.drift_policy = drift_policy

    def decode(self, raw: Any) -> StatusRecord:
        try:
            return decode_record(raw)
        except SchemaDrift as e:
            if self.drift_policy != "fallback":
                raise
            logger.warning("Schema drift, passing value through as unknown: %s", e)
            return UnknownRecord(raw=raw)

    def is_fatal(self, exc: DecodeError) -> bool:
        return isinstance(exc, SchemaDrift) and self.drift_policy == "fatal"
