from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, ClassVar, Union

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field
from pydantic_core import PydanticCustomError

# e.g. "Wed Aug 27 13:08:45 +0000 2008"
TWITTER_DATE_FORMAT = "%a %b %d %H:%M:%S %z %Y"


def parse_twitter_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.strptime(value, TWITTER_DATE_FORMAT)
        except ValueError:
            pass
    raise PydanticCustomError(
        "malformed_timestamp",
        "Timestamp does not match {format}",
        {"format": TWITTER_DATE_FORMAT},
    )


TwitterDatetime = Annotated[datetime, BeforeValidator(parse_twitter_date)]


class WireModel(BaseModel):
    """Closed schema for one object of the feed; unknown keys are rejected."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=True,
        coerce_numbers_to_str=True,
    )


class User(WireModel):
    screen_name: str
    name: str | None = None
    id: str | None = None
    id_str: str | None = None
    language: str | None = Field(None, alias="lang")
    location: str | None = None
    description: str | None = None
    url: str | None = None
    time_zone: str | None = None
    utc_offset: int | None = None
    created_at: TwitterDatetime | None = None

    followers_count: int | None = None
    friends_count: int | None = None
    statuses_count: int | None = None
    favorites_count: int | None = Field(None, alias="favourites_count")

    profile_background_color: str | None = None
    profile_background_image_url: str | None = None
    profile_background_tile: bool | None = None
    profile_image_url: str | None = None
    profile_link_color: str | None = None
    profile_sidebar_border_color: str | None = None
    profile_sidebar_fill_color: str | None = None
    profile_text_color: str | None = None

    is_protected: bool | None = Field(None, alias="protected")
    verified: bool | None = None
    notifications: bool | None = None
    following: bool | None = None
    geo_enabled: bool | None = None
    contributors_enabled: bool | None = None


class Tweet(WireModel):
    kind: ClassVar[str] = "tweet"

    id: int | None = None
    id_str: str | None = None
    text: str | None = None
    created_at: TwitterDatetime | None = None
    user: User | None = None
    retweet: Tweet | None = Field(None, alias="retweeted_status")
    in_reply_to_status_id: int | None = None
    in_reply_to_user_id: str | None = None
    in_reply_to_screen_name: str | None = None
    truncated: bool | None = None
    favorited: bool | None = None
    source: str | None = None
    contributors: Any = None
    geo: Any = None

    @property
    def is_retweet(self) -> bool:
        return self.retweet is not None

    @property
    def is_reply(self) -> bool:
        return self.in_reply_to_status_id is not None or self.in_reply_to_user_id is not None


class DeletedStatus(WireModel):
    id: str
    user_id: str
    id_str: str | None = None
    user_id_str: str | None = None


class DeleteEnvelope(WireModel):
    status: DeletedStatus


class DeleteMessage(WireModel):
    """Wire shape of a deletion: {"delete": {"status": {...}}}."""

    delete: DeleteEnvelope


class DeleteNotice(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ClassVar[str] = "delete"

    status_id: str
    user_id: str


class UnknownRecord(BaseModel):
    """Any object the decoder could not place; raw is the value as received."""

    model_config = ConfigDict(frozen=True)

    kind: ClassVar[str] = "unknown"

    raw: Any


StatusRecord = Union[Tweet, DeleteNotice, UnknownRecord]


__all__ = [
    "TWITTER_DATE_FORMAT",
    "parse_twitter_date",
    "WireModel",
    "User",
    "Tweet",
    "DeletedStatus",
    "DeleteEnvelope",
    "DeleteMessage",
    "DeleteNotice",
    "UnknownRecord",
    "StatusRecord",
]
