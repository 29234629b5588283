from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

DriftPolicy = Literal["fallback", "skip", "fatal"]
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class SourceConfig(BaseModel):
    url: str = "https://stream.twitter.com/1.1/statuses/sample.json"
    username: str | None = None
    password: str | None = None
    chunk_size: int = Field(8192, ge=1)
    connect_timeout: float = 10.0
    # None waits forever; the feed sends keep-alive newlines while idle.
    read_timeout: float | None = None


class FirehoseConfig(BaseModel):
    name: str = "firehose"
    source: SourceConfig = Field(default_factory=SourceConfig)
    queue_capacity: int = Field(50, ge=1, description="Raw values held between producer and consumer")
    drift_policy: DriftPolicy = "fallback"
    max_frame_bytes: int | None = Field(None, ge=1)
    # None defers to FIREHOSE_LOG_LEVEL, then INFO
    log_level: LogLevel | None = None

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_level(cls, v):
        return v.upper() if isinstance(v, str) else v


__all__ = [
    "DriftPolicy",
    "LogLevel",
    "SourceConfig",
    "FirehoseConfig",
]
