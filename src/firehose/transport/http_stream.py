from __future__ import annotations

import contextlib
import logging
from collections.abc import Iterator
from typing import Any

import httpx

from firehose.config import SourceConfig

logger = logging.getLogger(__name__)


class HttpByteSource:
    """Body of a long-lived streaming GET, exposed as an iterable of byte chunks.

    Transport failures while reading the body surface as OSError so the framer
    classifies them as a fatal source failure. Closing the source (from any
    thread) is how a consumer stops the producer reading from it.
    """

    def __init__(self, cfg: SourceConfig, *, client: httpx.Client | None = None) -> None:
        self._cfg = cfg
        self._client = client
        self._stack = contextlib.ExitStack()
        self._response: httpx.Response | None = None

    def open(self) -> HttpByteSource:
        if self._response is not None:
            return self
        client = self._client
        if client is None:
            timeout = httpx.Timeout(self._cfg.connect_timeout, read=self._cfg.read_timeout)
            client = self._stack.enter_context(httpx.Client(timeout=timeout))
        auth: Any = None
        if self._cfg.username is not None:
            auth = httpx.BasicAuth(self._cfg.username, self._cfg.password or "")
        logger.info("Connecting to stream: %s", self._cfg.url)
        try:
            response = self._stack.enter_context(client.stream("GET", self._cfg.url, auth=auth))
            response.raise_for_status()
        except Exception:
            self._stack.close()
            raise
        logger.info("Connected: HTTP %d", response.status_code)
        self._response = response
        return self

    def __iter__(self) -> Iterator[bytes]:
        if self._response is None:
            self.open()
        assert self._response is not None
        try:
            # No chunk size: each network read goes straight on to the framer
            yield from self._response.iter_bytes()
        except (httpx.TransportError, httpx.StreamError) as e:
            raise OSError(f"Stream read failed: {e}") from e

    def close(self) -> None:
        self._response = None
        self._stack.close()

    def __enter__(self) -> HttpByteSource:
        return self.open()

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> bool:
        self.close()
        return False
