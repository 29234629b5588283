from __future__ import annotations

import json
import logging
import re
from collections.abc import Callable, Iterator
from typing import Any

from firehose.errors import FatalSourceFailure, MalformedFrame, SourceExhausted
from firehose.transport.base import ByteSource, ValueFramer

logger = logging.getLogger(__name__)

_WHITESPACE = frozenset(b" \t\r\n")
_OPEN = frozenset(b"{[")
_CLOSE = frozenset(b"}]")
# Bytes that terminate a bare top-level scalar such as 42 or true.
_SCALAR_END = frozenset(b' \t\r\n{}[]",')
_QUOTE = ord('"')
_BACKSLASH = ord("\\")

_STRUCTURE = re.compile(rb'["{}\[\]]')
_STRING_SPECIAL = re.compile(rb'["\\]')

# How much of an oversized frame is kept for diagnostics.
_OVERSIZED_HEAD = 256


def _make_reader(source: ByteSource, chunk_size: int) -> Callable[[], bytes | None]:
    """Return a callable producing the next non-empty chunk, or None at EOF."""
    # Prefer read1 on buffered streams: read(n) would wait for n bytes on a live feed.
    read = getattr(source, "read1", None) or getattr(source, "read", None)
    if read is not None:
        return lambda: read(chunk_size) or None

    chunks = iter(source)  # type: ignore[arg-type]

    def _next_chunk() -> bytes | None:
        for chunk in chunks:
            if chunk:
                return bytes(chunk)
        return None

    return _next_chunk


class ConcatenatedJsonFramer(ValueFramer):
    """Framer for JSON values concatenated back to back with no delimiters.

    The scanner only tracks structure (nesting depth, strings and escapes),
    so it can tell where a value ends without decoding it. Scan state is kept
    across reads, each byte is looked at once, and anything read past the end
    of a value stays buffered for the next call.
    """

    def __init__(
        self,
        source: ByteSource,
        *,
        chunk_size: int = 8192,
        max_frame_bytes: int | None = None,
    ) -> None:
        if chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        self._read = _make_reader(source, chunk_size)
        self._max_frame_bytes = max_frame_bytes
        self._buf = bytearray()
        self._failure: FatalSourceFailure | None = None
        self._reset_scan()

    def _reset_scan(self) -> None:
        self._pos = 0
        self._start: int | None = None
        self._mode: str | None = None  # "structured" or "scalar"
        self._depth = 0
        self._in_string = False
        self._escape = False
        self._oversized_head: bytes | None = None

    def next_value(self) -> Any:
        if self._failure is not None:
            raise self._failure
        while True:
            end = self._scan()
            if end is not None:
                return self._emit(end)
            if self._max_frame_bytes is not None and self._start is not None:
                if len(self._buf) - self._start > self._max_frame_bytes:
                    self._drop_scanned()
            try:
                chunk = self._read()
            except (OSError, ValueError) as e:
                # ValueError: the source was closed under us (read on closed file)
                self._failure = FatalSourceFailure(f"Read from byte source failed: {e}")
                raise self._failure from e
            if chunk is None:
                if self._mode == "scalar":
                    return self._emit(self._pos)
                partial = b"" if self._start is None else bytes(self._buf[self._start :])
                self._failure = SourceExhausted(partial.decode("utf-8", errors="replace"))
                raise self._failure
            self._buf += chunk

    def __iter__(self) -> Iterator[Any]:
        while True:
            try:
                yield self.next_value()
            except MalformedFrame as e:
                logger.warning("Skipping malformed frame: %s", e)
            except SourceExhausted:
                return
            except FatalSourceFailure as e:
                logger.warning("Stopping iteration: %s", e)
                return

    def _scan(self) -> int | None:
        """Advance the scan; return the end offset of a finished value or None."""
        buf = self._buf
        n = len(buf)
        i = self._pos
        if self._mode is None:
            while i < n and buf[i] in _WHITESPACE:
                i += 1
            if i == n:
                # Keep-alive whitespace between values; nothing to hold on to.
                buf.clear()
                self._pos = 0
                return None
            self._start = i
            c = buf[i]
            if c in _CLOSE:
                # Stray closer: emit it alone so it is reported and skipped.
                return i + 1
            if c in _OPEN:
                self._mode = "structured"
                self._depth = 1
                i += 1
            elif c == _QUOTE:
                self._mode = "structured"
                self._in_string = True
                i += 1
            else:
                self._mode = "scalar"

        if self._mode == "scalar":
            while i < n and buf[i] not in _SCALAR_END:
                i += 1
            if i < n:
                if i == self._start:
                    i += 1  # a lone separator such as ','
                return i
            self._pos = i
            return None

        end, self._pos = self._scan_structured(i, n)
        return end

    def _scan_structured(self, i: int, n: int) -> tuple[int | None, int]:
        buf = self._buf
        while True:
            if self._in_string:
                if self._escape:
                    if i >= n:
                        return None, i
                    i += 1
                    self._escape = False
                m = _STRING_SPECIAL.search(buf, i)
                if m is None:
                    return None, n
                i = m.end()
                if buf[m.start()] == _BACKSLASH:
                    self._escape = True
                    continue
                self._in_string = False
                if self._depth == 0:
                    return i, i
            else:
                m = _STRUCTURE.search(buf, i)
                if m is None:
                    return None, n
                i = m.end()
                c = buf[m.start()]
                if c == _QUOTE:
                    self._in_string = True
                elif c in _OPEN:
                    self._depth += 1
                else:
                    self._depth -= 1
                    if self._depth == 0:
                        return i, i

    def _drop_scanned(self) -> None:
        """Forget the scanned part of an oversized value, keeping only its head."""
        assert self._start is not None
        if self._oversized_head is None:
            self._oversized_head = bytes(self._buf[self._start : self._start + _OVERSIZED_HEAD])
            logger.warning("Frame exceeds %d bytes; discarding it", self._max_frame_bytes)
        del self._buf[: self._pos]
        self._start = 0
        self._pos = 0

    def _emit(self, end: int) -> Any:
        assert self._start is not None
        raw = bytes(self._buf[self._start : end])
        oversized = self._oversized_head
        if (
            oversized is None
            and self._max_frame_bytes is not None
            and len(raw) > self._max_frame_bytes
        ):
            # Completed within a single read, so it never reached _drop_scanned.
            oversized = raw[:_OVERSIZED_HEAD]
            logger.warning("Frame exceeds %d bytes; discarding it", self._max_frame_bytes)
        del self._buf[:end]
        self._reset_scan()

        if oversized is not None:
            raise MalformedFrame(
                oversized.decode("utf-8", errors="replace"),
                f"frame exceeds {self._max_frame_bytes} bytes",
            )
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise MalformedFrame(raw.decode("utf-8", errors="replace"), str(e)) from e
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise MalformedFrame(text, str(e)) from e
