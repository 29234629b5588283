from __future__ import annotations

import abc
from collections.abc import Iterable, Iterator
from typing import IO, Any, Union

# Anything the framer can pull bytes from: a binary file-like object or an
# iterable of chunks such as httpx.Response.iter_bytes().
ByteSource = Union[IO[bytes], Iterable[bytes]]


class ValueFramer(abc.ABC):
    """Abstract stream framer yielding one generic JSON value per call."""

    @abc.abstractmethod
    def next_value(self) -> Any:
        """Return the next whole JSON value from the source.

        Raises MalformedFrame for a single bad value (the framer stays usable)
        and FatalSourceFailure once the source is exhausted or broken.
        """

    @abc.abstractmethod
    def __iter__(self) -> Iterator[Any]: ...
