from __future__ import annotations

import contextlib
import logging
import os
import sys
from typing import TextIO

LOG_FORMAT = "%(asctime)s %(levelname)s %(threadName)s %(name)s: %(message)s"


class LogGuard(contextlib.AbstractContextManager):
    """
    Route pipeline diagnostics to stderr for the duration of a run.

    - stdout is left to decoded records
    - drops, malformed frames and schema drift are logged on stderr
    """

    def __init__(self, level: str | None = None, stream: TextIO | None = None) -> None:
        self._level = (level or os.environ.get("FIREHOSE_LOG_LEVEL") or "INFO").upper()
        self._bad_level: str | None = None
        if self._level not in logging.getLevelNamesMapping():
            self._bad_level, self._level = self._level, "INFO"
        self._stream = stream
        self._handler: logging.Handler | None = None
        self._prev_level = logging.NOTSET

    def __enter__(self) -> LogGuard:
        logger = logging.getLogger("firehose")
        # Leave alone whatever the embedding application already configured
        if not logger.handlers and not logging.getLogger().handlers:
            self._handler = logging.StreamHandler(self._stream or sys.stderr)
            self._handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(self._handler)
        self._prev_level = logger.level
        logger.setLevel(self._level)
        if self._bad_level is not None:
            logger.warning("Unknown log level %r; using INFO", self._bad_level)
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        logger = logging.getLogger("firehose")
        if self._handler is not None:
            logger.removeHandler(self._handler)
            self._handler = None
        logger.setLevel(self._prev_level)
        return False
