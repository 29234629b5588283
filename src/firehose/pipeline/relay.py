from __future__ import annotations

import enum
import threading
import time
from collections import deque
from typing import Any

from firehose.errors import QueueFull, RelayClosed


class ConnectionState(enum.Enum):
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class RelayQueue:
    """Bounded FIFO between the producer thread and stream consumers.

    offer() never blocks: a full queue drops the value. take() blocks until a
    value arrives or the queue is disconnected and drained. The connection
    state lives here so that "disconnected and empty" is decided under the
    same lock that guards the items.
    """

    def __init__(self, capacity: int = 50) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self._capacity = capacity
        self._items: deque[Any] = deque()
        self._cond = threading.Condition()
        self._state = ConnectionState.CONNECTED
        self._dropped = 0

    @property
    def capacity(self) -> int:
        return self._capacity

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def dropped(self) -> int:
        return self._dropped

    def __len__(self) -> int:
        with self._cond:
            return len(self._items)

    def offer(self, value: Any) -> bool:
        with self._cond:
            if self._state is ConnectionState.DISCONNECTED:
                return False
            if len(self._items) >= self._capacity:
                self._dropped += 1
                return False
            self._items.append(value)
            self._cond.notify()
            return True

    def put_nowait(self, value: Any) -> None:
        with self._cond:
            if self._state is ConnectionState.DISCONNECTED:
                raise RelayClosed("Relay is disconnected")
            if len(self._items) >= self._capacity:
                self._dropped += 1
                raise QueueFull(f"Relay is full ({self._capacity} values)")
            self._items.append(value)
            self._cond.notify()

    def take(self, timeout: float | None = None) -> Any:
        deadline = None if timeout is None else time.monotonic() + timeout
        with self._cond:
            while not self._items:
                if self._state is ConnectionState.DISCONNECTED:
                    raise RelayClosed("Relay is disconnected and empty")
                if deadline is None:
                    self._cond.wait()
                    continue
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    raise TimeoutError(f"No value within {timeout}s")
                self._cond.wait(remaining)
            return self._items.popleft()

    def disconnect(self) -> bool:
        """Flip to DISCONNECTED; returns False if it already was."""
        with self._cond:
            if self._state is ConnectionState.DISCONNECTED:
                return False
            self._state = ConnectionState.DISCONNECTED
            self._cond.notify_all()
            return True

    def is_exhausted(self) -> bool:
        with self._cond:
            return self._state is ConnectionState.DISCONNECTED and not self._items
