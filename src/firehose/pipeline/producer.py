from __future__ import annotations

import logging
import threading

from firehose.errors import FatalSourceFailure, MalformedFrame
from firehose.pipeline.relay import ConnectionState, RelayQueue
from firehose.transport.base import ValueFramer

logger = logging.getLogger(__name__)


class Producer:
    """Background reader feeding raw JSON values into the relay.

    Runs on its own daemon thread so the byte source is drained at network
    pace regardless of how fast the consumer pulls. Stops for good on the
    first fatal source failure; reconnecting belongs to whoever owns the
    connection.
    """

    def __init__(self, framer: ValueFramer, relay: RelayQueue, *, name: str = "firehose") -> None:
        self._framer = framer
        self._relay = relay
        self._thread = threading.Thread(target=self._run, name=f"{name}-producer", daemon=True)
        self.produced = 0
        self.malformed = 0

    @property
    def state(self) -> ConnectionState:
        return self._relay.state

    def start(self) -> None:
        self._thread.start()

    def join(self, timeout: float | None = None) -> None:
        self._thread.join(timeout)

    def is_alive(self) -> bool:
        return self._thread.is_alive()

    def _run(self) -> None:
        try:
            while True:
                try:
                    value = self._framer.next_value()
                except MalformedFrame as e:
                    self.malformed += 1
                    logger.warning("Failed to parse JSON object: %s", e)
                    continue
                self.produced += 1
                if not self._relay.offer(value):
                    logger.warning("Dropped status (%d dropped so far)", self._relay.dropped)
        except FatalSourceFailure as e:
            logger.info("Stream source ended: %s", e)
        except Exception:
            logger.exception("Producer failed unexpectedly")
        finally:
            self._relay.disconnect()
            logger.info(
                "Disconnected after %d values (%d malformed, %d dropped)",
                self.produced,
                self.malformed,
                self._relay.dropped,
            )
