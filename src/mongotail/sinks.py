"""
Output sinks for tailed events.

Every worker thread pushes into the same sink, so implementations must be
safe for concurrent writers.
"""

from __future__ import annotations

import json
import queue
import sys
import threading
from typing import TYPE_CHECKING, Callable, Optional, Protocol, TextIO

from loguru import logger

if TYPE_CHECKING:
    from .emitter import Event


class Sink(Protocol):
    """Anything that accepts events from several threads at once."""

    def put(self, event: "Event") -> None: ...


class QueueSink:
    """Hands events to a consumer through a thread-safe queue.

    A bounded queue applies backpressure to the tailing threads. Once a stop
    event is attached, a blocked ``put`` gives up within ``put_timeout`` of
    the stop being set and the event is dropped.
    """

    def __init__(
        self,
        maxsize: int = 0,
        q: Optional[queue.Queue] = None,
        *,
        stop_event: Optional[threading.Event] = None,
        put_timeout: float = 0.5,
    ):
        self._q: queue.Queue = q if q is not None else queue.Queue(maxsize=maxsize)
        self._stop = stop_event
        self.put_timeout = put_timeout
        self.dropped = 0

    def attach(self, stop_event: threading.Event) -> None:
        """Use ``stop_event`` to abandon blocked puts (no-op if one is set)."""
        if self._stop is None:
            self._stop = stop_event

    @property
    def queue(self) -> queue.Queue:
        return self._q

    def put(self, event: "Event") -> None:
        if self._stop is None:
            self._q.put(event)
            return
        while True:
            try:
                self._q.put(event, timeout=self.put_timeout)
                return
            except queue.Full:
                if self._stop.is_set():
                    self.dropped += 1
                    logger.debug(
                        f"Queue full at shutdown, dropped event from "
                        f"{event.database}/{event.collection}"
                    )
                    return

    def get(self, timeout: Optional[float] = None) -> "Event":
        return self._q.get(timeout=timeout)

    def drain(self) -> list["Event"]:
        """Return everything currently queued without blocking."""
        out = []
        while True:
            try:
                out.append(self._q.get_nowait())
            except queue.Empty:
                return out


class StreamSink:
    """Writes one JSON document per line (NDJSON)."""

    def __init__(self, stream: Optional[TextIO] = None, *, flush: bool = True):
        self._stream = stream or sys.stdout
        self._flush = flush
        self._lock = threading.Lock()
        self.count = 0

    def put(self, event: "Event") -> None:
        line = json.dumps(event.to_dict(), separators=(",", ":"), default=str)
        with self._lock:
            self._stream.write(line + "\n")
            if self._flush:
                self._stream.flush()
            self.count += 1


class CallbackSink:
    """Calls ``fn(event)``, one caller at a time."""

    def __init__(self, fn: Callable[["Event"], None]):
        self._fn = fn
        self._lock = threading.Lock()

    def put(self, event: "Event") -> None:
        with self._lock:
            self._fn(event)
