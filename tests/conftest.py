"""
Pytest configuration and fixtures for mongotail.

Provides scripted fakes for the driver-facing collaborators so the tail
workers can be exercised without a server.
"""

import threading
from typing import Any

import pytest

from mongotail import BackoffController, CollectionTarget, EventEmitter, QueueSink
from mongotail.emitter import Decorator


class FakeCursor:
    """Tail cursor that replays a script.

    Items are documents (dict), ``None`` for "nothing available yet", or
    exception instances to raise. When the script runs out the cursor calls
    ``on_empty`` (default: behave as idle).
    """

    def __init__(self, script=(), *, alive: bool = True, on_empty=None):
        self._script = list(script)
        self.alive = alive
        self.closed = False
        self.calls = 0
        self._on_empty = on_empty

    def next(self):
        self.calls += 1
        if not self._script:
            if self._on_empty:
                self._on_empty()
            return None
        item = self._script.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


class FakeConnections:
    """ConnectionManager stand-in: ``open`` replays scripted outcomes.

    Each outcome is a FakeCursor or an exception instance. When outcomes run
    out the stop event is set and an idle cursor is returned.
    """

    def __init__(self, outcomes=(), *, stop_event=None, default_database="logs"):
        self.outcomes = list(outcomes)
        self.stop_event = stop_event
        self.default_database = default_database
        self.server = "mongodb://fake:27017"
        self.opened: list[Any] = []
        self.closed = False

    def open(self, target):
        self.opened.append(target)
        if not self.outcomes:
            if self.stop_event is not None:
                self.stop_event.set()
            return FakeCursor()
        item = self.outcomes.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def stop_event():
    return threading.Event()


@pytest.fixture
def target():
    return CollectionTarget("db1", "events")


@pytest.fixture
def sink():
    return QueueSink()


@pytest.fixture
def emitter(sink):
    return EventEmitter(sink, Decorator(host="test-host"))


@pytest.fixture
def sleeps():
    """Records backoff sleep durations instead of sleeping."""
    return []


@pytest.fixture
def backoff(stop_event, sleeps):
    return BackoffController(0.1, stop_event, sleep=sleeps.append)


@pytest.fixture
def make_cursor():
    return FakeCursor


@pytest.fixture
def make_connections(stop_event):
    def _make(outcomes=(), **kwargs):
        kwargs.setdefault("stop_event", stop_event)
        return FakeConnections(outcomes, **kwargs)

    return _make
