"""
mongotail — tail MongoDB capped collections into an event sink.

Pieces:
- resolve_targets: ``[database/]collection`` strings → CollectionTarget
- ConnectionManager: shared client, tailable natural-order cursors
- BackoffController: raise / retry (exponential) / ignore policies
- TailWorker: per-collection reconnect + subscribe loops
- normalize: BSON documents → plain JSON-safe mappings
- EventEmitter + sinks: decorated events to a thread-safe sink
- Tailer: one thread per target, joined together

Usage:
    from mongotail import Tailer, TailerOptions, QueueSink

    sink = QueueSink()
    tailer = Tailer(TailerOptions(server="mongodb://localhost/logs", collections=["events"]), sink)
    tailer.run()  # blocks until every worker exits
"""

from .backoff import BackoffController, Policy, stoppable_sleep
from .connection import ConnectionManager, TailCursor
from .emitter import Decorator, Event, EventEmitter
from .errors import (
    CappedCollectionRequired,
    ConfigurationError,
    CursorExhausted,
    NoServerAvailable,
    OperationFailure,
    TailError,
    map_driver_error,
)
from .normalize import message_size, normalize
from .sinks import CallbackSink, QueueSink, Sink, StreamSink
from .tailer import Tailer, TailerOptions, WorkerResult
from .targets import CollectionTarget, parse_target, resolve_targets
from .worker import TailWorker, WorkerState

__version__ = "0.1.0"
__all__ = [
    # targets
    "CollectionTarget",
    "parse_target",
    "resolve_targets",
    # errors
    "TailError",
    "OperationFailure",
    "CursorExhausted",
    "NoServerAvailable",
    "CappedCollectionRequired",
    "ConfigurationError",
    "map_driver_error",
    # runtime
    "ConnectionManager",
    "TailCursor",
    "BackoffController",
    "Policy",
    "stoppable_sleep",
    "TailWorker",
    "WorkerState",
    "Tailer",
    "TailerOptions",
    "WorkerResult",
    # events
    "normalize",
    "message_size",
    "Event",
    "Decorator",
    "EventEmitter",
    "Sink",
    "QueueSink",
    "StreamSink",
    "CallbackSink",
]
