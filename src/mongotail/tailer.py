"""
Tailer orchestration: resolve targets, share one client, run one worker
thread per collection and join them all.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Optional, Sequence, Union

from loguru import logger

from .backoff import BackoffController, Policy
from .connection import ConnectionManager
from .emitter import Decorator, EventEmitter
from .errors import ConfigurationError
from .metrics import metrics_registry
from .sinks import QueueSink, Sink
from .targets import CollectionTarget, resolve_targets
from .worker import TailWorker

JOIN_POLL_SEC = 0.5


@dataclass(frozen=True)
class TailerOptions:
    """Runtime options (see ``tailctl.config.Settings`` for the env-backed form)."""

    collections: Union[str, Sequence[str]]
    server: Optional[str] = None
    interval: float = 0.5
    on_missing: str = Policy.RAISE.value
    on_server_unavailable: str = Policy.RAISE.value
    server_selection_timeout_ms: int = 30000

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ConfigurationError("interval must be > 0")
        if self.on_missing not in {p.value for p in Policy}:
            raise ConfigurationError(f"on_missing must be raise, retry or ignore: {self.on_missing!r}")
        if self.on_server_unavailable not in (Policy.RAISE.value, Policy.RETRY.value):
            raise ConfigurationError(
                f"on_server_unavailable must be raise or retry: {self.on_server_unavailable!r}"
            )


@dataclass(frozen=True)
class WorkerResult:
    target: CollectionTarget
    delivered: int
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class Tailer:
    """Tails every configured capped collection into one sink.

    Example:
        sink = QueueSink()
        with Tailer(TailerOptions(collections=["logs/events"]), sink) as tailer:
            threading.Thread(target=tailer.run, daemon=True).start()
            event = sink.get(timeout=5)
    """

    def __init__(
        self,
        options: TailerOptions,
        sink: Sink,
        *,
        decorator: Optional[Decorator] = None,
        connections: Optional[ConnectionManager] = None,
        stop_event: Optional[threading.Event] = None,
    ):
        self.options = options
        self._sink = sink
        self._decorator = decorator
        self._connections = connections
        self._stop = stop_event or threading.Event()
        if isinstance(sink, QueueSink):
            sink.attach(self._stop)
        self.targets: list[CollectionTarget] = []
        self.workers: list[TailWorker] = []

    @property
    def stop_event(self) -> threading.Event:
        return self._stop

    @property
    def connections(self) -> Optional[ConnectionManager]:
        return self._connections

    def register(self) -> list[CollectionTarget]:
        """Create the shared client and resolve targets (idempotent)."""
        if self.targets:
            return self.targets
        raw = self.options.collections
        if self._connections is None:
            pool_size = 1 if isinstance(raw, str) else max(1, len(raw))
            self._connections = ConnectionManager(
                self.options.server,
                pool_size,
                server_selection_timeout_ms=self.options.server_selection_timeout_ms,
            )
        self.targets = resolve_targets(raw, self._connections.default_database)
        logger.debug(f"Resolved {len(self.targets)} target(s): {', '.join(map(str, self.targets))}")
        return self.targets

    def _build_workers(self) -> list[TailWorker]:
        emitter = EventEmitter(self._sink, self._decorator)
        backoff = BackoffController(self.options.interval, self._stop)
        return [
            TailWorker(
                target,
                self._connections,
                emitter,
                backoff,
                self._stop,
                on_missing=self.options.on_missing,
                on_server_unavailable=self.options.on_server_unavailable,
                interval=self.options.interval,
            )
            for target in self.targets
        ]

    def _run_worker(self, worker: TailWorker) -> None:
        metrics_registry.workers_alive.inc()
        try:
            worker.run()
        except Exception as exc:
            logger.opt(exception=exc).error(
                f"MongoDB tail worker for {worker.target} terminated: {exc}"
            )
        finally:
            metrics_registry.workers_alive.dec()

    def run(self) -> list[WorkerResult]:
        """Start one thread per target and block until all of them exit."""
        self.register()
        self.workers = self._build_workers()
        threads = [
            threading.Thread(target=self._run_worker, args=(w,), name=w.name, daemon=True)
            for w in self.workers
        ]
        for t in threads:
            t.start()
        for t in threads:
            while t.is_alive():
                t.join(JOIN_POLL_SEC)

        return [WorkerResult(w.target, w.delivered, w.error) for w in self.workers]

    def stop(self) -> None:
        self._stop.set()

    def close(self) -> None:
        self.stop()
        if self._connections is not None:
            self._connections.close()

    def __enter__(self) -> "Tailer":
        self.register()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
