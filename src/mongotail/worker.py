"""
Tail worker: one per collection target.

Outer loop (connect/reconnect) and inner loop (subscribe) with a failure
counter per axis:

- retryable OperationFailure: reopen immediately, counters untouched
- CursorExhausted: reopen after one poll interval
- other OperationFailure: collection missing, governed by ``on_missing``
- NoServerAvailable: governed by ``on_server_unavailable``
- CappedCollectionRequired / ConfigurationError: fatal for this worker

``on_missing=ignore`` keeps the worker tailing: the counter is reset and the
next attempt is paced by the poll interval instead of backing off.
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Optional

from loguru import logger

from .backoff import BackoffController, Policy, stoppable_sleep
from .connection import ConnectionManager, TailCursor, redact_uri
from .emitter import EventEmitter
from .errors import CursorExhausted, NoServerAvailable, OperationFailure
from .metrics import TAIL_RECONNECTS_TOTAL
from .targets import CollectionTarget

# consecutive retryable failures from one cursor before it is reopened
MAX_CURSOR_RETRIES = 3


class WorkerState(str, Enum):
    CONNECTING = "connecting"
    SUBSCRIBED = "subscribed"
    RECONNECTING = "reconnecting"
    TERMINATED = "terminated"


class TailWorker:
    """Tails one capped collection until stopped or a ``raise`` policy fires."""

    def __init__(
        self,
        target: CollectionTarget,
        connections: ConnectionManager,
        emitter: EventEmitter,
        backoff: BackoffController,
        stop_event: threading.Event,
        *,
        on_missing: Policy | str = Policy.RAISE,
        on_server_unavailable: Policy | str = Policy.RAISE,
        interval: Optional[float] = None,
        server_label: Optional[str] = None,
    ):
        self.target = target
        self._connections = connections
        self._emitter = emitter
        self._backoff = backoff
        self._stop = stop_event
        self.on_missing = Policy(on_missing)
        self.on_server_unavailable = Policy(on_server_unavailable)
        if self.on_server_unavailable is Policy.IGNORE:
            raise ValueError("on_server_unavailable must be 'raise' or 'retry'")
        self.interval = interval if interval is not None else backoff.interval
        self.server_label = server_label or redact_uri(connections.server) or "localhost"

        self.state = WorkerState.CONNECTING
        self.server_missing = 0
        self.collection_missing = 0
        self.delivered = 0
        self.error: Optional[BaseException] = None

    @property
    def name(self) -> str:
        return f"mongotail-{self.target}"

    def stopped(self) -> bool:
        return self._stop.is_set()

    # --------------------------- outer loop

    def run(self) -> None:
        logger.info(
            f"MongoDB tailable thread starting: "
            f"database={self.target.database} collection={self.target.collection}"
        )
        try:
            self._run()
        except BaseException as exc:
            self.error = exc
            raise
        finally:
            self.state = WorkerState.TERMINATED
            logger.info(
                f"MongoDB tailable thread exiting: {self.target} (delivered={self.delivered})"
            )

    def _run(self) -> None:
        while not self.stopped():
            self.state = WorkerState.CONNECTING
            try:
                cursor = self._connections.open(self.target)
                self._connected()
                self.state = WorkerState.SUBSCRIBED
                try:
                    self.subscribe(cursor)
                finally:
                    cursor.close()
            except OperationFailure as e:
                if e.retryable:
                    self._reconnect(e)
                    continue
                self.collection_missing = self._backoff.apply(
                    self.on_missing,
                    self.collection_missing,
                    e,
                    f"MongoDB collection {self.target} missing",
                    axis="collection",
                )
                if self.on_missing is Policy.IGNORE:
                    stoppable_sleep(self._stop, self.interval)
            except NoServerAvailable as e:
                self.server_missing = self._backoff.apply(
                    self.on_server_unavailable,
                    self.server_missing,
                    e,
                    f"MongoDB server {self.server_label} unavailable",
                    axis="server",
                )

    def _connected(self) -> None:
        if self.server_missing > 0:
            logger.success(f"MongoDB server {self.server_label} now available")
            self.server_missing = 0
        if self.collection_missing > 0:
            logger.success(f"MongoDB collection {self.target} now available")
            self.collection_missing = 0

    def _reconnect(self, e: OperationFailure) -> None:
        self.state = WorkerState.RECONNECTING
        reason = "exhausted" if isinstance(e, CursorExhausted) else "retryable"
        TAIL_RECONNECTS_TOTAL.labels(
            database=self.target.database, collection=self.target.collection, reason=reason
        ).inc()
        if isinstance(e, CursorExhausted):
            # a dead cursor on an empty capped collection would otherwise spin
            stoppable_sleep(self._stop, self.interval)
        else:
            logger.debug(f"Retryable failure on {self.target}, reopening: {e}")

    # --------------------------- inner loop

    def subscribe(self, cursor: TailCursor) -> None:
        """Forward documents until stopped or the cursor breaks."""
        retries = 0
        while not self.stopped():
            try:
                document = cursor.next()
            except CursorExhausted:
                logger.info(
                    f"MongoDB tailable cursor broken: uri={self.server_label} "
                    f"database={self.target.database} collection={self.target.collection}"
                )
                raise
            except OperationFailure as e:
                if e.retryable and cursor.alive and retries < MAX_CURSOR_RETRIES:
                    retries += 1
                    continue
                raise
            retries = 0

            if document is None:
                stoppable_sleep(self._stop, self.interval)
                continue

            self._emitter.emit(document, self.target)
            self.delivered += 1
