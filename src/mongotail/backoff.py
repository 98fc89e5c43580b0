"""
Backoff policy shared by both failure axes (server reachability and
collection existence).

Policies:
- raise: re-raise the originating error
- retry: exponential backoff, ``interval * 1.5 ** counter``, interruptible
- ignore: reset the counter and carry on without sleeping
"""

from __future__ import annotations

import threading
from enum import Enum
from typing import Callable, Optional

from loguru import logger

from .metrics import TAIL_BACKOFF_TOTAL

BACKOFF_MULTIPLIER = 1.5


class Policy(str, Enum):
    RAISE = "raise"
    RETRY = "retry"
    IGNORE = "ignore"


def stoppable_sleep(stop_event: threading.Event, seconds: float) -> bool:
    """Sleep up to ``seconds``; returns True if woken by the stop event."""
    if seconds <= 0:
        return stop_event.is_set()
    return stop_event.wait(seconds)


class BackoffController:
    """Applies a failure policy and tracks nothing itself.

    The caller owns the failure counter; ``apply`` takes it and returns the
    new value, so each worker keeps one counter per axis.
    """

    def __init__(
        self,
        interval: float,
        stop_event: threading.Event,
        *,
        sleep: Optional[Callable[[float], object]] = None,
    ):
        if interval <= 0:
            raise ValueError("interval must be > 0")
        self.interval = interval
        self._stop = stop_event
        self._sleep = sleep or (lambda seconds: stoppable_sleep(self._stop, seconds))

    def delay(self, counter: int) -> float:
        """Seconds to sleep for the given (already incremented) counter."""
        return self.interval * (BACKOFF_MULTIPLIER**counter)

    def apply(
        self,
        policy: Policy | str,
        counter: int,
        error: BaseException,
        message: str,
        *,
        axis: str = "collection",
    ) -> int:
        policy = Policy(policy)
        if policy is Policy.RAISE:
            raise error

        if policy is Policy.IGNORE:
            return 0

        if counter == 0:
            logger.info(f"{message}. Exponential backoff starting from {self.interval}")
        counter += 1
        TAIL_BACKOFF_TOTAL.labels(axis=axis).inc()
        self._sleep(self.delay(counter))
        return counter
