"""
Custom exceptions for the capped-collection tailer.

Driver exceptions are translated at the boundary (``map_driver_error``) into a
small tagged taxonomy so the tail workers never inspect pymongo types directly.
"""

from __future__ import annotations

from typing import Optional

# Server error codes that describe a transient condition: a failover, a node
# shutting down, a network hiccup or a tailable cursor whose position was lost.
TRANSIENT_ERROR_CODES = frozenset(
    {
        6,  # HostUnreachable
        7,  # HostNotFound
        43,  # CursorNotFound
        89,  # NetworkTimeout
        91,  # ShutdownInProgress
        136,  # CappedPositionLost
        189,  # PrimarySteppedDown
        262,  # ExceededTimeLimit
        9001,  # SocketException
        10107,  # NotWritablePrimary
        11600,  # InterruptedAtShutdown
        11602,  # InterruptedDueToReplStateChange
        13435,  # NotPrimaryNoSecondaryOk
        13436,  # NotPrimaryOrSecondary
    }
)

RETRYABLE_LABELS = ("RetryableReadError", "RetryableWriteError", "ResumableChangeStreamError")

NAMESPACE_NOT_FOUND = 26


class TailError(Exception):
    """Base error for the tailer."""

    pass


class OperationFailure(TailError):
    """A query or command failed.

    ``retryable`` is decided once, where the driver error is mapped; callers
    retry immediately when it is set and treat the collection as missing
    otherwise.
    """

    def __init__(self, message: str, *, retryable: bool = False, code: Optional[int] = None):
        super().__init__(message)
        self.retryable = retryable
        self.code = code


class CursorExhausted(OperationFailure):
    """The tailable cursor died; the collection has to be reopened."""

    def __init__(self, message: str = "unknown transport error"):
        super().__init__(message, retryable=True)


class NoServerAvailable(TailError):
    """No server matched the selection criteria before the timeout."""

    pass


class CappedCollectionRequired(TailError):
    """Only capped collections support tailable cursors."""

    pass


class ConfigurationError(TailError):
    """Invalid tailer configuration (e.g. no collections)."""

    pass


def map_driver_error(e: Exception) -> TailError:
    """Translate a pymongo exception into the tailer's error taxonomy."""
    import pymongo.errors as E

    if isinstance(e, TailError):
        return e
    if isinstance(e, E.ServerSelectionTimeoutError):
        return NoServerAvailable(str(e))
    if isinstance(e, (E.AutoReconnect, E.NetworkTimeout)):
        return OperationFailure(str(e), retryable=True)
    if isinstance(e, E.OperationFailure):
        code = e.code
        retryable = code in TRANSIENT_ERROR_CODES or any(
            e.has_error_label(label) for label in RETRYABLE_LABELS
        )
        return OperationFailure(str(e), retryable=retryable, code=code)
    return OperationFailure(str(e), retryable=False)
