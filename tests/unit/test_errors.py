"""
Unit tests for driver error mapping.
"""

import pymongo.errors as E
import pytest

from mongotail import CursorExhausted, NoServerAvailable, OperationFailure, map_driver_error


def test_server_selection_timeout_is_server_unavailable():
    assert isinstance(map_driver_error(E.ServerSelectionTimeoutError("no servers")), NoServerAvailable)


def test_auto_reconnect_is_retryable():
    err = map_driver_error(E.AutoReconnect("connection reset"))
    assert isinstance(err, OperationFailure)
    assert err.retryable


@pytest.mark.parametrize("code", [43, 136, 189, 10107, 11600])
def test_transient_codes_are_retryable(code):
    err = map_driver_error(E.OperationFailure("transient", code=code))
    assert err.retryable
    assert err.code == code


def test_namespace_not_found_is_not_retryable():
    err = map_driver_error(E.OperationFailure("ns not found", code=26))
    assert isinstance(err, OperationFailure)
    assert not err.retryable


def test_error_label_marks_retryable():
    exc = E.OperationFailure("blip", code=1, details={"errorLabels": ["RetryableReadError"]})
    assert map_driver_error(exc).retryable


def test_unknown_driver_error_is_not_retryable():
    err = map_driver_error(E.InvalidOperation("cursor already used"))
    assert isinstance(err, OperationFailure)
    assert not err.retryable


def test_tail_errors_pass_through():
    original = NoServerAvailable("down")
    assert map_driver_error(original) is original


def test_cursor_exhausted_is_retryable_operation_failure():
    err = CursorExhausted()
    assert isinstance(err, OperationFailure)
    assert err.retryable
    assert str(err) == "unknown transport error"
