"""Tests for Success/Failure result values."""

import pytest

from tuplebatch.core.exceptions import NetworkError, ResultUnwrapError
from tuplebatch.core.result import Failure, Success


def test_success_combinators():
    """map/then transform the value; recover is a no-op."""
    result = Success(2)

    assert result.succeeded is True
    assert result.failed is False
    assert result.map(lambda v: v * 10).unwrap() == 20
    assert result.then(lambda v: v + 1) == Success(3)
    assert result.then(lambda v: Failure(NetworkError("x"))).failed is True
    assert result.recover(lambda e: 0) is result
    assert result.unwrap_or(99) == 2


def test_success_has_no_error():
    """err() on a success is a usage error."""
    with pytest.raises(ResultUnwrapError):
        Success(1).err()


def test_failure_combinators():
    """Failures short-circuit map/then and can be recovered."""
    error = NetworkError("down")
    result = Failure(error)

    assert result.failed is True
    assert result.map(lambda v: v * 10) is result
    assert result.then(lambda v: Success(v)) is result
    assert result.err() is error
    assert result.unwrap_or("fallback") == "fallback"
    assert result.recover(lambda e: "recovered") == Success("recovered")


def test_failure_unwrap_raises_carried_error():
    """unwrap() re-raises the original error."""
    error = NetworkError("down")

    with pytest.raises(NetworkError) as exc_info:
        Failure(error).unwrap()

    assert exc_info.value is error
