"""Tests for result aggregation."""

import pytest

from tuplebatch.batch.aggregator import BatchResult, ResultAggregator
from tuplebatch.batch.types import ChunkOutcome, ChunkState
from tuplebatch.core.exceptions import ChunkCancelledError, NetworkError, ValidationError


def _ok(index):
    return ChunkOutcome(chunk_index=index, attempts=1, succeeded=True, operation_count=2)


def _failed(index, error):
    return ChunkOutcome(
        chunk_index=index,
        attempts=1,
        succeeded=False,
        error=error,
        operation_count=2,
        state=ChunkState.FAILED,
    )


def test_counts_and_errors_in_arrival_order():
    """Errors keep the order outcomes arrived in, not chunk order."""
    late, early = ValidationError("chunk 3"), NetworkError("chunk 1")
    aggregator = ResultAggregator(total_operations=8, total_chunks=4)

    for outcome in [_ok(0), _failed(3, late), _ok(2), _failed(1, early)]:
        aggregator.record(outcome)
    result = aggregator.build()

    assert result.total_operations == 8
    assert result.total_chunks == 4
    assert result.succeeded_chunks == 2
    assert result.failed_chunks == 2
    assert result.errors == [late, early]
    assert result.success_rate == 0.5
    assert result.is_partial_success is True
    assert result.first_error is late
    assert [o.chunk_index for o in result.outcomes] == [0, 3, 2, 1]


def test_cancelled_outcomes_count_as_failed():
    """Cancelled chunks are failures carrying ChunkCancelledError."""
    aggregator = ResultAggregator(total_operations=4, total_chunks=2)
    aggregator.record(_ok(0))
    aggregator.record(
        ChunkOutcome(
            chunk_index=1,
            attempts=0,
            succeeded=False,
            error=ChunkCancelledError(1),
            state=ChunkState.CANCELLED,
        )
    )

    result = aggregator.build()

    assert aggregator.cancelled_chunks == 1
    assert result.failed_chunks == 1
    assert isinstance(result.errors[0], ChunkCancelledError)


@pytest.mark.parametrize(
    "succeeded,failed,rate,partial",
    [(0, 0, 0.0, False), (3, 0, 1.0, False), (0, 2, 0.0, False), (1, 3, 0.25, True)],
)
def test_success_rate_and_partial_flag(succeeded, failed, rate, partial):
    """success_rate = succeeded / total, 0 for empty; partial iff both positive."""
    result = BatchResult(
        total_chunks=succeeded + failed, succeeded_chunks=succeeded, failed_chunks=failed
    )

    assert result.success_rate == rate
    assert result.is_partial_success is partial


def test_complete_success_and_failure_flags():
    """Complete flags require at least one chunk."""
    assert BatchResult().is_complete_success is False
    assert BatchResult().is_complete_failure is False
    assert BatchResult(total_chunks=2, succeeded_chunks=2).is_complete_success is True
    assert BatchResult(total_chunks=2, failed_chunks=2).is_complete_failure is True


def test_raise_on_failure():
    """Only raises when a chunk failed, with the first error."""
    BatchResult(total_chunks=1, succeeded_chunks=1).raise_on_failure()

    error = ValidationError("bad")
    with pytest.raises(ValidationError):
        BatchResult(total_chunks=1, failed_chunks=1, errors=[error]).raise_on_failure()


def test_transactional_constructors():
    """Single-request results always report exactly one chunk."""
    error = NetworkError("down")

    failed = ResultAggregator.transactional_failure(5, error)
    succeeded = ResultAggregator.transactional_success(5)

    assert (failed.total_chunks, failed.succeeded_chunks, failed.failed_chunks) == (1, 0, 1)
    assert failed.errors == [error]
    assert failed.transactional is True
    assert (succeeded.total_chunks, succeeded.succeeded_chunks) == (1, 1)
    assert succeeded.success_rate == 1.0
