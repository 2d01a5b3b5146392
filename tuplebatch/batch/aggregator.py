"""Aggregate per-chunk outcomes into a single batch result."""

from dataclasses import dataclass, field
from typing import List, Optional

from tuplebatch.batch.types import ChunkOutcome, ChunkState


@dataclass(frozen=True)
class BatchResult:
    """Outcome of one batch call.

    Partial success is not an error: callers inspect ``is_partial_success`` and
    ``errors``, or call ``raise_on_failure()`` to opt into an exception.
    """

    total_operations: int = 0
    total_chunks: int = 0
    succeeded_chunks: int = 0
    failed_chunks: int = 0
    errors: List[BaseException] = field(default_factory=list)
    transactional: bool = False
    outcomes: List[ChunkOutcome] = field(default_factory=list)

    @property
    def success_rate(self) -> float:
        """Succeeded chunks over total chunks, 0.0 for an empty batch."""
        if self.total_chunks == 0:
            return 0.0
        return self.succeeded_chunks / self.total_chunks

    @property
    def is_partial_success(self) -> bool:
        return self.succeeded_chunks > 0 and self.failed_chunks > 0

    @property
    def is_complete_success(self) -> bool:
        return self.failed_chunks == 0 and self.total_chunks > 0

    @property
    def is_complete_failure(self) -> bool:
        return self.succeeded_chunks == 0 and self.total_chunks > 0

    @property
    def first_error(self) -> Optional[BaseException]:
        return self.errors[0] if self.errors else None

    def raise_on_failure(self) -> None:
        """Raise the first recorded error if any chunk failed."""
        if self.failed_chunks == 0:
            return
        if self.first_error is not None:
            raise self.first_error
        raise RuntimeError(
            f"Batch operation failed: {self.failed_chunks} of {self.total_chunks} chunks failed"
        )

    def summary(self) -> str:
        """One-line description for logs."""
        return (
            f"{self.succeeded_chunks}/{self.total_chunks} chunks succeeded "
            f"({self.total_operations} operations, {self.success_rate:.0%})"
        )


class ResultAggregator:
    """Accumulates ChunkOutcome values as they arrive.

    ``record`` is called by the dispatcher loop one outcome at a time, in
    completion order. Errors are kept in that arrival order.
    """

    def __init__(self, total_operations: int, total_chunks: int, transactional: bool = False):
        """Initialize aggregator.

        Args:
            total_operations: Size of the deduplicated operation set
            total_chunks: Number of chunks the set was split into
            transactional: Whether the batch ran as a single atomic request
        """
        self.total_operations = total_operations
        self.total_chunks = total_chunks
        self.transactional = transactional
        self.succeeded_chunks = 0
        self.failed_chunks = 0
        self.errors: List[BaseException] = []
        self.outcomes: List[ChunkOutcome] = []

    def record(self, outcome: ChunkOutcome) -> None:
        """Account for one terminal chunk."""
        self.outcomes.append(outcome)
        if outcome.succeeded:
            self.succeeded_chunks += 1
            return
        self.failed_chunks += 1
        if outcome.error is not None:
            self.errors.append(outcome.error)

    @property
    def cancelled_chunks(self) -> int:
        return sum(1 for o in self.outcomes if o.state == ChunkState.CANCELLED)

    def build(self) -> BatchResult:
        """Freeze the accumulated counts into a BatchResult."""
        return BatchResult(
            total_operations=self.total_operations,
            total_chunks=self.total_chunks,
            succeeded_chunks=self.succeeded_chunks,
            failed_chunks=self.failed_chunks,
            errors=list(self.errors),
            transactional=self.transactional,
            outcomes=list(self.outcomes),
        )

    # -------------------------------------------------------------------------
    # Constructors for results that bypass chunk dispatch
    # -------------------------------------------------------------------------

    @staticmethod
    def empty(transactional: bool = False) -> BatchResult:
        """Result for a batch with nothing to send."""
        return BatchResult(transactional=transactional)

    @staticmethod
    def transactional_success(total_operations: int) -> BatchResult:
        outcome = ChunkOutcome(
            chunk_index=0,
            attempts=1,
            succeeded=True,
            operation_count=total_operations,
            state=ChunkState.SUCCEEDED,
        )
        return BatchResult(
            total_operations=total_operations,
            total_chunks=1,
            succeeded_chunks=1,
            failed_chunks=0,
            transactional=True,
            outcomes=[outcome],
        )

    @staticmethod
    def transactional_failure(total_operations: int, error: BaseException) -> BatchResult:
        outcome = ChunkOutcome(
            chunk_index=0,
            attempts=1,
            succeeded=False,
            error=error,
            operation_count=total_operations,
            state=ChunkState.FAILED,
        )
        return BatchResult(
            total_operations=total_operations,
            total_chunks=1,
            succeeded_chunks=0,
            failed_chunks=1,
            errors=[error],
            transactional=True,
            outcomes=[outcome],
        )
