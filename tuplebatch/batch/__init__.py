"""Batch pipeline for relationship-tuple mutations.

Provides:
- BatchOrchestrator: entry point, ``execute(writes, deletes, options)``
- BatchOptions: validated options for one call
- BatchResult: aggregated outcome, including partial success
- WriteContext: explicit transport/store/model/logger container
"""

from tuplebatch.batch.aggregator import BatchResult, ResultAggregator
from tuplebatch.batch.context import WriteContext
from tuplebatch.batch.options import MAX_TUPLES_PER_REQUEST, BatchOptions
from tuplebatch.batch.orchestrator import BatchOrchestrator
from tuplebatch.batch.types import (
    Chunk,
    ChunkOutcome,
    ChunkState,
    OperationKind,
    OperationSet,
    TupleCondition,
    TupleKey,
    TupleOperation,
    WriteAck,
)

__all__ = [
    "BatchOptions",
    "BatchOrchestrator",
    "BatchResult",
    "Chunk",
    "ChunkOutcome",
    "ChunkState",
    "MAX_TUPLES_PER_REQUEST",
    "OperationKind",
    "OperationSet",
    "ResultAggregator",
    "TupleCondition",
    "TupleKey",
    "TupleOperation",
    "WriteAck",
    "WriteContext",
]
