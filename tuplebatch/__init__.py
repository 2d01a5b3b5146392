"""tuplebatch: batched relationship-tuple writes for OpenFGA-compatible services."""

from tuplebatch.batch import (
    BatchOptions,
    BatchOrchestrator,
    BatchResult,
    TupleCondition,
    TupleKey,
    WriteContext,
)
from tuplebatch.transport import HttpTupleTransport, TupleTransport

__all__ = [
    "BatchOptions",
    "BatchOrchestrator",
    "BatchResult",
    "HttpTupleTransport",
    "TupleCondition",
    "TupleKey",
    "TupleTransport",
    "WriteContext",
]
