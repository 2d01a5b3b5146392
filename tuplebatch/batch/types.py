"""Value types for tuple batches.

Operations flow through the batch pipeline as immutable values:
TupleKey (caller input) -> TupleOperation -> OperationSet -> Chunk -> ChunkOutcome.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Sequence, Tuple, Union

from tuplebatch.core.exceptions import ConfigurationError


class OperationKind(str, Enum):
    """Whether a tuple is written or deleted."""

    WRITE = "write"
    DELETE = "delete"


class ChunkState(str, Enum):
    """Lifecycle of a chunk inside the dispatcher.

    PENDING -> IN_FLIGHT -> {SUCCEEDED, RETRYING, FAILED, CANCELLED}
    RETRYING loops back to IN_FLIGHT after the retry delay.
    """

    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    RETRYING = "retrying"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (ChunkState.SUCCEEDED, ChunkState.FAILED, ChunkState.CANCELLED)


@dataclass(frozen=True)
class TupleCondition:
    """Named condition attached to a written tuple."""

    name: str
    context: Optional[Dict[str, Any]] = field(default=None, hash=False)

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"name": self.name}
        if self.context:
            payload["context"] = self.context
        return payload


@dataclass(frozen=True)
class TupleKey:
    """A relationship tuple as supplied by callers."""

    user: str
    relation: str
    object: str
    condition: Optional[TupleCondition] = field(default=None, compare=False)

    @classmethod
    def coerce(cls, value: Union["TupleKey", Sequence[str]]) -> "TupleKey":
        """Accept a TupleKey or a ``(user, relation, object)`` sequence.

        Raises:
            ConfigurationError: If ``value`` is a string, has the wrong arity or
                holds non-string parts
        """
        if isinstance(value, TupleKey):
            return value
        if isinstance(value, (str, bytes)) or not isinstance(value, Sequence) or len(value) != 3:
            raise ConfigurationError(
                f"Expected a TupleKey or a (user, relation, object) triple, got {value!r}"
            )
        if not all(isinstance(part, str) for part in value):
            raise ConfigurationError(f"Tuple parts must be strings, got {value!r}")
        user, relation, obj = value
        return cls(user=user, relation=relation, object=obj)


@dataclass(frozen=True)
class TupleOperation:
    """A single write or delete of a relationship tuple.

    Identity (for deduplication) is ``(user, relation, object)`` regardless of
    kind or condition.
    """

    kind: OperationKind
    user: str
    relation: str
    object: str
    condition: Optional[TupleCondition] = field(default=None, compare=False)

    @classmethod
    def from_key(cls, kind: OperationKind, key: TupleKey) -> "TupleOperation":
        return cls(
            kind=kind,
            user=key.user,
            relation=key.relation,
            object=key.object,
            condition=key.condition if kind == OperationKind.WRITE else None,
        )

    @property
    def identity(self) -> Tuple[str, str, str]:
        """Deduplication key."""
        return (self.user, self.relation, self.object)

    def to_tuple_key(self) -> Dict[str, Any]:
        """Wire representation of the tuple key."""
        payload: Dict[str, Any] = {
            "user": self.user,
            "relation": self.relation,
            "object": self.object,
        }
        if self.condition is not None and self.kind == OperationKind.WRITE:
            payload["condition"] = self.condition.to_payload()
        return payload


def _build_payload(operations: Sequence[TupleOperation]) -> Dict[str, Any]:
    """Build the logical write request body, omitting empty sections."""
    payload: Dict[str, Any] = {}
    writes = [op.to_tuple_key() for op in operations if op.kind == OperationKind.WRITE]
    deletes = [op.to_tuple_key() for op in operations if op.kind == OperationKind.DELETE]
    if writes:
        payload["writes"] = {"tuple_keys": writes}
    if deletes:
        payload["deletes"] = {"tuple_keys": deletes}
    return payload


@dataclass(frozen=True)
class OperationSet:
    """Ordered operations with unique identity keys."""

    operations: Tuple[TupleOperation, ...] = ()

    def __len__(self) -> int:
        return len(self.operations)

    def __iter__(self) -> Iterator[TupleOperation]:
        return iter(self.operations)

    @property
    def is_empty(self) -> bool:
        return not self.operations

    @property
    def writes(self) -> List[TupleOperation]:
        return [op for op in self.operations if op.kind == OperationKind.WRITE]

    @property
    def deletes(self) -> List[TupleOperation]:
        return [op for op in self.operations if op.kind == OperationKind.DELETE]

    def to_payload(self) -> Dict[str, Any]:
        return _build_payload(self.operations)


@dataclass(frozen=True)
class Chunk:
    """A size-bounded slice of an OperationSet, sent as one request."""

    index: int
    operations: Tuple[TupleOperation, ...]

    def __len__(self) -> int:
        return len(self.operations)

    @property
    def writes(self) -> List[TupleOperation]:
        return [op for op in self.operations if op.kind == OperationKind.WRITE]

    @property
    def deletes(self) -> List[TupleOperation]:
        return [op for op in self.operations if op.kind == OperationKind.DELETE]

    def to_payload(self) -> Dict[str, Any]:
        return _build_payload(self.operations)


@dataclass(frozen=True)
class WriteAck:
    """Acknowledgement returned by a transport for an accepted request."""

    operation_count: int
    status_code: int = 200


@dataclass(frozen=True)
class ChunkOutcome:
    """Terminal result of processing one chunk.

    Attributes:
        chunk_index: Index of the chunk
        attempts: Number of send attempts made (0 for cancelled chunks)
        succeeded: Whether the service accepted the chunk
        error: Last observed error when the chunk did not succeed
        operation_count: Number of operations in the chunk
        state: Terminal chunk state
    """

    chunk_index: int
    attempts: int
    succeeded: bool
    error: Optional[BaseException] = None
    operation_count: int = 0
    state: ChunkState = ChunkState.SUCCEEDED
