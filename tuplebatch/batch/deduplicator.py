"""Collapse duplicate tuple operations before they are sent.

Writes and deletes are keyed by ``(user, relation, object)``. Repeated keys
keep their first occurrence; a key that is both written and deleted becomes a
single delete (delete takes precedence) positioned with the deletes.
"""

from typing import Dict, Iterable, Optional, Sequence, Tuple, Union

from tuplebatch.batch.types import OperationKind, OperationSet, TupleKey, TupleOperation
from tuplebatch.core.logging import ContextualLogger, logger

TupleInput = Union[TupleKey, Sequence[str]]


def deduplicate(
    writes: Optional[Iterable[TupleInput]] = None,
    deletes: Optional[Iterable[TupleInput]] = None,
    log: Optional[ContextualLogger] = None,
) -> OperationSet:
    """Build an OperationSet from raw write and delete lists.

    Args:
        writes: Tuples to write, in caller order
        deletes: Tuples to delete, in caller order
        log: Logger to report collapsed duplicates on

    Returns:
        OperationSet with one operation per identity key; surviving writes
        first, then deletes
    """
    log = log or logger
    unique_writes: Dict[Tuple[str, str, str], TupleOperation] = {}
    unique_deletes: Dict[Tuple[str, str, str], TupleOperation] = {}
    duplicates = 0
    conflicts = 0

    for raw in writes or ():
        op = TupleOperation.from_key(OperationKind.WRITE, TupleKey.coerce(raw))
        if op.identity in unique_writes:
            duplicates += 1
            continue
        unique_writes[op.identity] = op

    for raw in deletes or ():
        op = TupleOperation.from_key(OperationKind.DELETE, TupleKey.coerce(raw))
        if op.identity in unique_writes:
            del unique_writes[op.identity]
            conflicts += 1
        if op.identity in unique_deletes:
            duplicates += 1
            continue
        unique_deletes[op.identity] = op

    if duplicates or conflicts:
        log.debug(
            f"[Deduplicator] Collapsed {duplicates} duplicate(s), "
            f"resolved {conflicts} write/delete conflict(s) in favor of delete"
        )

    return OperationSet(tuple(unique_writes.values()) + tuple(unique_deletes.values()))
