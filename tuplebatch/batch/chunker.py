"""Split an OperationSet into ordered, size-bounded chunks."""

from typing import List

from tuplebatch.batch.types import Chunk, OperationSet
from tuplebatch.core.exceptions import ConfigurationError


def chunk_operations(operation_set: OperationSet, max_tuples_per_chunk: int) -> List[Chunk]:
    """Partition ``operation_set`` into chunks of at most ``max_tuples_per_chunk``.

    Concatenating the chunks in index order reproduces the set exactly; only
    the last chunk may be smaller than the bound.

    Raises:
        ConfigurationError: If ``max_tuples_per_chunk`` is less than 1
    """
    if max_tuples_per_chunk < 1:
        raise ConfigurationError(
            f"max_tuples_per_chunk must be >= 1, got {max_tuples_per_chunk}"
        )

    operations = operation_set.operations
    return [
        Chunk(index=index, operations=operations[start : start + max_tuples_per_chunk])
        for index, start in enumerate(range(0, len(operations), max_tuples_per_chunk))
    ]
