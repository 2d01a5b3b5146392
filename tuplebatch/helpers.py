"""Convenience coroutines for common tuple writes.

All helpers take an explicit WriteContext; there is no ambient default client.

    context = WriteContext(transport=HttpTupleTransport(store_id=store_id), store_id=store_id)
    await write(context, [("user:anne", "reader", "document:budget")])
    result = await writes(context, writes=many, max_parallel_requests=4, max_retries=2)
"""

from typing import Any, Iterable, Optional, Union

from tuplebatch.batch.aggregator import BatchResult
from tuplebatch.batch.context import WriteContext
from tuplebatch.batch.deduplicator import TupleInput
from tuplebatch.batch.options import BatchOptions
from tuplebatch.batch.orchestrator import BatchOrchestrator
from tuplebatch.batch.types import TupleKey


def _as_list(tuples: Union[TupleInput, Iterable[TupleInput]]) -> list:
    if isinstance(tuples, TupleKey):
        return [tuples]
    items = list(tuples)
    # A bare (user, relation, object) triple of strings is a single tuple
    if len(items) == 3 and all(isinstance(item, str) for item in items):
        return [tuple(items)]
    return items


async def write(
    context: WriteContext,
    tuples: Union[TupleInput, Iterable[TupleInput]],
    transactional: bool = True,
) -> BatchResult:
    """Write one or more tuples, raising the first error on any failure."""
    result = await BatchOrchestrator(context).execute(
        writes=_as_list(tuples),
        options=BatchOptions.from_settings(transactional=transactional),
    )
    result.raise_on_failure()
    return result


async def delete(
    context: WriteContext,
    tuples: Union[TupleInput, Iterable[TupleInput]],
    transactional: bool = True,
) -> BatchResult:
    """Delete one or more tuples, raising the first error on any failure."""
    result = await BatchOrchestrator(context).execute(
        deletes=_as_list(tuples),
        options=BatchOptions.from_settings(transactional=transactional),
    )
    result.raise_on_failure()
    return result


async def writes(
    context: WriteContext,
    writes: Optional[Iterable[TupleInput]] = None,
    deletes: Optional[Iterable[TupleInput]] = None,
    **options: Any,
) -> BatchResult:
    """Run a non-transactional chunked batch and return its result.

    Failures are reported in the result, never raised. Keyword arguments are
    BatchOptions fields (``max_parallel_requests``, ``max_retries``, ...);
    ``transactional=True`` is rejected with ConfigurationError.
    """
    return await BatchOrchestrator(context).execute(
        writes=writes,
        deletes=deletes,
        options=BatchOptions.non_transactional(**options),
    )
