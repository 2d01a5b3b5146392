"""Batch orchestrator: the entry point for submitting tuple mutations.

Pipeline for non-transactional batches:
    deduplicate -> chunk_operations -> ChunkDispatcher -> ResultAggregator

Transactional batches skip chunking and dispatch and go out as a single
request through ``transport.send_all``.
"""

import time
from typing import Any, Iterable, Mapping, Optional, Union

from tuplebatch.batch.aggregator import BatchResult, ResultAggregator
from tuplebatch.batch.chunker import chunk_operations
from tuplebatch.batch.context import WriteContext
from tuplebatch.batch.deduplicator import TupleInput, deduplicate
from tuplebatch.batch.dispatcher import ChunkDispatcher
from tuplebatch.batch.options import MAX_TUPLES_PER_REQUEST, BatchOptions
from tuplebatch.batch.retry import RetryPolicy
from tuplebatch.batch.types import OperationSet
from tuplebatch.core.exceptions import ConfigurationError


class BatchOrchestrator:
    """Coordinates one or more batch writes against a WriteContext."""

    def __init__(self, context: WriteContext, retry_policy: Optional[RetryPolicy] = None):
        """Initialize orchestrator.

        Args:
            context: Transport, store/model identifiers and logger
            retry_policy: Overrides the policy derived from each call's options
        """
        self.context = context
        self._retry_policy = retry_policy

    async def execute(
        self,
        writes: Optional[Iterable[TupleInput]] = None,
        deletes: Optional[Iterable[TupleInput]] = None,
        options: Optional[Union[BatchOptions, Mapping[str, Any]]] = None,
    ) -> BatchResult:
        """Submit ``writes`` and ``deletes`` and return the aggregated result.

        Args:
            writes: Tuples to write
            deletes: Tuples to delete
            options: BatchOptions, a mapping of option values, or None for defaults

        Returns:
            BatchResult; per-chunk failures are reported inside it

        Raises:
            ConfigurationError: If options are invalid, or a transactional batch
                exceeds the per-request maximum (before anything is sent)
        """
        options = BatchOptions.parse(options)
        log = self.context.logger
        start = time.monotonic()

        operation_set = deduplicate(writes, deletes, log=log)

        if operation_set.is_empty:
            log.debug("[Orchestrator] Nothing to write after deduplication")
            return ResultAggregator.empty(transactional=options.transactional)

        if options.transactional:
            if len(operation_set) > MAX_TUPLES_PER_REQUEST:
                raise ConfigurationError(
                    f"Transactional batches are limited to {MAX_TUPLES_PER_REQUEST} "
                    f"operations, got {len(operation_set)}; use transactional=False"
                )
            result = await self._execute_transactional(operation_set)
        else:
            result = await self._execute_chunked(operation_set, options)

        elapsed = time.monotonic() - start
        if result.failed_chunks:
            log.warning(
                f"[Orchestrator] Batch finished with failures: {result.summary()} "
                f"in {elapsed:.2f}s"
            )
        else:
            log.info(f"[Orchestrator] Batch finished: {result.summary()} in {elapsed:.2f}s")
        return result

    # -------------------------------------------------------------------------
    # Internal Methods
    # -------------------------------------------------------------------------

    async def _execute_transactional(self, operation_set: OperationSet) -> BatchResult:
        """Send everything in one request; any failure fails the whole batch."""
        log = self.context.logger
        log.debug(f"[Orchestrator] Sending {len(operation_set)} operation(s) transactionally")

        try:
            outcome = await self.context.transport.send_all(operation_set)
            error = outcome.err() if outcome.failed else None
        except Exception as e:
            error = e

        if error is not None:
            log.error(
                f"[Orchestrator] Transactional write failed: {type(error).__name__}: {error}"
            )
            return ResultAggregator.transactional_failure(len(operation_set), error)

        return ResultAggregator.transactional_success(len(operation_set))

    async def _execute_chunked(
        self, operation_set: OperationSet, options: BatchOptions
    ) -> BatchResult:
        """Chunk, dispatch with retries and aggregate."""
        chunks = chunk_operations(operation_set, options.max_tuples_per_chunk)
        aggregator = ResultAggregator(
            total_operations=len(operation_set),
            total_chunks=len(chunks),
        )

        dispatcher = ChunkDispatcher(
            transport=self.context.transport,
            options=options,
            retry_policy=self._retry_policy,
            log=self.context.logger,
        )
        await dispatcher.dispatch(chunks, on_outcome=aggregator.record)

        return aggregator.build()
