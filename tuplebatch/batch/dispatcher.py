"""Chunk dispatcher with bounded concurrency, retries and fail-fast.

Chunks are started in index order, at most ``max_parallel_requests`` at a
time. Each chunk task only suspends while awaiting the transport or a retry
delay. Completion handling (state updates, outcome callbacks) happens in the
dispatch loop itself, one finished task at a time, so the outcome callback is
never entered concurrently.
"""

import asyncio
from collections import deque
from typing import TYPE_CHECKING, Awaitable, Callable, Deque, Dict, List, Optional, Sequence

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from tuplebatch.batch.options import BatchOptions
from tuplebatch.batch.retry import RetryPolicy
from tuplebatch.batch.types import Chunk, ChunkOutcome, ChunkState
from tuplebatch.core.exceptions import ChunkCancelledError
from tuplebatch.core.logging import ContextualLogger, logger

if TYPE_CHECKING:
    from tuplebatch.transport.protocol import TupleTransport

OutcomeCallback = Callable[[ChunkOutcome], None]


class ChunkDispatcher:
    """Sends chunks through a transport and reports one outcome per chunk.

    One dispatcher instance handles one batch. Per-chunk errors never escape
    ``dispatch``; they are reported as failed ChunkOutcome values.
    """

    def __init__(
        self,
        transport: "TupleTransport",
        options: BatchOptions,
        retry_policy: Optional[RetryPolicy] = None,
        log: Optional[ContextualLogger] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize dispatcher.

        Args:
            transport: Transport used to send each chunk
            options: Concurrency, retry and fail-fast options
            retry_policy: Error classification and backoff, built from options if omitted
            log: Contextual logger
            sleep: Coroutine used to wait between retries
        """
        self._transport = transport
        self._options = options
        self._policy = retry_policy or RetryPolicy(
            retry_delay_seconds=options.retry_delay_seconds,
            rate_limit_delay_seconds=options.rate_limit_delay_seconds,
        )
        self._log = log or logger
        self._sleep = sleep

        self._states: Dict[int, ChunkState] = {}
        self._in_flight = 0
        self.max_observed_in_flight = 0

    @property
    def states(self) -> Dict[int, ChunkState]:
        """Snapshot of every chunk's current state."""
        return dict(self._states)

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def dispatch(
        self,
        chunks: Sequence[Chunk],
        on_outcome: Optional[OutcomeCallback] = None,
    ) -> List[ChunkOutcome]:
        """Process all chunks and return their outcomes in completion order.

        Args:
            chunks: Chunks in index order
            on_outcome: Called once per terminal chunk, never concurrently

        Returns:
            One ChunkOutcome per chunk; cancelled chunks come last
        """
        self._states = {chunk.index: ChunkState.PENDING for chunk in chunks}
        pending: Deque[Chunk] = deque(chunks)
        running: Dict["asyncio.Task[ChunkOutcome]", Chunk] = {}
        outcomes: List[ChunkOutcome] = []
        stopping = False
        limit = self._options.max_parallel_requests

        self._log.debug(
            f"[Dispatcher] Dispatching {len(chunks)} chunk(s) with concurrency {limit}"
        )

        try:
            while pending or running:
                while pending and not stopping and len(running) < limit:
                    chunk = pending.popleft()
                    task = asyncio.create_task(
                        self._process_chunk(chunk), name=f"chunk-{chunk.index}"
                    )
                    running[task] = chunk

                if not running:
                    break

                done, _ = await asyncio.wait(running.keys(), return_when=asyncio.FIRST_COMPLETED)

                for task in sorted(done, key=lambda t: running[t].index):
                    running.pop(task)
                    outcome = task.result()
                    self._report(outcome, outcomes, on_outcome)

                    if not outcome.succeeded and self._options.stop_on_first_error and not stopping:
                        stopping = True
                        self._log.warning(
                            f"[Dispatcher] Chunk {outcome.chunk_index} failed, cancelling "
                            f"{len(pending)} pending chunk(s) and waiting for "
                            f"{len(running)} in flight"
                        )
        except asyncio.CancelledError:
            for task in running:
                task.cancel()
            await asyncio.gather(*running, return_exceptions=True)
            raise

        for chunk in pending:
            self._states[chunk.index] = ChunkState.CANCELLED
            outcome = ChunkOutcome(
                chunk_index=chunk.index,
                attempts=0,
                succeeded=False,
                error=ChunkCancelledError(chunk.index),
                operation_count=len(chunk),
                state=ChunkState.CANCELLED,
            )
            self._report(outcome, outcomes, on_outcome)

        return outcomes

    # -------------------------------------------------------------------------
    # Internal Methods
    # -------------------------------------------------------------------------

    def _report(
        self,
        outcome: ChunkOutcome,
        outcomes: List[ChunkOutcome],
        on_outcome: Optional[OutcomeCallback],
    ) -> None:
        outcomes.append(outcome)
        if on_outcome is not None:
            on_outcome(outcome)

    async def _process_chunk(self, chunk: Chunk) -> ChunkOutcome:
        """Send one chunk, retrying per policy, and return its terminal outcome."""
        log = self._log.with_context(chunk=chunk.index)
        attempts = 0

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._options.max_retries + 1),
            retry=retry_if_exception(self._policy.should_retry),
            wait=self._policy.wait,
            sleep=self._sleep,
            before_sleep=self._mark_retrying(chunk, log),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    attempts = attempt.retry_state.attempt_number
                    await self._send_once(chunk)
        except Exception as e:
            self._states[chunk.index] = ChunkState.FAILED
            log.warning(
                f"[Dispatcher] Chunk failed after {attempts} attempt(s): "
                f"{type(e).__name__}: {e}"
            )
            return ChunkOutcome(
                chunk_index=chunk.index,
                attempts=attempts,
                succeeded=False,
                error=e,
                operation_count=len(chunk),
                state=ChunkState.FAILED,
            )

        self._states[chunk.index] = ChunkState.SUCCEEDED
        log.debug(f"[Dispatcher] Chunk of {len(chunk)} operation(s) succeeded")
        return ChunkOutcome(
            chunk_index=chunk.index,
            attempts=attempts,
            succeeded=True,
            operation_count=len(chunk),
            state=ChunkState.SUCCEEDED,
        )

    async def _send_once(self, chunk: Chunk) -> None:
        """One attempt; raises the transport's error so tenacity can classify it."""
        self._states[chunk.index] = ChunkState.IN_FLIGHT
        self._in_flight += 1
        self.max_observed_in_flight = max(self.max_observed_in_flight, self._in_flight)
        try:
            result = await self._transport.send(chunk)
        finally:
            self._in_flight -= 1

        if result.failed:
            raise result.err()

    def _mark_retrying(
        self, chunk: Chunk, log: ContextualLogger
    ) -> Callable[[RetryCallState], None]:
        def before_sleep(retry_state: RetryCallState) -> None:
            self._states[chunk.index] = ChunkState.RETRYING
            error = retry_state.outcome.exception()
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            log.warning(
                f"[Dispatcher] Attempt {retry_state.attempt_number}/"
                f"{self._options.max_retries + 1} failed with {type(error).__name__}: {error}. "
                f"Retrying in {delay:.2f}s"
            )

        return before_sleep
