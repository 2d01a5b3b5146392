"""Retry policy for chunk submission.

Classifies transport errors and computes how long to wait before the next
attempt. Exposes tenacity hooks so the dispatcher can drive its retry loop
with ``tenacity.AsyncRetrying``:

    AsyncRetrying(
        stop=stop_after_attempt(options.max_retries + 1),
        retry=retry_if_exception(policy.should_retry),
        wait=policy.wait,
        reraise=True,
    )
"""

import random
from enum import Enum
from typing import Callable, Optional

from tenacity import RetryCallState

from tuplebatch.core.exceptions import NetworkError, RateLimitError

JITTER_FACTOR = 0.1
MIN_RETRY_AFTER_SECONDS = 1.0
MAX_RETRY_AFTER_SECONDS = 120.0


class ErrorKind(str, Enum):
    """How a failed attempt should be treated."""

    FATAL = "fatal"
    TRANSIENT = "transient"
    RATE_LIMITED = "rate_limited"


class RetryPolicy:
    """Error classification and backoff schedule for one batch.

    - FATAL (validation, auth, other 4xx, unexpected errors): never retried
    - TRANSIENT (network failures, 5xx): ``retry_delay * 2**(attempt-1)`` plus
      jitter in ``[0, delay * 0.1]``
    - RATE_LIMITED (429, maintenance): fixed delay regardless of attempt, or
      the server's Retry-After when present
    """

    def __init__(
        self,
        retry_delay_seconds: float = 1.0,
        rate_limit_delay_seconds: float = 5.0,
        jitter: Optional[Callable[[float, float], float]] = None,
    ):
        """Initialize policy.

        Args:
            retry_delay_seconds: Base unit of exponential backoff
            rate_limit_delay_seconds: Fixed delay for rate-limited answers
            jitter: ``(low, high) -> float`` source, defaults to random.uniform
        """
        self.retry_delay_seconds = retry_delay_seconds
        self.rate_limit_delay_seconds = rate_limit_delay_seconds
        self._jitter = jitter or random.uniform

    @staticmethod
    def classify(error: BaseException) -> ErrorKind:
        """Map an error to its retry treatment."""
        if isinstance(error, RateLimitError):
            return ErrorKind.RATE_LIMITED
        if isinstance(error, NetworkError):
            return ErrorKind.TRANSIENT
        return ErrorKind.FATAL

    def delay_for(
        self,
        attempt: int,
        kind: ErrorKind,
        error: Optional[BaseException] = None,
    ) -> float:
        """Seconds to wait after failed attempt number ``attempt`` (1-based).

        Args:
            attempt: Attempt that just failed, counted from 1
            kind: Classification of the failure
            error: The failure itself, consulted for Retry-After

        Returns:
            Delay in seconds (0 for fatal errors)
        """
        if kind == ErrorKind.FATAL:
            return 0.0

        if kind == ErrorKind.RATE_LIMITED:
            retry_after = getattr(error, "retry_after", None)
            if retry_after is not None:
                clamped = max(float(retry_after), MIN_RETRY_AFTER_SECONDS)
                return min(clamped, MAX_RETRY_AFTER_SECONDS)
            return self.rate_limit_delay_seconds

        delay = self.retry_delay_seconds * (2 ** (max(attempt, 1) - 1))
        if delay > 0:
            delay += self._jitter(0.0, delay * JITTER_FACTOR)
        return delay

    # -------------------------------------------------------------------------
    # tenacity hooks
    # -------------------------------------------------------------------------

    def should_retry(self, exception: BaseException) -> bool:
        """Retry predicate: anything not classified FATAL."""
        return self.classify(exception) != ErrorKind.FATAL

    def wait(self, retry_state: RetryCallState) -> float:
        """Wait strategy reading the failed attempt from tenacity's state."""
        exception = retry_state.outcome.exception() if retry_state.outcome else None
        if exception is None:
            return 0.0
        return self.delay_for(retry_state.attempt_number, self.classify(exception), exception)
