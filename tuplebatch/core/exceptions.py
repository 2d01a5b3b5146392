"""Exceptions for tuple batch operations.

All tuplebatch exceptions inherit from TupleBatchError. Per-chunk failures
derive from TransportError and are captured into BatchResult.errors rather
than raised; ConfigurationError is the one error raised straight to callers
of BatchOrchestrator.execute.
"""

from typing import Optional


class TupleBatchError(Exception):
    """Base exception for tuplebatch."""

    pass


class ConfigurationError(TupleBatchError):
    """Raised when batch options or settings are invalid.

    Always raised before any request is sent to the authorization service.
    """

    pass


class ResultUnwrapError(TupleBatchError):
    """Raised when unwrapping the wrong side of a Success/Failure result."""

    pass


class TransportError(TupleBatchError):
    """Base class for errors produced while sending tuples to the service.

    Attributes:
        status_code: HTTP status code, if the service answered at all
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        """Initialize transport error.

        Args:
            message: Human-readable error description
            status_code: HTTP status code of the failed response, if any
        """
        self.status_code = status_code
        super().__init__(message)


class ValidationError(TransportError):
    """The service rejected the content of a request (400/422). Never retried."""

    pass


class AuthenticationError(TransportError):
    """The service rejected our credentials (401/403). Never retried."""

    pass


class ClientRequestError(TransportError):
    """Any other 4xx answer (unknown store, write conflict, ...). Never retried."""

    pass


class NetworkError(TransportError):
    """Connection failure, timeout or 5xx answer. Retried with exponential backoff."""

    pass


class RateLimitError(TransportError):
    """The service is throttling us (429) or under maintenance (503).

    Retried after a fixed delay, or after the server-provided Retry-After.
    """

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = 429,
        retry_after: Optional[float] = None,
        maintenance: bool = False,
    ):
        """Initialize rate limit error.

        Args:
            message: Human-readable error description
            status_code: HTTP status code (429 or 503)
            retry_after: Seconds the server asked us to wait, if provided
            maintenance: Whether the service signalled maintenance rather than throttling
        """
        self.retry_after = retry_after
        self.maintenance = maintenance
        super().__init__(message, status_code=status_code)


class ChunkCancelledError(TupleBatchError):
    """Chunk was never sent because an earlier chunk failed with stop_on_first_error."""

    def __init__(self, chunk_index: int):
        """Initialize cancellation error.

        Args:
            chunk_index: Index of the chunk that was skipped
        """
        self.chunk_index = chunk_index
        super().__init__(f"Chunk {chunk_index} cancelled after an earlier chunk failed")
