"""Transport contract used by the batch pipeline."""

from typing import Protocol, runtime_checkable

from tuplebatch.batch.types import Chunk, OperationSet
from tuplebatch.core.result import Result


@runtime_checkable
class TupleTransport(Protocol):
    """Sends tuple mutations to the authorization service.

    Implementations return ``Success(WriteAck)`` or ``Failure(error)`` rather
    than raising for service-side rejections. ``error`` should be one of the
    TransportError subclasses so the retry policy can classify it.
    """

    async def send(self, chunk: Chunk) -> Result:
        """Send one chunk as a single write request."""
        ...

    async def send_all(self, operation_set: OperationSet) -> Result:
        """Send the whole operation set as one atomic write request."""
        ...
