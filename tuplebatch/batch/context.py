"""Explicit context for a batch write."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

from tuplebatch.core.logging import ContextualLogger, logger

if TYPE_CHECKING:
    from tuplebatch.transport.protocol import TupleTransport


@dataclass
class WriteContext:
    """Everything a batch call needs, passed down the call chain.

    Attributes:
        transport: Sends chunks to the authorization service
        store_id: Target store (informational when the transport is already bound)
        model_id: Authorization model the tuples are validated against
        logger: Contextual logger; store/model dimensions are added automatically
    """

    transport: "TupleTransport"
    store_id: Optional[str] = None
    model_id: Optional[str] = None
    logger: ContextualLogger = field(default=logger)

    def __post_init__(self):
        """Attach store/model dimensions to the logger."""
        dimensions = {}
        if self.store_id:
            dimensions["store_id"] = self.store_id
        if self.model_id:
            dimensions["model_id"] = self.model_id
        if dimensions:
            self.logger = self.logger.with_context(**dimensions)
