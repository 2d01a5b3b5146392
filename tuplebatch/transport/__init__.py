"""Transports that deliver tuple writes to the authorization service."""

from tuplebatch.transport.http import HttpTupleTransport, error_from_response
from tuplebatch.transport.protocol import TupleTransport

__all__ = ["HttpTupleTransport", "TupleTransport", "error_from_response"]
