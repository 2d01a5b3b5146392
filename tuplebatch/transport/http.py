"""HttpTupleTransport - httpx transport for the tuple write endpoint.

Wraps an ``httpx.AsyncClient`` and turns every answer of
``POST {api_url}/stores/{store_id}/write`` into a Success/Failure value so the
batch pipeline never has to deal with raw HTTP errors.
"""

from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, Dict, Optional

import httpx

from tuplebatch.batch.types import Chunk, OperationSet, WriteAck
from tuplebatch.core.config import settings
from tuplebatch.core.exceptions import (
    AuthenticationError,
    ClientRequestError,
    ConfigurationError,
    NetworkError,
    RateLimitError,
    ValidationError,
)
from tuplebatch.core.logging import ContextualLogger, logger
from tuplebatch.core.result import Failure, Result, Success


def _parse_retry_after(response: httpx.Response) -> Optional[float]:
    """Read Retry-After as seconds, either a delay or an HTTP date."""
    retry_after = response.headers.get("Retry-After")
    if not retry_after:
        return None
    try:
        return max(float(retry_after), 0.0)
    except (ValueError, TypeError):
        pass

    try:
        retry_at = parsedate_to_datetime(retry_after)
    except (ValueError, TypeError):
        return None
    if retry_at.tzinfo is None:
        retry_at = retry_at.replace(tzinfo=timezone.utc)
    return max((retry_at - datetime.now(timezone.utc)).total_seconds(), 0.0)


def _error_message(response: httpx.Response) -> str:
    """Best-effort human-readable message from an error response body."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        code = body.get("code")
        return f"{code}: {body['message']}" if code else str(body["message"])
    text = response.text.strip() if response.text else ""
    return text or f"HTTP {response.status_code}"


def error_from_response(response: httpx.Response) -> Exception:
    """Map a non-2xx response to the tuplebatch error taxonomy.

    400/422 -> ValidationError, 401/403 -> AuthenticationError,
    429 -> RateLimitError, 503 -> RateLimitError (maintenance),
    other 5xx -> NetworkError, any other status -> ClientRequestError.
    """
    status = response.status_code
    message = _error_message(response)

    if status in (400, 422):
        return ValidationError(message, status_code=status)
    if status in (401, 403):
        return AuthenticationError(message, status_code=status)
    if status == 429:
        return RateLimitError(
            f"Rate limit exceeded: {message}",
            status_code=status,
            retry_after=_parse_retry_after(response),
        )
    if status == 503:
        return RateLimitError(
            f"Service unavailable: {message}",
            status_code=status,
            retry_after=_parse_retry_after(response),
            maintenance=True,
        )
    if status >= 500:
        return NetworkError(f"Server error: {message}", status_code=status)
    return ClientRequestError(message, status_code=status)


class HttpTupleTransport:
    """Transport that posts tuple writes to an OpenFGA-compatible service.

    Per-attempt timeouts are enforced by the wrapped httpx client.
    """

    def __init__(
        self,
        store_id: Optional[str] = None,
        model_id: Optional[str] = None,
        api_url: Optional[str] = None,
        api_token: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout: Optional[float] = None,
        log: Optional[ContextualLogger] = None,
    ):
        """Initialize transport.

        Args:
            store_id: Store to write to, defaults to settings.STORE_ID
            model_id: Authorization model id sent with each write, defaults to settings.MODEL_ID
            api_url: Service base URL, defaults to settings.API_URL
            api_token: Static bearer token, defaults to settings.API_TOKEN
            client: Existing httpx client to wrap; one is created (and owned) otherwise
            timeout: Per-request timeout when creating the client
            log: Contextual logger

        Raises:
            ConfigurationError: If no store id is configured
        """
        self.store_id = store_id or settings.STORE_ID
        if not self.store_id:
            raise ConfigurationError("A store id is required to write tuples")
        self.model_id = model_id or settings.MODEL_ID
        self.api_url = (api_url or settings.API_URL).rstrip("/")
        self._logger = (log or logger).with_context(store_id=self.store_id)

        token = api_token or settings.API_TOKEN
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            headers=headers,
            timeout=timeout if timeout is not None else settings.HTTP_TIMEOUT_SECONDS,
        )
        if client is not None and headers:
            self._client.headers.update(headers)

    @property
    def write_url(self) -> str:
        return f"{self.api_url}/stores/{self.store_id}/write"

    def _build_body(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        body = dict(payload)
        if self.model_id:
            body["authorization_model_id"] = self.model_id
        return body

    async def _post(self, payload: Dict[str, Any], operation_count: int) -> Result:
        """POST one write request and classify the answer."""
        try:
            response = await self._client.post(self.write_url, json=self._build_body(payload))
        except httpx.TransportError as e:
            # Connect/read timeouts, resets, DNS failures
            self._logger.debug(f"[HttpTupleTransport] Transport failure: {type(e).__name__}: {e}")
            return Failure(NetworkError(f"{type(e).__name__}: {e}"))

        if response.status_code in (200, 204):
            ack = WriteAck(operation_count=operation_count, status_code=response.status_code)
            return Success(ack)

        error = error_from_response(response)
        self._logger.debug(
            f"[HttpTupleTransport] Write rejected with {response.status_code}: {error}"
        )
        return Failure(error)

    async def send(self, chunk: Chunk) -> Result:
        """Send one chunk as a single write request."""
        return await self._post(chunk.to_payload(), len(chunk))

    async def send_all(self, operation_set: OperationSet) -> Result:
        """Send the whole operation set atomically."""
        return await self._post(operation_set.to_payload(), len(operation_set))

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpTupleTransport":
        """Enter async context manager."""
        return self

    async def __aexit__(self, *args) -> None:
        """Exit async context manager."""
        await self.aclose()
