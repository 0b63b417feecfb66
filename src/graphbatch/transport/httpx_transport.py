"""
httpx transport.

Sends prepared requests with an httpx.AsyncClient, streaming multipart bodies
one field at a time.
"""

from typing import Optional

import httpx
import structlog

from graphbatch.config import GraphBatchConfig, get_config
from graphbatch.core.connection import PreparedRequest
from graphbatch.transport.interface import Transport, TransportError

logger = structlog.get_logger(__name__)


class HttpxTransport(Transport):
    """
    Transport backed by httpx.

    Implements the Transport interface using an httpx.AsyncClient. A client
    can be injected, e.g. one built on httpx.MockTransport for tests.
    """

    def __init__(
        self,
        config: Optional[GraphBatchConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Initialize the transport.

        Args:
            config: Graph Batcher configuration. Uses global config if not provided.
            client: Preconfigured client (created lazily if not provided)
        """
        self.config = config or get_config()
        self._client = client
        self._owns_client = client is None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.config.request_timeout_seconds)
            self._owns_client = True
        return self._client

    async def send(self, request: PreparedRequest) -> httpx.Response:
        """Send the request and read the full response."""
        client = self._get_client()
        path = request.url.split("?", 1)[0]

        try:
            response = await client.send(request.to_httpx(asynchronous=True))
            await response.aread()
        except httpx.RequestError as e:
            logger.error("transport_request_failed", method=request.method, url=path, error=str(e))
            raise TransportError(f"Request to {path} failed: {e}") from e

        logger.debug(
            "transport_response",
            method=request.method,
            url=path,
            status=response.status_code,
        )
        return response

    async def close(self) -> None:
        """Close the HTTP client if this transport created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None
            logger.info("transport_closed")
