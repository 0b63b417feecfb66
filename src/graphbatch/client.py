"""
Graph client.

Coordinates request encoding and transport to execute single requests and
batches.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

import httpx
import structlog

from graphbatch.config import GraphBatchConfig, get_config
from graphbatch.core.connection import ConnectionBuilder
from graphbatch.core.request import GraphRequest
from graphbatch.transport.httpx_transport import HttpxTransport
from graphbatch.transport.interface import Transport

logger = structlog.get_logger(__name__)


@dataclass
class GraphResponse:
    """
    Raw response of one outbound call.

    Attributes:
        raw: The HTTP response, unparsed
        requests: The requests carried by the call, in order
    """

    raw: httpx.Response
    requests: List[GraphRequest]

    @property
    def status_code(self) -> int:
        return self.raw.status_code

    @property
    def is_batch(self) -> bool:
        return len(self.requests) > 1


class GraphClient:
    """
    Executes graph requests.

    Usage:
        ```python
        async with GraphClient() as client:
            response = await client.execute_batch([
                GraphRequest.me(session),
                GraphRequest.my_friends(session),
            ])
        ```
    """

    def __init__(
        self,
        config: Optional[GraphBatchConfig] = None,
        transport: Optional[Transport] = None,
        builder: Optional[ConnectionBuilder] = None,
    ):
        """
        Initialize the client.

        Args:
            config: Graph Batcher configuration. Uses global config if not provided.
            transport: Custom transport (HttpxTransport if not provided)
            builder: Custom connection builder
        """
        self.config = config or get_config()
        self.transport = transport or HttpxTransport(self.config)
        self.builder = builder or ConnectionBuilder(self.config)

    async def execute(self, request: GraphRequest) -> GraphResponse:
        """Execute a single request."""
        return await self.execute_batch([request])

    async def execute_batch(self, requests: Sequence[GraphRequest]) -> GraphResponse:
        """
        Execute one or more requests in a single call.

        Raises:
            InvalidArgumentError: If the list is empty or contains None
            MissingAppIdError: If a sessionless batch has no application ID
            TransportError: If the call could not be delivered
        """
        connection = self.builder.build(requests)
        raw = await self.transport.send(connection.request)

        logger.info(
            "requests_executed",
            requests=len(connection.requests),
            is_batch=connection.is_batch,
            status=raw.status_code,
        )
        return GraphResponse(raw=raw, requests=connection.requests)

    async def close(self) -> None:
        await self.transport.close()

    async def __aenter__(self) -> "GraphClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()
