"""
Connection Builder - prepares encoded requests for a transport.

Produces the method, headers and body stream of the outbound call, together
with the original requests so responses can be matched by position.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import httpx
import structlog

from graphbatch.config import GraphBatchConfig, get_config
from graphbatch.core.encoder import BatchEncoder, EncodedRequest, validate_requests
from graphbatch.core.multipart import MultipartBody
from graphbatch.core.request import GraphRequest

logger = structlog.get_logger(__name__)

USER_AGENT_HEADER = "User-Agent"
CONTENT_TYPE_HEADER = "Content-Type"


@dataclass
class PreparedRequest:
    """
    Transport-ready description of one HTTP call.

    Attributes:
        url: Absolute URL
        method: HTTP method
        headers: Request headers
        body: Multipart body stream, None for bodyless calls
    """

    url: str
    method: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[MultipartBody] = None

    def to_httpx(self, asynchronous: bool = False) -> httpx.Request:
        """
        Convert to an httpx request streaming the body.

        Args:
            asynchronous: Stream the body for an httpx.AsyncClient
        """
        content = None
        if self.body is not None:
            content = self.body.aiter_bytes() if asynchronous else self.body.iter_bytes()
        return httpx.Request(
            self.method,
            self.url,
            headers=self.headers,
            content=content,
        )


@dataclass
class PreparedConnection:
    """A prepared call and the requests it carries, in order."""

    request: PreparedRequest
    requests: List[GraphRequest]
    encoded: EncodedRequest

    @property
    def is_batch(self) -> bool:
        return self.encoded.is_batch


class ConnectionBuilder:
    """
    Builds transport-ready calls from graph requests.

    Usage:
        ```python
        builder = ConnectionBuilder()
        connection = builder.build([GraphRequest.me(session), GraphRequest.my_friends(session)])
        response = await transport.send(connection.request)
        ```
    """

    def __init__(
        self,
        config: Optional[GraphBatchConfig] = None,
        encoder: Optional[BatchEncoder] = None,
    ):
        """
        Initialize the connection builder.

        Args:
            config: Graph Batcher configuration. Uses global config if not provided.
            encoder: Custom encoder (created from config if not provided)
        """
        self.config = config or get_config()
        self.encoder = encoder or BatchEncoder(self.config)

    @property
    def headers(self) -> Dict[str, str]:
        """Get the headers sent with every call."""
        return {
            USER_AGENT_HEADER: self.config.user_agent,
            CONTENT_TYPE_HEADER: self.config.multipart_content_type,
        }

    def build(self, requests: Sequence[GraphRequest]) -> PreparedConnection:
        """
        Build a call carrying the given requests.

        Args:
            requests: One or more requests; two or more are sent as a batch

        Returns:
            The prepared call and the original requests

        Raises:
            InvalidArgumentError: If the list is empty or contains None
        """
        requests = validate_requests(requests)
        encoded = self.encoder.encode(requests)

        body = None
        if encoded.has_body:
            body = MultipartBody(encoded.fields, self.config.mime_boundary)

        prepared = PreparedRequest(
            url=encoded.url,
            method=encoded.method,
            headers=self.headers,
            body=body,
        )

        logger.debug(
            "request_prepared",
            method=prepared.method,
            url=prepared.url.split("?", 1)[0],
            requests=len(requests),
            fields=body.field_names if body is not None else [],
        )
        return PreparedConnection(request=prepared, requests=requests, encoded=encoded)
