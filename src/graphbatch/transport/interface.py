"""
Abstract interface for sending prepared requests.

Defines the contract that all transports must implement. Parsing the raw
response into graph objects is left to the caller.
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from graphbatch.core.connection import PreparedRequest
from graphbatch.core.exceptions import GraphBatchError


class Transport(ABC):
    """
    Abstract transport for prepared graph calls.

    Implementations own their connections, timeouts and cancellation.
    """

    @abstractmethod
    async def send(self, request: PreparedRequest) -> httpx.Response:
        """
        Send a prepared request.

        Args:
            request: Request produced by ConnectionBuilder

        Returns:
            The raw HTTP response

        Raises:
            TransportError: If the request could not be sent
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Release any open connections."""
        pass

    async def __aenter__(self) -> "Transport":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()


class TransportError(GraphBatchError):
    """Raised when a request cannot be delivered."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
