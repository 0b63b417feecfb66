"""
Graph Batcher

Request batching and wire encoding for graph-style HTTP APIs.
Several graph reads and writes are combined into a single multipart call,
with binary attachments carried alongside the JSON batch description.
"""

__version__ = "0.1.0"

from graphbatch.core.request import GraphRequest, Location, Parameter
from graphbatch.core.session import Session, StaticSession
from graphbatch.core.connection import ConnectionBuilder
from graphbatch.core.encoder import BatchEncoder
from graphbatch.core.exceptions import (
    EncodingError,
    GraphBatchError,
    InvalidArgumentError,
    MissingAppIdError,
    UnsupportedValueTypeError,
)
from graphbatch.client import GraphClient, GraphResponse

__all__ = [
    "GraphRequest",
    "Location",
    "Parameter",
    "Session",
    "StaticSession",
    "ConnectionBuilder",
    "BatchEncoder",
    "GraphBatchError",
    "InvalidArgumentError",
    "MissingAppIdError",
    "UnsupportedValueTypeError",
    "EncodingError",
    "GraphClient",
    "GraphResponse",
]
