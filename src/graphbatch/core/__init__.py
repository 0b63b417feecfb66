"""
Core request components.

This module contains the request model, the multipart writer, the batch
encoder and the connection builder.
"""

from graphbatch.core.request import GraphRequest, Location, Parameter, ParameterKind
from graphbatch.core.session import Session, StaticSession
from graphbatch.core.batch import AttachmentTable, BatchEntry, BatchEnvelope
from graphbatch.core.multipart import MultipartBody, MultipartWriter
from graphbatch.core.encoder import BatchEncoder, EncodedRequest
from graphbatch.core.connection import ConnectionBuilder, PreparedConnection, PreparedRequest

__all__ = [
    "GraphRequest",
    "Location",
    "Parameter",
    "ParameterKind",
    "Session",
    "StaticSession",
    "AttachmentTable",
    "BatchEntry",
    "BatchEnvelope",
    "MultipartBody",
    "MultipartWriter",
    "BatchEncoder",
    "EncodedRequest",
    "ConnectionBuilder",
    "PreparedConnection",
    "PreparedRequest",
]
