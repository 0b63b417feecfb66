"""
Exceptions raised while building and encoding graph requests.
"""

from typing import Optional


class GraphBatchError(Exception):
    """Base class for all Graph Batcher errors."""
    pass


class InvalidArgumentError(GraphBatchError, ValueError):
    """Raised when a request or request list is malformed."""
    pass


class MissingAppIdError(GraphBatchError):
    """Raised when a sessionless batch has no application ID to send."""
    pass


class UnsupportedValueTypeError(GraphBatchError, TypeError):
    """Raised when a parameter value is not text, an image or bytes."""

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key


class EncodingError(GraphBatchError):
    """Raised when the request body or batch envelope cannot be produced."""
    pass
