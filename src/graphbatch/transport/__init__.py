"""
Transport Layer.

Sends prepared requests over HTTP. The encoding core does not depend on this
package; any object implementing Transport can be used instead.
"""

from graphbatch.transport.interface import Transport, TransportError
from graphbatch.transport.httpx_transport import HttpxTransport

__all__ = [
    "Transport",
    "TransportError",
    "HttpxTransport",
]
