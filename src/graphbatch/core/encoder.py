"""
Batch Encoder - turns graph requests into URLs and form fields.

Decides between the single-request and batch shapes, builds the (relative)
URLs, separates text parameters from attachments and produces the ordered
field list that the multipart writer serializes.
"""

import json
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import urlencode

import structlog

from graphbatch.config import GraphBatchConfig, get_config
from graphbatch.core.batch import BatchEntry, BatchEnvelope
from graphbatch.core.exceptions import (
    EncodingError,
    InvalidArgumentError,
    MissingAppIdError,
)
from graphbatch.core.multipart import FieldList
from graphbatch.core.request import (
    ACCESS_TOKEN_PARAM,
    GET_METHOD,
    POST_METHOD,
    GraphRequest,
    Parameter,
)

logger = structlog.get_logger(__name__)

FORMAT_PARAM = "format"
FORMAT_JSON = "json"
SDK_PARAM = "sdk"
BATCH_APP_ID_PARAM = "batch_app_id"
BATCH_PARAM = "batch"


@dataclass
class EncodedRequest:
    """
    Encoder output for one outbound HTTP call.

    Attributes:
        url: Absolute URL of the call
        method: Method of the outbound call
        fields: Form fields in wire order; empty when there is no body
        is_batch: Whether the call multiplexes several requests
        envelope: The batch envelope for multi-request calls
    """

    url: str
    method: str
    fields: FieldList = field(default_factory=list)
    is_batch: bool = False
    envelope: Optional[BatchEnvelope] = None

    @property
    def has_body(self) -> bool:
        return self.method == POST_METHOD


def validate_requests(requests: Sequence[GraphRequest]) -> List[GraphRequest]:
    """
    Check a request list before anything is built from it.

    Raises:
        InvalidArgumentError: If the list is empty or contains None
    """
    if requests is None:
        raise InvalidArgumentError("Argument 'requests' cannot be None")
    requests = list(requests)
    if not requests:
        raise InvalidArgumentError("Container 'requests' cannot be empty")
    if any(request is None for request in requests):
        raise InvalidArgumentError("Container 'requests' cannot contain None")
    return requests


def graph_object_to_form(graph_object: Mapping[str, Any]) -> List[Tuple[str, str]]:
    """
    Flatten a graph object into form (key, value) pairs.

    Strings are sent as-is, booleans as true/false, numbers via str and
    nested mappings or lists as compact JSON. None values are omitted.

    Raises:
        EncodingError: If a value is not finite or cannot be represented as JSON
    """
    pairs = []
    for key, value in graph_object.items():
        if value is None:
            continue
        if isinstance(value, str):
            pairs.append((key, value))
        elif isinstance(value, bool):
            pairs.append((key, "true" if value else "false"))
        elif isinstance(value, (int, float)):
            if isinstance(value, float) and not math.isfinite(value):
                raise EncodingError(f"Graph object field {key!r} is not a finite number: {value}")
            pairs.append((key, str(value)))
        else:
            try:
                pairs.append((key, json.dumps(value, separators=(",", ":"), allow_nan=False)))
            except (TypeError, ValueError) as e:
                raise EncodingError(f"Could not serialize graph object field {key!r}: {e}") from e
    return pairs


class BatchEncoder:
    """
    Encodes an ordered list of requests into a single outbound call.

    One request is sent directly to its own URL. Two or more are sent as a
    POST to the API root carrying a JSON `batch` field, with every image or
    byte parameter moved to a shared attachment table.
    """

    def __init__(self, config: Optional[GraphBatchConfig] = None):
        """
        Initialize the encoder.

        Args:
            config: Graph Batcher configuration. Uses global config if not provided.
        """
        self.config = config or get_config()

    def encode(self, requests: Sequence[GraphRequest]) -> EncodedRequest:
        """
        Encode requests into a URL, method and form fields.

        Raises:
            InvalidArgumentError: On an empty list, a None entry, or a
                non-text parameter on a GET request
            MissingAppIdError: If a sessionless batch has no application ID
            EncodingError: If the batch JSON cannot be produced
        """
        requests = validate_requests(requests)

        if len(requests) == 1:
            encoded = self.encode_single(requests[0])
        else:
            encoded = self.encode_batch(requests)

        logger.debug(
            "requests_encoded",
            count=len(requests),
            method=encoded.method,
            fields=len(encoded.fields),
            is_batch=encoded.is_batch,
        )
        return encoded

    def encode_single(self, request: GraphRequest) -> EncodedRequest:
        """Encode one request sent directly to its own URL."""
        url = self.url_for_single_request(request)

        if request.http_method != POST_METHOD:
            if request.attachments():
                logger.warning(
                    "attachments_dropped",
                    method=request.http_method,
                    keys=list(request.attachments()),
                )
            return EncodedRequest(url=url, method=request.http_method)

        fields: FieldList = [
            (key, Parameter.text(value))
            for key, value in self.effective_parameters(request).items()
        ]
        fields.extend(request.attachments().items())
        if request.graph_object is not None:
            fields.extend(
                (key, Parameter.text(value))
                for key, value in graph_object_to_form(request.graph_object)
            )

        return EncodedRequest(url=url, method=POST_METHOD, fields=fields)

    def encode_batch(self, requests: Sequence[GraphRequest]) -> EncodedRequest:
        """Encode several requests into one POST to the API root."""
        app_id = self.resolve_application_id(requests)
        if not app_id:
            raise MissingAppIdError(
                "At least one request in a batch must have an open session, "
                "or a default application ID must be configured"
            )

        envelope = self.build_envelope(requests)

        fields: FieldList = [
            (BATCH_APP_ID_PARAM, Parameter.text(app_id)),
            (BATCH_PARAM, Parameter.text(envelope.to_json())),
        ]
        fields.extend(envelope.attachments.items())

        logger.info(
            "batch_encoded",
            entries=envelope.size,
            attachments=len(envelope.attachments),
        )
        return EncodedRequest(
            url=self.config.graph_url,
            method=POST_METHOD,
            fields=fields,
            is_batch=True,
            envelope=envelope,
        )

    def build_envelope(self, requests: Sequence[GraphRequest]) -> BatchEnvelope:
        """
        Build batch entries and the shared attachment table.

        Entries are produced in input order; attachments are named in the
        order they are discovered.
        """
        envelope = BatchEnvelope()

        for request in requests:
            attached_files = [
                envelope.attachments.add(value)
                for value in request.attachments().values()
            ]

            body = None
            if request.graph_object is not None:
                body = urlencode(graph_object_to_form(request.graph_object))

            envelope.entries.append(BatchEntry(
                relative_url=self.relative_url_for_batched_request(request),
                method=request.http_method,
                name=request.batch_entry_name,
                access_token=request.access_token,
                attached_files=attached_files,
                body=body,
            ))

        return envelope

    def resolve_application_id(self, requests: Sequence[GraphRequest]) -> Optional[str]:
        """Get the first session's application ID, else the configured default."""
        for request in requests:
            if request.session is not None:
                return request.session.application_id
        return self.config.default_application_id

    def effective_parameters(self, request: GraphRequest) -> Dict[str, str]:
        """
        Get the text parameters sent with a request.

        These are the request's own text parameters followed by format,
        sdk and, for requests with a session and no explicit token,
        access_token.
        """
        params = request.text_parameters()
        params[FORMAT_PARAM] = FORMAT_JSON
        params[SDK_PARAM] = self.config.sdk_marker
        if request.session is not None and ACCESS_TOKEN_PARAM not in params:
            token = request.access_token
            if token is not None:
                params[ACCESS_TOKEN_PARAM] = token
        return params

    def url_for_single_request(self, request: GraphRequest) -> str:
        """Get the absolute URL of a request sent on its own."""
        if request.rest_method is not None:
            base_url = self.config.rest_url_base + request.rest_method
        else:
            base_url = self.config.graph_url_base + (request.graph_path or "")
        return self._append_parameters(request, base_url)

    def relative_url_for_batched_request(self, request: GraphRequest) -> str:
        """Get the host-relative URL of a request inside a batch."""
        if request.rest_method is not None:
            base_url = self.config.batched_rest_method_url_base + request.rest_method
        else:
            base_url = request.graph_path or ""
        return self._append_parameters(request, base_url)

    def _append_parameters(self, request: GraphRequest, base_url: str) -> str:
        if request.http_method == GET_METHOD and request.attachments():
            raise InvalidArgumentError(
                f"Cannot use GET to upload a file: {list(request.attachments())}"
            )

        query = urlencode(list(self.effective_parameters(request).items()))
        if not query:
            return base_url
        separator = "&" if "?" in base_url else "?"
        return f"{base_url}{separator}{query}"
