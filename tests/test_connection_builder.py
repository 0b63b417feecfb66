"""
Test suite for connection building.

Tests the method, headers and body of prepared calls, and the round trip
of a batch through the multipart encoding.
"""

import io
import json
from unittest.mock import MagicMock

import pytest
from PIL import Image

from graphbatch.core.connection import ConnectionBuilder
from graphbatch.core.encoder import BatchEncoder
from graphbatch.core.exceptions import InvalidArgumentError
from graphbatch.core.request import GraphRequest, Location


# ============================================================================
# Test Method and Headers
# ============================================================================

class TestPreparedRequest:
    """Tests for the shape of prepared calls."""

    def test_headers(self, test_config, session):
        connection = ConnectionBuilder(test_config).build([GraphRequest.me(session)])

        assert connection.request.headers == {
            "User-Agent": "GraphBatchTests",
            "Content-Type": "multipart/form-data; boundary=testBoundary1234",
        }

    def test_single_get_has_no_body(self, test_config, session):
        connection = ConnectionBuilder(test_config).build([GraphRequest.me(session)])

        assert connection.request.method == "GET"
        assert connection.request.body is None
        assert connection.is_batch is False

    def test_single_delete_keeps_method(self, test_config, session):
        connection = ConnectionBuilder(test_config).build(
            [GraphRequest(session, "12345", http_method="DELETE")]
        )

        assert connection.request.method == "DELETE"
        assert connection.request.body is None

    def test_single_post_has_body(self, test_config, session, sample_image):
        connection = ConnectionBuilder(test_config).build(
            [GraphRequest.upload_photo(session, sample_image)]
        )

        assert connection.request.method == "POST"
        assert connection.request.body is not None
        assert connection.request.url.startswith("https://graph.example.com/me/photos?")

    def test_batch_of_gets_is_post(self, test_config, session):
        connection = ConnectionBuilder(test_config).build([
            GraphRequest.me(session),
            GraphRequest.my_friends(session),
            GraphRequest(session, "12345", http_method="DELETE"),
        ])

        assert connection.is_batch is True
        assert connection.request.method == "POST"
        assert connection.request.url == "https://graph.example.com"
        assert connection.request.body is not None

    def test_requests_returned_in_order(self, test_config, session, other_session):
        requests = [GraphRequest.me(other_session), GraphRequest.me(session), GraphRequest.my_friends(session)]

        connection = ConnectionBuilder(test_config).build(requests)

        assert connection.requests == requests
        assert connection.requests[0] is requests[0]

    def test_to_httpx(self, test_config, session, sample_blob):
        connection = ConnectionBuilder(test_config).build([
            GraphRequest(session, "me/videos", {"source": sample_blob}, "POST"),
            GraphRequest.me(session),
        ])

        request = connection.request.to_httpx()

        assert request.method == "POST"
        assert request.url.host == "graph.example.com"
        assert request.headers["User-Agent"] == "GraphBatchTests"
        assert request.headers["Content-Type"] == "multipart/form-data; boundary=testBoundary1234"
        assert request.read() == connection.request.body.to_bytes()

    def test_to_httpx_without_body(self, test_config, session):
        request = ConnectionBuilder(test_config).build([GraphRequest.me(session)]).request.to_httpx()

        assert request.method == "GET"
        assert request.read() == b""


# ============================================================================
# Test Argument Validation
# ============================================================================

class TestBuildValidation:
    """Tests for rejecting malformed request lists before encoding."""

    def test_empty_list_fails_before_encoding(self, test_config):
        encoder = MagicMock(spec=BatchEncoder)
        builder = ConnectionBuilder(test_config, encoder=encoder)

        with pytest.raises(InvalidArgumentError):
            builder.build([])

        encoder.encode.assert_not_called()

    def test_none_entry_fails_before_encoding(self, test_config, session):
        encoder = MagicMock(spec=BatchEncoder)
        builder = ConnectionBuilder(test_config, encoder=encoder)

        with pytest.raises(InvalidArgumentError):
            builder.build([GraphRequest.me(session), None])

        encoder.encode.assert_not_called()


# ============================================================================
# Test Body Round Trip
# ============================================================================

class TestBatchRoundTrip:
    """Tests that encoded batches parse back into their parts."""

    def test_batch_round_trip(self, test_config, session, other_session, sample_image, sample_blob, parse_multipart):
        requests = [
            GraphRequest.upload_photo(session, sample_image),
            GraphRequest.me(other_session),
            GraphRequest(session, "me/videos", {"source": sample_blob, "extra": b"x"}, "POST"),
            GraphRequest.places_search(None, Location(37.5, -122.25), 1000, 10),
        ]

        body = ConnectionBuilder(test_config).build(requests).request.body.to_bytes()
        fields = parse_multipart(body)
        names = [name for name, _, _ in fields]

        assert names.count("batch") == 1
        batch_index = names.index("batch")
        batch = json.loads(fields[batch_index][2])
        assert len(batch) == len(requests)

        attached = [
            name
            for entry in batch
            for name in entry.get("attached_files", "").split(",")
            if name
        ]
        assert attached == ["file0", "file1", "file2"]
        assert len(set(attached)) == len(attached)
        for name in attached:
            assert names.index(name) > batch_index

        payloads = {name: payload for name, _, payload in fields}
        assert payloads["file1"] == sample_blob
        assert payloads["file2"] == b"x"
        assert payloads["batch_app_id"] == b"app-1"

        center = dict(
            pair.split("=") for pair in batch[3]["relative_url"].split("?")[1].split("&")
        )["center"]
        assert center == "37.500000%2C-122.250000"

    def test_single_post_field_order(self, test_config, session, sample_blob, parse_multipart):
        request = GraphRequest(session, "me/videos", {"source": sample_blob, "title": "t"}, "POST")

        body = ConnectionBuilder(test_config).build([request]).request.body.to_bytes()
        names = [name for name, _, _ in parse_multipart(body)]

        assert names == ["title", "format", "sdk", "access_token", "source"]

    def test_encoding_is_deterministic(self, test_config, session, sample_image, sample_blob):
        def build():
            return ConnectionBuilder(test_config).build([
                GraphRequest.upload_photo(session, sample_image).with_batch_entry_name("upload"),
                GraphRequest(session, "me/videos", {"source": sample_blob}, "POST"),
                GraphRequest.me(session),
            ]).request.body.to_bytes()

        assert build() == build()

    def test_batch_with_cmyk_photo_streams_fully(self, test_config, session, parse_multipart):
        body = ConnectionBuilder(test_config).build([
            GraphRequest.me(session),
            GraphRequest.upload_photo(session, Image.new("CMYK", (2, 2))),
        ]).request.body

        chunks = list(body)
        fields = {name: (headers, payload) for name, headers, payload in parse_multipart(b"".join(chunks))}

        assert len(chunks) == 3
        headers, payload = fields["file0"]
        assert headers["Content-Type"] == "image/png"
        assert Image.open(io.BytesIO(payload)).format == "PNG"
