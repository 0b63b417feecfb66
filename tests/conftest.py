"""
Pytest configuration and shared fixtures for the test suite.
"""

from typing import List, Tuple

import pytest
from PIL import Image

from graphbatch.config import GraphBatchConfig
from graphbatch.core.session import StaticSession

TEST_BOUNDARY = "testBoundary1234"


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def test_config() -> GraphBatchConfig:
    """Create a test configuration."""
    return GraphBatchConfig(
        graph_url="https://graph.example.com",
        graph_url_base="https://graph.example.com/",
        rest_url_base="https://api.example.com/method/",
        sdk_marker="python",
        user_agent="GraphBatchTests",
        mime_boundary=TEST_BOUNDARY,
        default_application_id=None,
        log_level="DEBUG",
    )


@pytest.fixture
def config_with_default_app(test_config) -> GraphBatchConfig:
    """Create a test configuration with a default application ID."""
    return test_config.model_copy(update={"default_application_id": "default-app"})


@pytest.fixture(autouse=True)
def reset_global_config(monkeypatch):
    """Keep tests from leaking the global configuration."""
    monkeypatch.setattr("graphbatch.config._config", None)


# ============================================================================
# Session Fixtures
# ============================================================================

@pytest.fixture
def session() -> StaticSession:
    """Create a session for the first test user."""
    return StaticSession(token="token-alice", app_id="app-1")


@pytest.fixture
def other_session() -> StaticSession:
    """Create a session for a second test user of another app."""
    return StaticSession(token="token-bob", app_id="app-2")


# ============================================================================
# Test Data
# ============================================================================

@pytest.fixture
def sample_image() -> Image.Image:
    """Create a small RGB image."""
    return Image.new("RGB", (4, 3), color=(255, 0, 0))


@pytest.fixture
def sample_blob() -> bytes:
    """Create sample binary content, including CR/LF bytes."""
    return b"\x00\x01binary\r\npayload\xff"


# ============================================================================
# Multipart Parsing
# ============================================================================

def split_multipart(body: bytes, boundary: str = TEST_BOUNDARY) -> List[Tuple[dict, bytes]]:
    """
    Split a body produced by MultipartWriter into (headers, payload) parts.

    Text payloads keep their trailing CRLF; callers strip it.
    """
    delimiter = f"--{boundary}\r\n".encode()
    assert body.startswith(delimiter)
    assert body.endswith(delimiter)

    parts = []
    for chunk in body.split(delimiter)[1:-1]:
        raw_headers, payload = chunk.split(b"\r\n\r\n", 1)
        headers = {}
        for line in raw_headers.decode().split("\r\n"):
            name, value = line.split(": ", 1)
            headers[name] = value
        parts.append((headers, payload))
    return parts


def field_name(headers: dict) -> str:
    """Extract the form field name from a Content-Disposition header."""
    disposition = headers["Content-Disposition"]
    return disposition.split('name="', 1)[1].split('"', 1)[0]


@pytest.fixture
def parse_multipart():
    """
    Parse a multipart body into an ordered list of (name, headers, payload).

    Text fields have their trailing CRLF removed.
    """
    def parse(body: bytes, boundary: str = TEST_BOUNDARY):
        fields = []
        for headers, payload in split_multipart(body, boundary):
            if "Content-Type" not in headers:
                assert payload.endswith(b"\r\n")
                payload = payload[:-2]
            fields.append((field_name(headers), headers, payload))
        return fields
    return parse
