"""
Multipart/form-data serialization.

Writes named text, image and byte fields to a binary sink using a single
boundary token for the whole body.
"""

import io
from enum import Enum
from typing import AsyncIterator, BinaryIO, Iterable, Iterator, List, Optional, Tuple

from PIL import Image

from graphbatch.core.exceptions import EncodingError
from graphbatch.core.request import Parameter, ParameterKind, to_png_mode

CRLF = b"\r\n"
IMAGE_CONTENT_TYPE = "image/png"
BLOB_CONTENT_TYPE = "content/unknown"

# Ordered (name, value) pairs written as one body
FieldList = List[Tuple[str, Parameter]]


class WriterState(str, Enum):
    """State of a MultipartWriter."""
    NOT_STARTED = "not_started"   # Nothing written yet
    WRITING = "writing"           # Leading boundary emitted


class MultipartWriter:
    """
    Streams form fields into a binary sink.

    The leading boundary line is emitted lazily with the first byte; after
    that every field is closed by its own boundary line:

        --<boundary>
        Content-Disposition: form-data; name="<key>"[; filename="<key>"]
        [Content-Type: <type>]

        <payload>
        --<boundary>

    Only the field being written is held in memory.
    """

    def __init__(self, sink: BinaryIO, boundary: str):
        """
        Initialize the writer.

        Args:
            sink: Writable binary stream receiving the body
            boundary: Boundary token, without the leading dashes
        """
        self.sink = sink
        self.boundary = boundary
        self.state = WriterState.NOT_STARTED

    def write_field(self, key: str, value: Parameter) -> None:
        """
        Write one parameter using the encoding of its kind.

        Raises:
            EncodingError: If the sink fails or the image cannot be encoded
        """
        if value.kind == ParameterKind.TEXT:
            self.write_string(key, value.value)
        elif value.kind == ParameterKind.IMAGE:
            self.write_image(key, value.value)
        elif value.kind == ParameterKind.BLOB:
            self.write_bytes(key, value.value)
        else:
            raise EncodingError(f"Unknown parameter kind for {key!r}: {value.kind}")

    def write_fields(self, fields: Iterable[Tuple[str, Parameter]]) -> None:
        """Write fields in the given order."""
        for key, value in fields:
            self.write_field(key, value)

    def write_string(self, key: str, value: str) -> None:
        """Write a plain text field."""
        self._write_content_disposition(key)
        self._write_line(value)
        self._write_record_boundary()

    def write_image(self, key: str, image: Image.Image) -> None:
        """Write an image field, re-encoded as PNG."""
        self._write_content_disposition(key, filename=key, content_type=IMAGE_CONTENT_TYPE)
        try:
            to_png_mode(image).save(self.sink, format="PNG")
        except (OSError, ValueError) as e:
            raise EncodingError(f"Could not encode image field {key!r}: {e}") from e
        self._write_record_boundary()

    def write_bytes(self, key: str, data: bytes) -> None:
        """Write a raw bytes field."""
        self._write_content_disposition(key, filename=key, content_type=BLOB_CONTENT_TYPE)
        self._write(data)
        self._write_record_boundary()

    def _write_content_disposition(
        self,
        name: str,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> None:
        header = f'Content-Disposition: form-data; name="{name}"'
        if filename is not None:
            header += f'; filename="{filename}"'
        self._write_line(header)
        if content_type is not None:
            self._write_line(f"Content-Type: {content_type}")
        self._write_line("")

    def _write_record_boundary(self) -> None:
        self._write_line(f"--{self.boundary}")

    def _write_line(self, text: str) -> None:
        self._write(text.encode("utf-8") + CRLF)

    def _write(self, data: bytes) -> None:
        try:
            if self.state == WriterState.NOT_STARTED:
                self.sink.write(f"--{self.boundary}".encode("utf-8") + CRLF)
                self.state = WriterState.WRITING
            self.sink.write(data)
        except OSError as e:
            raise EncodingError(f"Could not write request body: {e}") from e


class MultipartBody:
    """
    Lazily encoded multipart body.

    Iterating (sync or async) yields one chunk per field, so attachments are
    encoded only when the transport asks for them.
    """

    def __init__(self, fields: FieldList, boundary: str):
        self.fields = list(fields)
        self.boundary = boundary

    def iter_bytes(self) -> Iterator[bytes]:
        """Encode the body one field at a time."""
        buffer = io.BytesIO()
        writer = MultipartWriter(buffer, self.boundary)
        for key, value in self.fields:
            writer.write_field(key, value)
            chunk = buffer.getvalue()
            buffer.seek(0)
            buffer.truncate()
            yield chunk

    async def aiter_bytes(self) -> AsyncIterator[bytes]:
        """Async variant of iter_bytes for async transports."""
        for chunk in self.iter_bytes():
            yield chunk

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_bytes()

    def write_to(self, sink: BinaryIO) -> None:
        """Write the whole body to a binary stream."""
        MultipartWriter(sink, self.boundary).write_fields(self.fields)

    def to_bytes(self) -> bytes:
        """Encode the whole body in memory."""
        return b"".join(self)

    @property
    def field_names(self) -> List[str]:
        return [key for key, _ in self.fields]

    def __repr__(self) -> str:
        return f"MultipartBody(fields={self.field_names})"
