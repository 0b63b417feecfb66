"""
Graph Request model.

Represents a single logical call against the graph API: a graph path (or a
REST method name), an HTTP method and a set of typed parameters.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from PIL import Image

from graphbatch.core.exceptions import InvalidArgumentError, UnsupportedValueTypeError
from graphbatch.core.session import Session

# Graph paths
ME = "me"
MY_FRIENDS = "me/friends"
MY_PHOTOS = "me/photos"
SEARCH = "search"

# HTTP methods
GET_METHOD = "GET"
POST_METHOD = "POST"
DELETE_METHOD = "DELETE"

PICTURE_PARAM = "picture"
ACCESS_TOKEN_PARAM = "access_token"

# Image modes the PNG encoder can store without conversion
PNG_MODES = frozenset({"1", "L", "LA", "I", "I;16", "P", "RGB", "RGBA"})


def to_png_mode(image: Image.Image) -> Image.Image:
    """Convert an image to RGBA unless PNG can store its mode as-is."""
    if image.mode in PNG_MODES:
        return image
    return image.convert("RGBA")


class ParameterKind(str, Enum):
    """Kinds of values a request parameter may hold."""
    TEXT = "text"     # Sent in the query string or as a plain form field
    IMAGE = "image"   # Re-encoded to PNG and sent as an attachment
    BLOB = "blob"     # Raw bytes sent as an attachment


@dataclass(frozen=True)
class Parameter:
    """
    A tagged request parameter value.

    Attributes:
        kind: Which variant this value is
        value: str for TEXT, PIL image for IMAGE, bytes for BLOB
    """

    kind: ParameterKind
    value: Any

    @classmethod
    def text(cls, value: str) -> "Parameter":
        return cls(ParameterKind.TEXT, value)

    @classmethod
    def image(cls, value: Image.Image) -> "Parameter":
        return cls(ParameterKind.IMAGE, to_png_mode(value))

    @classmethod
    def blob(cls, value: bytes) -> "Parameter":
        return cls(ParameterKind.BLOB, bytes(value))

    @classmethod
    def from_value(cls, value: Any, key: Optional[str] = None) -> "Parameter":
        """
        Classify a raw value into a Parameter.

        Args:
            value: str, bytes-like, PIL image or an existing Parameter
            key: Parameter name, used in the error message

        Raises:
            UnsupportedValueTypeError: If the value is of any other type
        """
        if isinstance(value, Parameter):
            return value
        if isinstance(value, str):
            return cls.text(value)
        if isinstance(value, (bytes, bytearray, memoryview)):
            return cls.blob(value)
        if isinstance(value, Image.Image):
            return cls.image(value)
        raise UnsupportedValueTypeError(
            f"Parameter {key!r} has unsupported type {type(value).__name__}: "
            "expected str, bytes or PIL image",
            key=key,
        )

    @property
    def is_text(self) -> bool:
        return self.kind == ParameterKind.TEXT

    @property
    def is_attachment(self) -> bool:
        return self.kind in (ParameterKind.IMAGE, ParameterKind.BLOB)


ParameterValue = Union[str, bytes, bytearray, memoryview, Image.Image, Parameter]


@dataclass(frozen=True)
class Location:
    """Geographic coordinates used by place searches."""
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GraphRequest:
    """
    Represents a single request against the graph API.

    A request is an immutable value; use the with_* helpers to derive a
    modified copy.

    Attributes:
        session: Identity to send the request as (not owned by the request)
        graph_path: Resource path, e.g. "me/photos"
        parameters: Ordered parameter name -> Parameter mapping
        http_method: Uppercased HTTP method, GET by default
        graph_object: Mapping sent as the request body for writes
        rest_method: REST method name; takes precedence over graph_path
        batch_entry_name: Name other entries of a batch can reference
    """

    # Parameters are held in a dict, so requests compare by value but are not hashable
    __hash__ = None

    session: Optional[Session] = None
    graph_path: Optional[str] = None
    parameters: Dict[str, Parameter] = field(default_factory=dict)
    http_method: Optional[str] = GET_METHOD
    graph_object: Optional[Mapping[str, Any]] = None
    rest_method: Optional[str] = None
    batch_entry_name: Optional[str] = None

    def __post_init__(self):
        """Normalize the method and classify parameter values."""
        method = self.http_method.upper() if self.http_method else GET_METHOD
        object.__setattr__(self, "http_method", method)

        parameters = {
            key: Parameter.from_value(value, key)
            for key, value in (self.parameters or {}).items()
        }
        object.__setattr__(self, "parameters", parameters)

        if self.graph_object is not None and not isinstance(self.graph_object, Mapping):
            raise UnsupportedValueTypeError(
                f"Graph object must be a mapping, got {type(self.graph_object).__name__}"
            )

    @classmethod
    def post(
        cls,
        session: Optional[Session],
        graph_path: str,
        graph_object: Mapping[str, Any],
    ) -> "GraphRequest":
        """Create a POST request whose body is the given graph object."""
        return cls(session, graph_path, http_method=POST_METHOD, graph_object=graph_object)

    @classmethod
    def rest(
        cls,
        session: Optional[Session],
        rest_method: str,
        parameters: Optional[Mapping[str, ParameterValue]] = None,
        http_method: Optional[str] = None,
    ) -> "GraphRequest":
        """Create a request against the legacy REST API."""
        return cls(
            session,
            parameters=dict(parameters or {}),
            http_method=http_method,
            rest_method=rest_method,
        )

    @classmethod
    def me(cls, session: Optional[Session]) -> "GraphRequest":
        """Create a request for the current user."""
        return cls(session, ME)

    @classmethod
    def my_friends(cls, session: Optional[Session]) -> "GraphRequest":
        """Create a request for the current user's friends."""
        return cls(session, MY_FRIENDS)

    @classmethod
    def upload_photo(cls, session: Optional[Session], image: Image.Image) -> "GraphRequest":
        """Create a request uploading an image to the current user's photos."""
        return cls(
            session,
            MY_PHOTOS,
            {PICTURE_PARAM: Parameter.image(image)},
            POST_METHOD,
        )

    @classmethod
    def places_search(
        cls,
        session: Optional[Session],
        location: Optional[Location],
        radius_in_meters: int,
        results_limit: int,
        search_text: Optional[str] = None,
    ) -> "GraphRequest":
        """
        Create a search for places near a location.

        Args:
            session: Session to search as
            location: Center of the search
            radius_in_meters: Search radius
            results_limit: Maximum number of places returned
            search_text: Optional free-text filter

        Raises:
            InvalidArgumentError: If location is None
        """
        if location is None:
            raise InvalidArgumentError("Argument 'location' cannot be None")

        parameters = {
            "type": "place",
            "limit": str(results_limit),
            "distance": str(radius_in_meters),
            # %-formatting ignores the host locale; always '.' as separator
            "center": "%.6f,%.6f" % (location.latitude, location.longitude),
        }
        if search_text is not None:
            parameters["q"] = search_text

        return cls(session, SEARCH, parameters, GET_METHOD)

    def with_batch_entry_name(self, name: Optional[str]) -> "GraphRequest":
        """Return a copy with the given batch entry name."""
        return replace(self, batch_entry_name=name)

    def with_session(self, session: Optional[Session]) -> "GraphRequest":
        """Return a copy bound to another session."""
        return replace(self, session=session)

    @property
    def access_token(self) -> Optional[str]:
        """Access token of the attached session, if any."""
        return self.session.access_token if self.session is not None else None

    def text_parameters(self) -> Dict[str, str]:
        """Get the TEXT parameters in insertion order."""
        return {k: p.value for k, p in self.parameters.items() if p.is_text}

    def attachments(self) -> Dict[str, Parameter]:
        """Get the IMAGE and BLOB parameters in insertion order."""
        return {k: p for k, p in self.parameters.items() if p.is_attachment}

    def __repr__(self) -> str:
        return (
            f"GraphRequest(method={self.http_method}, "
            f"path={self.rest_method or self.graph_path!r}, "
            f"parameters={list(self.parameters)}, "
            f"session={self.session!r})"
        )
