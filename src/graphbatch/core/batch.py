"""
Batch envelope model.

Represents the JSON description of a multi-request call and the binary
attachments shared by its entries.
"""

import json
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from graphbatch.core.exceptions import EncodingError
from graphbatch.core.request import Parameter

ATTACHMENT_FILENAME_PREFIX = "file"


@dataclass(frozen=True)
class BatchEntry:
    """
    One request's representation inside a batch.

    Attributes:
        relative_url: Path and query, resolved against the API root server-side
        method: HTTP method of this entry
        name: Entry name other entries can reference
        access_token: Token of this entry's session
        attached_files: Names of attachments this entry uses
        body: URL-encoded graph object
    """

    relative_url: str
    method: str
    name: Optional[str] = None
    access_token: Optional[str] = None
    attached_files: List[str] = field(default_factory=list)
    body: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to the wire representation, omitting unset keys."""
        data = {}
        if self.name is not None:
            data["name"] = self.name
        data["relative_url"] = self.relative_url
        data["method"] = self.method
        if self.access_token is not None:
            data["access_token"] = self.access_token
        if self.attached_files:
            data["attached_files"] = ",".join(self.attached_files)
        if self.body is not None:
            data["body"] = self.body
        return data


class AttachmentTable:
    """
    Attachments collected across all entries of one batch.

    Names are allocated from a counter, so they are unique within the table
    and ordered by discovery.
    """

    def __init__(self):
        self._attachments: Dict[str, Parameter] = {}

    def add(self, value: Parameter) -> str:
        """
        Store an attachment under a newly allocated name.

        Returns:
            The generated name, e.g. "file0"
        """
        name = f"{ATTACHMENT_FILENAME_PREFIX}{len(self._attachments)}"
        self._attachments[name] = value
        return name

    def items(self):
        return self._attachments.items()

    def __len__(self) -> int:
        return len(self._attachments)

    def __contains__(self, name: str) -> bool:
        return name in self._attachments

    def __getitem__(self, name: str) -> Parameter:
        return self._attachments[name]


@dataclass
class BatchEnvelope:
    """Entries of a batch together with the attachments they reference."""

    entries: List[BatchEntry] = field(default_factory=list)
    attachments: AttachmentTable = field(default_factory=AttachmentTable)

    @property
    def size(self) -> int:
        return len(self.entries)

    def to_json(self) -> str:
        """
        Serialize the entries as a JSON array.

        Raises:
            EncodingError: If an entry holds a value JSON cannot represent
        """
        try:
            return json.dumps(
                [entry.to_dict() for entry in self.entries],
                separators=(",", ":"),
                allow_nan=False,
            )
        except (TypeError, ValueError) as e:
            raise EncodingError(f"Could not serialize batch envelope: {e}") from e
