"""
Module: blob.py
Description: Blob notification model and trigger metadata helpers.

Turns a storage trigger (object payload plus trigger metadata) into the
minimal notification forwarded downstream: container, object path and
size in bytes.

Key Components:
- BlobNotification: Downstream payload {"Container", "Name", "Size"}
- blob_size(): Byte size of a trigger payload
- parse_trigger_metadata(): Container/name from descriptor or URI

Dependencies: pydantic, json, urllib
"""

import json
from typing import Any, Dict, Optional, Tuple
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field


def blob_size(payload: Any) -> int:
    """
    Compute the size in bytes of a trigger payload.

    None counts as 0, text as its UTF-8 length, binary as its length and
    anything else as the length of its compact JSON form. A payload that
    cannot be serialised counts as 0.
    """
    if payload is None:
        return 0
    if isinstance(payload, str):
        return len(payload.encode("utf-8"))
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return len(payload)
    try:
        return len(
            json.dumps(payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
        )
    except (TypeError, ValueError):
        return 0


def parse_trigger_metadata(metadata: Optional[Dict[str, Any]]) -> Tuple[str, str]:
    """
    Extract (container, name) from trigger metadata.

    Args:
        metadata: Trigger metadata; may carry ``blobTrigger`` as
            "<container>/<path>" and/or ``uri`` as
            "scheme://host/<account>/<container>/<path...>"

    Returns:
        (container, name); both empty when neither field is usable
    """
    metadata = metadata or {}

    descriptor = str(metadata.get("blobTrigger") or "")
    if "/" in descriptor:
        container, name = descriptor.split("/", 1)
        return container, name

    uri = str(metadata.get("uri") or "")
    if uri:
        try:
            parsed = urlsplit(uri)
        except ValueError:
            return "", ""
        # Only absolute URIs carry a usable path
        if not parsed.scheme or not parsed.netloc:
            return "", ""
        parts = parsed.path.lstrip("/").split("/")
        # parts[0] is the storage account
        container = parts[1] if len(parts) > 1 else ""
        name = "/".join(parts[2:])
        return container, name

    return "", ""


class BlobNotification(BaseModel):
    """
    Notification about a newly created blob.

    Serialises with the downstream field names Container, Name and Size.
    Empty container or name are passed through unchanged.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    container: str = Field(default="", alias="Container")
    name: str = Field(default="", alias="Name")
    size: int = Field(default=0, ge=0, alias="Size")

    @classmethod
    def from_trigger(
        cls, blob: Any, trigger_metadata: Optional[Dict[str, Any]]
    ) -> "BlobNotification":
        """Build a notification from a trigger payload and its metadata."""
        container, name = parse_trigger_metadata(trigger_metadata)
        return cls(container=container, name=name, size=blob_size(blob))

    def to_payload(self) -> Dict[str, Any]:
        """Downstream JSON body."""
        return self.model_dump(by_alias=True)

    @property
    def path(self) -> str:
        return f"{self.container}/{self.name}"
