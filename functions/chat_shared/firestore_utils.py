"""Shared Firestore utilities for the chat Cloud Functions.

Provides a lazy-loaded, cached Firestore client and decoding of the JSON
document payloads carried by Firestore trigger events.
"""
import base64
from typing import Any, Dict, List, Optional

from google.cloud import firestore

_db = None


def get_db():
    """Lazy-load and cache Firestore client."""
    global _db
    if _db is None:
        _db = firestore.Client()
    return _db


def reset_db():
    """Clear the cached Firestore client (for testing)."""
    global _db
    _db = None


def decode_value(value: Dict[str, Any]) -> Any:
    """Convert one Firestore JSON typed value into a Python value.

    Timestamps are returned as their RFC 3339 strings.
    """
    if not isinstance(value, dict) or not value:
        return None

    kind, raw = next(iter(value.items()))

    if kind == "nullValue":
        return None
    if kind in ("stringValue", "timestampValue", "referenceValue"):
        return raw
    if kind == "booleanValue":
        return bool(raw)
    if kind == "integerValue":
        # int64 is encoded as a JSON string
        return int(raw)
    if kind == "doubleValue":
        return float(raw)
    if kind == "bytesValue":
        return base64.b64decode(raw)
    if kind == "geoPointValue":
        return {
            "latitude": raw.get("latitude", 0.0),
            "longitude": raw.get("longitude", 0.0),
        }
    if kind == "arrayValue":
        return [decode_value(v) for v in (raw or {}).get("values", [])]
    if kind == "mapValue":
        return decode_fields((raw or {}).get("fields", {}))

    raise ValueError(f"Unsupported Firestore value type: {kind}")


def decode_fields(fields: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Decode a Firestore ``fields`` map into a plain dict."""
    return {name: decode_value(value) for name, value in (fields or {}).items()}


def document_path(name: str) -> List[str]:
    """Split a document resource name into its path segments.

    Accepts full names ("projects/p/databases/(default)/documents/a/b") and
    CloudEvent subjects ("documents/a/b").
    """
    if not name:
        raise ValueError("Empty document name")
    marker = "documents/"
    idx = name.find(marker)
    if idx == -1 or (idx > 0 and name[idx - 1] != "/"):
        raise ValueError(f"Not a document name: {name}")
    path = name[idx + len(marker):]
    segments = [segment for segment in path.split("/") if segment]
    if not segments or len(segments) % 2:
        raise ValueError(f"Not a document name: {name}")
    return segments


class DocumentEvent:
    """A decoded Firestore document trigger event."""

    def __init__(self, path: List[str], fields: Dict[str, Any], event_id: str = ""):
        self.path = path
        self.fields = fields
        self.event_id = event_id

    @property
    def document_id(self) -> str:
        return self.path[-1]

    @property
    def parent_id(self) -> Optional[str]:
        """ID of the parent document for subcollection documents."""
        return self.path[-3] if len(self.path) >= 4 else None

    @classmethod
    def from_cloud_event(cls, cloud_event) -> "DocumentEvent":
        """Build from a CloudEvent with JSON Firestore event data.

        Raises:
            ValueError: If the payload is not a JSON document event
        """
        data = cloud_event.data
        if not isinstance(data, dict):
            raise ValueError(
                "Firestore event data must be JSON; deploy the trigger "
                "with --event-data-content-type=application/json")

        value = data.get("value") or {}
        name = value.get("name") or cloud_event.get("subject") or ""

        return cls(
            path=document_path(name),
            fields=decode_fields(value.get("fields")),
            event_id=cloud_event.get("id") or "",
        )
