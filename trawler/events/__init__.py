"""Event model: normalised blobs and their classification."""

from __future__ import annotations

from .blob import LABELS_ATTRIBUTE, Blob, Payload
from .errors import (
    AttributeTypeError,
    BlobAttributeError,
    BlobError,
    MissingAttributeError,
    PayloadDecodeError,
    UnsupportedEventKindError,
)
from .kinds import EventKind

__all__ = [
    "LABELS_ATTRIBUTE",
    "AttributeTypeError",
    "Blob",
    "BlobAttributeError",
    "BlobError",
    "EventKind",
    "MissingAttributeError",
    "Payload",
    "PayloadDecodeError",
    "UnsupportedEventKindError",
]
