"""Errors raised while building or reading event blobs."""

from __future__ import annotations


class BlobError(Exception):
    """Base class for event blob failures."""


class PayloadDecodeError(BlobError):
    """Raised when a raw payload is not a well-formed JSON object."""

    @classmethod
    def not_json(cls, detail: object) -> PayloadDecodeError:
        """Return an error for payload bytes that fail to decode."""
        return cls(f"payload is not valid JSON: {detail}")

    @classmethod
    def not_object(cls, type_name: str) -> PayloadDecodeError:
        """Return an error for payloads whose top level is not a mapping."""
        return cls(f"payload must be a JSON object, got {type_name}")


class UnsupportedEventKindError(BlobError):
    """Raised when an event-kind string has no known classification."""

    def __init__(self, kind: str) -> None:
        """Record the unrecognised kind string."""
        self.kind = kind
        super().__init__(f"unsupported event kind: {kind!r}")


class BlobAttributeError(BlobError):
    """Base class for attribute path resolution failures."""

    def __init__(self, path: str, message: str) -> None:
        """Attach the offending attribute path."""
        self.path = path
        super().__init__(message)


class MissingAttributeError(BlobAttributeError):
    """Raised when a required attribute path does not resolve."""

    def __init__(self, path: str) -> None:
        """Describe the missing path."""
        super().__init__(path, f"attribute {path!r} is absent")


class AttributeTypeError(BlobAttributeError):
    """Raised when an attribute exists but has the wrong shape."""

    def __init__(self, path: str, expected: str, actual: object) -> None:
        """Describe the expected and actual value types."""
        self.expected = expected
        super().__init__(
            path,
            f"attribute {path!r} must be {expected}, got {type(actual).__name__}",
        )
