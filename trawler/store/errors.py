"""Transforming store errors."""

from __future__ import annotations


class StoreError(Exception):
    """Base class for failures while indexing a blob."""


class MalformedBlobError(StoreError):
    """Raised when a blob cannot be identified and must not be written."""

    def __init__(self, kind: str, reason: object) -> None:
        """Describe why the blob was rejected."""
        self.kind = kind
        super().__init__(f"cannot index {kind} blob: {reason}")


class SinkError(StoreError):
    """Raised when the document sink rejects or fails a write."""

    @classmethod
    def write_failed(cls, repository: str, document_key: str) -> SinkError:
        """Return an error for a failed upsert."""
        return cls(f"failed to write document {document_key} for {repository}")

    @classmethod
    def lost_race(cls, repository: str, document_key: str) -> SinkError:
        """Return an error when a concurrent insert vanished before update."""
        return cls(
            f"document {document_key} for {repository} conflicted but was not found"
        )


class TransformationConfigError(ValueError):
    """Raised when a transformation rule cannot be compiled."""

    def __init__(self, index: int, reason: str) -> None:
        """Attach the position of the offending rule."""
        self.index = index
        super().__init__(f"transformations[{index}]: {reason}")
