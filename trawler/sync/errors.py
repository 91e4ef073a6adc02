"""Sync job errors."""

from __future__ import annotations


class SyncOptionsError(ValueError):
    """Raised when sync options are out of range."""

    @classmethod
    def invalid(cls, field: str, value: object, expected: str) -> SyncOptionsError:
        """Return an error naming the field and its accepted range."""
        return cls(f"invalid sync option {field}={value!r}: expected {expected}")
