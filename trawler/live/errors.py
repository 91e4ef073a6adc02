"""Live path errors."""

from __future__ import annotations


class EnrichmentError(RuntimeError):
    """Raised when an upstream call needed to complete a blob fails.

    These failures are transient by assumption (network trouble, rate
    limits), so the queue is expected to redeliver the message.
    """

    def __init__(self, message: str, *, number: int | None = None) -> None:
        """Record the issue or pull request number being enriched."""
        self.number = number
        super().__init__(message)

    @classmethod
    def labels(cls, number: int, exc: Exception) -> EnrichmentError:
        """Return an error for a failed label listing."""
        return cls(f"retrieve labels for issue {number}: {exc}", number=number)
