"""Configuration errors."""

from __future__ import annotations


class ConfigValidationError(ValueError):
    """Raised when a configuration file fails parsing or validation."""

    def __init__(self, issues: list[str]) -> None:
        """Capture validation issues whilst preserving the aggregated message."""
        super().__init__("\n".join(issues))
        self.issues = issues
