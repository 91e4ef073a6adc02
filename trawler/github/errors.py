"""GitHub API client errors."""

from __future__ import annotations


class GitHubAPIError(RuntimeError):
    """Raised when GitHub returns an error response or cannot be reached."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int, url: str) -> GitHubAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"GitHub REST HTTP {status_code} for {url}", status_code=status_code)

    @classmethod
    def transport_error(cls, url: str, exc: Exception) -> GitHubAPIError:
        """Return an error for requests that never produced a response."""
        return cls(f"GitHub REST request to {url} failed: {exc}")


class GitHubResponseShapeError(RuntimeError):
    """Raised when GitHub REST responses do not have the expected shape."""

    @classmethod
    def expected(cls, what: str, url: str) -> GitHubResponseShapeError:
        """Return an error naming the expected JSON shape."""
        return cls(f"GitHub REST response from {url} is not {what}")


class GitHubConfigError(RuntimeError):
    """Raised when GitHub client configuration is invalid."""

    @classmethod
    def invalid(cls, field: str, value: object) -> GitHubConfigError:
        """Return an error for an out-of-range configuration value."""
        return cls(f"invalid GitHub client setting {field}={value!r}")
