"""GitHub REST client used by the live and sync paths."""

from __future__ import annotations

from .client import GitHubIssuesClient, GitHubRestClient, GitHubRestConfig
from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError
from .models import MAX_PER_PAGE, IssueState

__all__ = [
    "MAX_PER_PAGE",
    "GitHubAPIError",
    "GitHubConfigError",
    "GitHubIssuesClient",
    "GitHubResponseShapeError",
    "GitHubRestClient",
    "GitHubRestConfig",
    "IssueState",
]
