"""Test doubles shared by unit and feature tests."""

from __future__ import annotations

import copy
import dataclasses
import typing as typ

from trawler.github import GitHubAPIError

if typ.TYPE_CHECKING:
    from trawler.config import Repository
    from trawler.events import Blob
    from trawler.github import IssueState
    from trawler.store import Destination


class FakeLogger:
    """Collects femtologging-style log calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object | None]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        self.calls.append((level, message, exc_info))
        return message

    def messages(self, level: str | None = None) -> list[str]:
        """Return logged messages, optionally filtered by level."""
        return [
            message
            for logged_level, message, _ in self.calls
            if level is None or logged_level == level
        ]


@dataclasses.dataclass(frozen=True, slots=True)
class ListIssuesCall:
    """Arguments of one ``list_issues`` request."""

    repository: str
    state: IssueState
    start: int
    per_page: int


class FakeIssuesClient:
    """In-memory GitHub client serving a fixed issue history per repository.

    ``start`` is a 1-based position in the configured history, mirroring the
    REST client's contract.
    """

    def __init__(
        self,
        issues: dict[str, list[dict[str, typ.Any]]] | None = None,
        labels: dict[int, list[typ.Any]] | None = None,
    ) -> None:
        self.issues = issues or {}
        self.labels = labels or {}
        self.list_issues_calls: list[ListIssuesCall] = []
        self.list_labels_calls: list[tuple[str, int]] = []
        self.fail_list_issues_at: dict[str, int] = {}
        self.fail_list_labels = False

    async def list_issues(
        self,
        repo: Repository,
        *,
        state: IssueState,
        start: int,
        per_page: int,
    ) -> list[dict[str, typ.Any]]:
        self.list_issues_calls.append(ListIssuesCall(repo.slug, state, start, per_page))
        if self.fail_list_issues_at.get(repo.slug) == start:
            raise GitHubAPIError.http_error(502, f"https://api.github.test/{repo.slug}")
        history = self.issues.get(repo.slug, [])
        return copy.deepcopy(history[start - 1 : start - 1 + per_page])

    async def list_labels(self, repo: Repository, number: int) -> list[typ.Any]:
        self.list_labels_calls.append((repo.slug, number))
        if self.fail_list_labels:
            raise GitHubAPIError.http_error(503, f"https://api.github.test/{number}")
        return copy.deepcopy(self.labels.get(number, []))


@dataclasses.dataclass(frozen=True, slots=True)
class SinkWrite:
    """One recorded sink upsert."""

    destination: Destination
    repository: str
    blob: Blob


class RecordingSink:
    """Document sink that records upserts instead of persisting them."""

    def __init__(self) -> None:
        self.writes: list[SinkWrite] = []

    async def upsert(
        self, destination: Destination, repository: str, blob: Blob
    ) -> None:
        self.writes.append(SinkWrite(destination, repository, blob))
