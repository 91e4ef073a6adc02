"""Backfill job: page through repository history into the snapshot index."""

from __future__ import annotations

import asyncio
import dataclasses
import typing as typ

from trawler.common.time import parse_github_datetime, utcnow
from trawler.events import Blob, BlobError, EventKind
from trawler.github import (
    MAX_PER_PAGE,
    GitHubAPIError,
    GitHubResponseShapeError,
    IssueState,
)
from trawler.store import Destination, StoreError

from .errors import SyncOptionsError
from .observability import SyncEventLogger, SyncRunContext

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

    from trawler.config.models import Repository, SyncDefaults
    from trawler.github import GitHubIssuesClient
    from trawler.store import TransformingStore

type SleepFn = cabc.Callable[[float], cabc.Awaitable[None]]


@dataclasses.dataclass(frozen=True, slots=True)
class SyncOptions:
    """Parameters of one sync invocation.

    Attributes
    ----------
    from_number
        1-based position in creation order to start at.
    sleep_per_page
        Seconds to wait between page requests.
    state
        Issue state filter passed to GitHub.
    storage
        Destination the documents are written to.
    per_page
        Page size requested from GitHub.

    """

    from_number: int = 1
    sleep_per_page: float = 0.0
    state: IssueState = IssueState.ALL
    storage: Destination = Destination.SNAPSHOT
    per_page: int = MAX_PER_PAGE

    def __post_init__(self) -> None:
        """Reject out-of-range values."""
        if self.from_number < 1:
            raise SyncOptionsError.invalid("from", self.from_number, "an integer >= 1")
        if self.sleep_per_page < 0:
            raise SyncOptionsError.invalid(
                "sleep", self.sleep_per_page, "a non-negative number of seconds"
            )
        if not 1 <= self.per_page <= MAX_PER_PAGE:
            raise SyncOptionsError.invalid(
                "per_page", self.per_page, f"an integer between 1 and {MAX_PER_PAGE}"
            )

    @classmethod
    def from_defaults(
        cls, defaults: SyncDefaults, **overrides: typ.Any
    ) -> SyncOptions:
        """Merge configured defaults with explicit overrides.

        Overrides whose value is ``None`` are ignored, so unset CLI flags fall
        through to the configuration.
        """
        values: dict[str, typ.Any] = {
            "from_number": defaults.from_number,
            "sleep_per_page": defaults.sleep_per_page,
            "state": defaults.state,
            "per_page": defaults.per_page,
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


@dataclasses.dataclass(frozen=True, slots=True)
class RepositorySyncResult:
    """Outcome of syncing one repository.

    ``next_cursor`` is the position the next request would have started at;
    after an abort it is the cursor to resume from.
    """

    repository: str
    pages_fetched: int = 0
    items_indexed: int = 0
    items_skipped: int = 0
    next_cursor: int = 1
    error: BaseException | None = None

    @property
    def aborted(self) -> bool:
        """True when the repository was abandoned after a fetch failure."""
        return self.error is not None


def _item_kind(item: cabc.Mapping[str, typ.Any]) -> EventKind:
    # The issues endpoint lists pull requests too, marked by this member.
    if "pull_request" in item:
        return EventKind.PULL_REQUEST
    return EventKind.ISSUES


def _item_timestamp(item: cabc.Mapping[str, typ.Any]) -> dt.datetime:
    updated_at = item.get("updated_at")
    if isinstance(updated_at, str):
        try:
            return parse_github_datetime(updated_at)
        except ValueError:
            pass
    return utcnow()


@dataclasses.dataclass(slots=True)
class _Progress:
    cursor: int
    pages: int = 0
    indexed: int = 0
    skipped: int = 0

    def result(
        self, repository: str, error: BaseException | None = None
    ) -> RepositorySyncResult:
        return RepositorySyncResult(
            repository=repository,
            pages_fetched=self.pages,
            items_indexed=self.indexed,
            items_skipped=self.skipped,
            next_cursor=self.cursor,
            error=error,
        )


class SyncJob:
    """Index the full issue and pull request history of repositories.

    Repositories are synced one after another and pages strictly in order.
    Every item goes through the transforming store, so the configured
    rewrites apply exactly as they do on the live path.
    """

    def __init__(
        self,
        client: GitHubIssuesClient,
        store: TransformingStore,
        options: SyncOptions | None = None,
        *,
        event_logger: SyncEventLogger | None = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        """Bind collaborators; ``sleep`` is injectable for tests."""
        self._client = client
        self._store = store
        self._options = options or SyncOptions()
        self._events = event_logger or SyncEventLogger()
        self._sleep = sleep

    @property
    def options(self) -> SyncOptions:
        """Options this job runs with."""
        return self._options

    async def run(
        self, repositories: cabc.Iterable[Repository]
    ) -> list[RepositorySyncResult]:
        """Sync each repository in turn and return one result per repository.

        A repository whose page fetch fails is abandoned and reported; the
        remaining repositories still run.
        """
        return [await self.sync_repository(repo) for repo in repositories]

    async def sync_repository(self, repo: Repository) -> RepositorySyncResult:
        """Page through ``repo`` from the configured cursor until exhausted."""
        options = self._options
        context = SyncRunContext(
            repo_slug=repo.slug,
            destination=str(options.storage),
            started_at=utcnow(),
        )
        self._events.log_repository_started(context, options)
        progress = _Progress(cursor=options.from_number)

        while True:
            if progress.pages and options.sleep_per_page > 0:
                await self._sleep(options.sleep_per_page)
            try:
                items = await self._client.list_issues(
                    repo,
                    state=options.state,
                    start=progress.cursor,
                    per_page=options.per_page,
                )
            except (GitHubAPIError, GitHubResponseShapeError) as exc:
                result = progress.result(repo.slug, exc)
                self._events.log_repository_aborted(
                    context, result, exc, utcnow() - context.started_at
                )
                return result

            progress.pages += 1
            if not items:
                break
            for item in items:
                if await self._index_item(context, repo, item):
                    progress.indexed += 1
                else:
                    progress.skipped += 1
            progress.cursor += len(items)
            self._events.log_page_completed(
                context, progress.pages, len(items), progress.cursor
            )

        result = progress.result(repo.slug)
        self._events.log_repository_completed(
            context, result, utcnow() - context.started_at
        )
        return result

    async def _index_item(
        self,
        context: SyncRunContext,
        repo: Repository,
        item: dict[str, typ.Any],
    ) -> bool:
        kind = _item_kind(item)
        try:
            blob = Blob.from_mapping(kind, "", item)
            blob.timestamp = _item_timestamp(item)
            await self._store.index(self._options.storage, repo, blob)
        except (BlobError, StoreError) as exc:
            self._events.log_item_skipped(context, kind, item.get("number"), exc)
            return False
        return True
