"""Unit tests for the sync job."""

from __future__ import annotations

import math
import typing as typ

import httpx
import pytest

from tests.helpers.fakes import FakeIssuesClient, RecordingSink
from tests.helpers.payloads import REPO_SLUG, issue_item, make_repository
from trawler.config import SyncDefaults, TransformationRule
from trawler.events import EventKind
from trawler.github import (
    GitHubAPIError,
    GitHubRestClient,
    GitHubRestConfig,
    IssueState,
)
from trawler.store import Destination, TransformingStore
from trawler.sync import SyncJob, SyncOptions, SyncOptionsError

KELP_SLUG = "octo/kelp"


def _history(count: int) -> list[dict[str, typ.Any]]:
    return [issue_item(n, pull_request=n % 3 == 0) for n in range(1, count + 1)]


class _Sleeper:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("items", "per_page"),
    [(0, 10), (1, 10), (10, 10), (11, 10), (25, 7), (100, 100)],
)
async def test_pagination_requests_and_documents(items: int, per_page: int) -> None:
    """N items at page size P take ceil(N/P)+1 requests and give N documents."""
    client = FakeIssuesClient({REPO_SLUG: _history(items)})
    sink = RecordingSink()
    job = SyncJob(client, TransformingStore(sink), SyncOptions(per_page=per_page))

    (result,) = await job.run([make_repository()])

    assert len(client.list_issues_calls) == math.ceil(items / per_page) + 1
    assert client.list_issues_calls[0].start == 1
    assert result.pages_fetched == len(client.list_issues_calls)
    assert result.items_indexed == items
    assert result.next_cursor == items + 1
    assert not result.aborted
    assert len(sink.writes) == items
    assert all(write.destination is Destination.SNAPSHOT for write in sink.writes)


@pytest.mark.asyncio
async def test_items_are_classified_and_timestamped() -> None:
    client = FakeIssuesClient({REPO_SLUG: _history(3)})
    sink = RecordingSink()

    await SyncJob(client, TransformingStore(sink)).run([make_repository()])

    kinds = [write.blob.kind for write in sink.writes]
    assert kinds == [EventKind.ISSUES, EventKind.ISSUES, EventKind.PULL_REQUEST]
    assert {write.blob.delivery for write in sink.writes} == {""}
    stamp = sink.writes[0].blob.timestamp
    assert stamp is not None
    assert stamp.isoformat() == "2024-07-01T12:00:00+00:00"


@pytest.mark.asyncio
async def test_cursor_and_filters_are_passed_to_client() -> None:
    client = FakeIssuesClient({REPO_SLUG: _history(5)})
    options = SyncOptions(from_number=3, state=IssueState.CLOSED, per_page=2)

    result = (
        await SyncJob(client, TransformingStore(RecordingSink()), options).run(
            [make_repository()]
        )
    )[0]

    assert [call.start for call in client.list_issues_calls] == [3, 5, 6]
    assert {call.state for call in client.list_issues_calls} == {IssueState.CLOSED}
    assert result.items_indexed == 3


@pytest.mark.asyncio
async def test_sleeps_between_pages_only() -> None:
    sleeper = _Sleeper()
    client = FakeIssuesClient({REPO_SLUG: _history(4)})
    job = SyncJob(
        client,
        TransformingStore(RecordingSink()),
        SyncOptions(per_page=2, sleep_per_page=1.5),
        sleep=sleeper,
    )

    await job.run([make_repository()])

    assert len(client.list_issues_calls) == 3
    assert sleeper.delays == [1.5, 1.5]


@pytest.mark.asyncio
async def test_zero_sleep_never_sleeps() -> None:
    sleeper = _Sleeper()
    client = FakeIssuesClient({REPO_SLUG: _history(4)})
    job = SyncJob(
        client,
        TransformingStore(RecordingSink()),
        SyncOptions(per_page=2),
        sleep=sleeper,
    )

    await job.run([make_repository()])

    assert sleeper.delays == []


@pytest.mark.asyncio
async def test_malformed_items_are_skipped() -> None:
    """A rule that strips the number makes issues unindexable; PRs survive."""
    client = FakeIssuesClient({REPO_SLUG: _history(6)})
    sink = RecordingSink()
    store = TransformingStore.from_rules(
        sink,
        [
            TransformationRule(
                rewrite="drop", events=(EventKind.ISSUES,), attributes=("number",)
            )
        ],
    )

    (result,) = await SyncJob(client, store).run([make_repository()])

    assert result.items_indexed == 2
    assert result.items_skipped == 4
    assert result.next_cursor == 7
    assert [write.blob.natural_key() for write in sink.writes] == ["3", "6"]


@pytest.mark.asyncio
async def test_fetch_failure_aborts_only_that_repository() -> None:
    client = FakeIssuesClient(
        {REPO_SLUG: _history(5), KELP_SLUG: _history(2)},
    )
    client.fail_list_issues_at[REPO_SLUG] = 3
    sink = RecordingSink()
    job = SyncJob(client, TransformingStore(sink), SyncOptions(per_page=2))

    reef, kelp = await job.run([make_repository(), make_repository(name="kelp")])

    assert reef.aborted
    assert reef.next_cursor == 3
    assert reef.items_indexed == 2
    assert reef.pages_fetched == 1
    assert not kelp.aborted
    assert kelp.items_indexed == 2
    assert [write.repository for write in sink.writes] == [
        REPO_SLUG,
        REPO_SLUG,
        KELP_SLUG,
        KELP_SLUG,
    ]


@pytest.mark.asyncio
async def test_undecodable_response_aborts_only_that_repository() -> None:
    def _handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/repos/octo/reef/issues":
            raise httpx.DecodingError("corrupt gzip stream", request=request)
        page = int(request.url.params["page"])
        return httpx.Response(200, json=_history(2) if page == 1 else [])

    http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
    client = GitHubRestClient(
        GitHubRestConfig(base_url="https://api.github.test"), http_client=http_client
    )
    sink = RecordingSink()
    job = SyncJob(client, TransformingStore(sink), SyncOptions(per_page=2))

    reef, kelp = await job.run([make_repository(), make_repository(name="kelp")])
    await http_client.aclose()

    assert reef.aborted
    assert isinstance(reef.error, GitHubAPIError)
    assert reef.next_cursor == 1
    assert not kelp.aborted
    assert kelp.items_indexed == 2
    assert {write.repository for write in sink.writes} == {KELP_SLUG}


@pytest.mark.parametrize(
    "overrides",
    [{"from_number": 0}, {"sleep_per_page": -1.0}, {"per_page": 0}, {"per_page": 101}],
)
def test_options_reject_out_of_range_values(overrides: dict[str, typ.Any]) -> None:
    with pytest.raises(SyncOptionsError):
        SyncOptions(**overrides)


def test_options_from_defaults_ignores_unset_overrides() -> None:
    defaults = SyncDefaults(from_number=4, sleep_per_page=2.0, state=IssueState.OPEN)

    options = SyncOptions.from_defaults(
        defaults, from_number=None, state=IssueState.CLOSED, storage=None
    )

    assert options.from_number == 4
    assert options.sleep_per_page == 2.0
    assert options.state is IssueState.CLOSED
    assert options.storage is Destination.SNAPSHOT
