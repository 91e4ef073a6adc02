"""Behavioural coverage for the sync backfill."""

from __future__ import annotations

import asyncio
import typing as typ

import pytest
from pytest_bdd import given, parsers, scenario, then, when

from tests.features.steps._store_context import ScenarioStore, scenario_store
from tests.helpers.fakes import FakeIssuesClient
from tests.helpers.payloads import issue_item, make_repository
from trawler.store import Destination
from trawler.sync import SyncJob, SyncOptions

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path


class SyncContext(typ.TypedDict, total=False):
    """Shared mutable scenario state."""

    store: ScenarioStore
    client: FakeIssuesClient


@scenario(
    "../sync_backfill.feature",
    "Every issue and pull request lands in the snapshot index",
)
def test_backfill_indexes_everything() -> None:
    """Wrap the pytest-bdd scenario."""


@scenario(
    "../sync_backfill.feature",
    "Re-running a sync updates documents in place",
)
def test_backfill_is_idempotent() -> None:
    """Snapshot documents are upserted, never duplicated."""


@pytest.fixture
def sync_context(tmp_path: Path) -> cabc.Iterator[SyncContext]:
    """Provision a fresh document store for the scenario."""
    with scenario_store(tmp_path) as store:
        yield {"store": store, "client": FakeIssuesClient()}


@given(
    parsers.parse(
        'GitHub holds {count:d} issues for "{slug}" of which every third is a '
        "pull request"
    )
)
def given_history(sync_context: SyncContext, count: int, slug: str) -> None:
    sync_context["client"].issues[slug] = [
        issue_item(n, pull_request=n % 3 == 0) for n in range(1, count + 1)
    ]


@when(parsers.parse('I sync "{slug}" with a page size of {per_page:d}'))
def when_sync(sync_context: SyncContext, slug: str, per_page: int) -> None:
    owner, name = slug.split("/")
    job = SyncJob(
        sync_context["client"],
        sync_context["store"].store,
        SyncOptions(per_page=per_page),
    )
    results = asyncio.run(job.run([make_repository(owner=owner, name=name)]))
    assert not any(result.aborted for result in results)


@then(parsers.parse("GitHub was asked for {pages:d} pages"))
def then_pages_requested(sync_context: SyncContext, pages: int) -> None:
    assert len(sync_context["client"].list_issues_calls) == pages


@then(parsers.parse('{count:d} snapshot documents exist for "{slug}"'))
def then_snapshot_documents(sync_context: SyncContext, count: int, slug: str) -> None:
    documents = sync_context["store"].documents(Destination.SNAPSHOT, slug)
    assert len(documents) == count


@then(parsers.parse("{count:d} of the snapshot documents are pull requests"))
def then_pull_request_documents(sync_context: SyncContext, count: int) -> None:
    documents = sync_context["store"].documents(Destination.SNAPSHOT)
    assert sum(document.kind == "pull_request" for document in documents) == count
