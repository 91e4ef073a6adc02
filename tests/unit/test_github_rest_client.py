"""Unit tests for the GitHub REST client."""

from __future__ import annotations

import secrets
import time

import httpx
import pytest

from tests.helpers.payloads import issue_item, make_repository
from trawler.github import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
    GitHubRestClient,
    GitHubRestConfig,
    IssueState,
)

_TOKEN = secrets.token_hex(8)


class _Harness:
    """REST client wired to a mock transport that records requests."""

    def __init__(
        self, responses: list[httpx.Response | Exception], *, token: str | None = _TOKEN
    ) -> None:
        self.requests: list[httpx.Request] = []
        self.sleeps: list[float] = []
        self._responses = responses

        def _handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            response = self._responses[len(self.requests) - 1]
            if isinstance(response, Exception):
                raise response
            return response

        async def _sleep(delay: float) -> None:
            self.sleeps.append(delay)

        self.http_client = httpx.AsyncClient(transport=httpx.MockTransport(_handler))
        self.client = GitHubRestClient(
            GitHubRestConfig(
                token=token,
                base_url="https://api.github.test/",
                max_retries=2,
                retry_backoff_s=0.5,
            ),
            http_client=self.http_client,
            sleep=_sleep,
        )

    async def aclose(self) -> None:
        await self.client.aclose()
        await self.http_client.aclose()


@pytest.mark.asyncio
async def test_list_issues_requests_sorted_page_for_start() -> None:
    items = [issue_item(n) for n in range(1, 4)]
    harness = _Harness([httpx.Response(200, json=items)])

    result = await harness.client.list_issues(
        make_repository(), state=IssueState.OPEN, start=1, per_page=3
    )
    await harness.aclose()

    assert result == items
    (request,) = harness.requests
    assert request.url.path == "/repos/octo/reef/issues"
    assert dict(request.url.params) == {
        "state": "open",
        "sort": "created",
        "direction": "asc",
        "per_page": "3",
        "page": "1",
    }
    assert request.headers["Authorization"] == f"Bearer {_TOKEN}"
    assert request.headers["Accept"] == "application/vnd.github+json"


@pytest.mark.asyncio
async def test_list_issues_discards_items_before_start() -> None:
    """Start 6 with page size 5 falls on page 2 at offset 0; start 8 skips two."""
    page_two = [issue_item(n) for n in range(6, 11)]
    harness = _Harness([httpx.Response(200, json=page_two)])

    result = await harness.client.list_issues(
        make_repository(), state=IssueState.ALL, start=8, per_page=5
    )
    await harness.aclose()

    assert [item["number"] for item in result] == [8, 9, 10]
    assert harness.requests[0].url.params["page"] == "2"


@pytest.mark.asyncio
async def test_anonymous_client_sends_no_authorization() -> None:
    harness = _Harness([httpx.Response(200, json=[])], token=None)

    await harness.client.list_labels(make_repository(), 7)
    await harness.aclose()

    request = harness.requests[0]
    assert "Authorization" not in request.headers
    assert request.url.path == "/repos/octo/reef/issues/7/labels"


@pytest.mark.asyncio
async def test_list_labels_returns_decoded_objects() -> None:
    labels = [{"id": 1, "name": "bug", "color": "d73a4a"}]
    harness = _Harness([httpx.Response(200, json=labels)])

    result = await harness.client.list_labels(make_repository(), 7)
    await harness.aclose()

    assert result == labels


@pytest.mark.asyncio
async def test_server_errors_are_retried_with_backoff() -> None:
    harness = _Harness(
        [
            httpx.Response(502),
            httpx.ConnectError("reset"),
            httpx.Response(200, json=[]),
        ]
    )

    result = await harness.client.list_labels(make_repository(), 7)
    await harness.aclose()

    assert result == []
    assert harness.sleeps == [0.5, 1.0]


@pytest.mark.asyncio
async def test_rate_limit_honours_retry_after() -> None:
    harness = _Harness(
        [
            httpx.Response(
                403, headers={"X-RateLimit-Remaining": "0", "Retry-After": "30"}
            ),
            httpx.Response(200, json=[]),
        ]
    )

    await harness.client.list_labels(make_repository(), 7)
    await harness.aclose()

    assert harness.sleeps == [30.0]


@pytest.mark.asyncio
async def test_rate_limit_honours_reset_time() -> None:
    reset = int(time.time()) + 120
    harness = _Harness(
        [
            httpx.Response(
                403,
                headers={"X-RateLimit-Remaining": "0", "X-RateLimit-Reset": str(reset)},
            ),
            httpx.Response(200, json=[]),
        ]
    )

    await harness.client.list_labels(make_repository(), 7)
    await harness.aclose()

    (delay,) = harness.sleeps
    assert 100 < delay <= 120


@pytest.mark.asyncio
async def test_retry_budget_exhaustion_raises_api_error() -> None:
    harness = _Harness([httpx.Response(503) for _ in range(3)])

    with pytest.raises(GitHubAPIError) as excinfo:
        await harness.client.list_labels(make_repository(), 7)
    await harness.aclose()

    assert excinfo.value.status_code == 503
    assert len(harness.requests) == 3


@pytest.mark.asyncio
async def test_transport_failures_exhaust_into_api_error() -> None:
    harness = _Harness([httpx.ConnectError("down") for _ in range(3)])

    with pytest.raises(GitHubAPIError) as excinfo:
        await harness.client.list_labels(make_repository(), 7)
    await harness.aclose()

    assert excinfo.value.status_code is None


@pytest.mark.asyncio
async def test_client_errors_are_not_retried() -> None:
    harness = _Harness([httpx.Response(404)])

    with pytest.raises(GitHubAPIError) as excinfo:
        await harness.client.list_labels(make_repository(), 7)
    await harness.aclose()

    assert excinfo.value.status_code == 404
    assert harness.sleeps == []


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, json={"message": "not a list"}),
        httpx.Response(200, content=b"<html>"),
        httpx.Response(200, json=[1, 2]),
    ],
    ids=["object", "not-json", "scalars"],
)
async def test_unexpected_shapes_raise(response: httpx.Response) -> None:
    harness = _Harness([response])

    with pytest.raises(GitHubResponseShapeError):
        await harness.client.list_issues(
            make_repository(), state=IssueState.ALL, start=1, per_page=10
        )
    await harness.aclose()


def test_config_rejects_negative_retry_settings() -> None:
    with pytest.raises(GitHubConfigError):
        GitHubRestConfig(max_retries=-1)


def test_config_from_env_reads_token(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TRAWLER_GITHUB_TOKEN", " token-from-env ")

    assert GitHubRestConfig.from_env().token == "token-from-env"
    assert GitHubRestConfig.from_env("explicit").token == "explicit"


def test_config_from_env_allows_anonymous(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("TRAWLER_GITHUB_TOKEN", raising=False)

    assert GitHubRestConfig.from_env().token is None


@pytest.mark.asyncio
async def test_non_transport_request_errors_become_api_errors() -> None:
    harness = _Harness([httpx.DecodingError("corrupt gzip stream")])

    with pytest.raises(GitHubAPIError) as excinfo:
        await harness.client.list_issues(
            make_repository(), state=IssueState.ALL, start=1, per_page=10
        )
    await harness.aclose()

    assert excinfo.value.status_code is None
    assert len(harness.requests) == 1
    assert harness.sleeps == []


@pytest.mark.asyncio
async def test_unfollowed_redirect_raises_api_error() -> None:
    harness = _Harness(
        [
            httpx.Response(
                301, headers={"Location": "https://api.github.test/repositories/9"}
            )
        ]
    )

    with pytest.raises(GitHubAPIError) as excinfo:
        await harness.client.list_issues(
            make_repository(), state=IssueState.ALL, start=1, per_page=10
        )
    await harness.aclose()

    assert excinfo.value.status_code == 301
    assert harness.sleeps == []
