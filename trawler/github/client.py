"""GitHub REST client used for label enrichment and issue backfill."""

from __future__ import annotations

import asyncio
import dataclasses
import os
import time
import typing as typ
from http import HTTPStatus

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from .errors import GitHubAPIError, GitHubConfigError, GitHubResponseShapeError
from .models import MAX_PER_PAGE

if typ.TYPE_CHECKING:
    from tenacity import RetryCallState

    from trawler.config.models import Repository

    from .models import IssueState

Sleep = typ.Callable[[float], typ.Awaitable[None]]

_HTTP_SERVER_ERROR_THRESHOLD = 500


class GitHubIssuesClient(typ.Protocol):
    """Interface to the GitHub endpoints the pipeline depends on."""

    async def list_issues(
        self,
        repo: Repository,
        *,
        state: IssueState,
        start: int,
        per_page: int,
    ) -> list[dict[str, typ.Any]]:
        """Return up to ``per_page`` issues and pull requests from ``start``.

        ``start`` is a 1-based position in creation order; an empty list
        signals the end of history.
        """
        ...

    async def list_labels(self, repo: Repository, number: int) -> list[typ.Any]:
        """Return the decoded label objects attached to an issue or PR."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubRestConfig:
    """Configuration for the GitHub REST API client."""

    token: str | None = None
    base_url: str = "https://api.github.com"
    timeout_s: float = 20.0
    user_agent: str = "trawler/0.1"
    max_retries: int = 3
    retry_backoff_s: float = 1.0

    def __post_init__(self) -> None:
        """Reject negative retry settings."""
        if self.max_retries < 0:
            raise GitHubConfigError.invalid("max_retries", self.max_retries)
        if self.retry_backoff_s < 0:
            raise GitHubConfigError.invalid("retry_backoff_s", self.retry_backoff_s)

    @classmethod
    def from_env(cls, token: str | None = None) -> GitHubRestConfig:
        """Build configuration, reading ``TRAWLER_GITHUB_TOKEN`` if unset.

        Anonymous access is allowed; GitHub then applies its lower rate limit.
        """
        resolved = token or os.environ.get("TRAWLER_GITHUB_TOKEN", "").strip()
        return cls(token=resolved or None)


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == HTTPStatus.TOO_MANY_REQUESTS:
        return True
    return (
        response.status_code == HTTPStatus.FORBIDDEN
        and response.headers.get("X-RateLimit-Remaining") == "0"
    )


def _is_retryable(response: httpx.Response) -> bool:
    return (
        response.status_code >= _HTTP_SERVER_ERROR_THRESHOLD
        or _is_rate_limited(response)
    )


class _RetryableResponseError(Exception):
    """Carries a response the retry policy should try again."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        super().__init__(f"retryable HTTP {response.status_code}")


def _header_seconds(response: httpx.Response, name: str) -> float | None:
    raw = response.headers.get(name)
    if raw is None:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def _rate_limit_delay(response: httpx.Response) -> float:
    """Return the wait GitHub asks for, or 0.0 when it names none."""
    retry_after = _header_seconds(response, "Retry-After")
    if retry_after is not None:
        return max(retry_after, 0.0)
    if _is_rate_limited(response):
        reset = _header_seconds(response, "X-RateLimit-Reset")
        if reset is not None:
            return max(reset - time.time(), 0.0)
    return 0.0


class _RateLimitAwareWait(wait_base):
    """Backoff that never undercuts a wait requested by GitHub."""

    def __init__(self, backoff: wait_base) -> None:
        self._backoff = backoff

    def __call__(self, retry_state: RetryCallState) -> float:
        delay = self._backoff(retry_state)
        outcome = retry_state.outcome
        if outcome is not None and outcome.failed:
            exc = outcome.exception()
            if isinstance(exc, _RetryableResponseError):
                delay = max(delay, _rate_limit_delay(exc.response))
        return delay


class GitHubRestClient:
    """GitHub REST implementation of :class:`GitHubIssuesClient`.

    Transport failures, 5xx responses and rate-limit rejections are retried
    up to ``max_retries`` times with exponential backoff, stretched to any
    ``Retry-After`` or ``X-RateLimit-Reset`` wait GitHub asks for. Failures
    then surface as :class:`GitHubAPIError`, as do other HTTP errors and
    unfollowed redirects, without a retry.
    """

    def __init__(
        self,
        config: GitHubRestConfig,
        *,
        http_client: httpx.AsyncClient | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        """Initialise the client with the provided API configuration."""
        self._config = config
        self._sleep = sleep
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=config.timeout_s, follow_redirects=True
        )
        self._headers = {
            "Accept": "application/vnd.github+json",
            "User-Agent": config.user_agent,
        }
        if config.token:
            self._headers["Authorization"] = f"Bearer {config.token}"

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    async def list_issues(
        self,
        repo: Repository,
        *,
        state: IssueState,
        start: int,
        per_page: int,
    ) -> list[dict[str, typ.Any]]:
        """Return issues and pull requests beginning at position ``start``.

        GitHub paginates by page number, so the page containing ``start`` is
        fetched and the items before ``start`` on that page are discarded.
        """
        page, offset = divmod(start - 1, per_page)
        url = self._url(f"/repos/{repo.owner}/{repo.name}/issues")
        items = await self._get_list(
            url,
            {
                "state": str(state),
                "sort": "created",
                "direction": "asc",
                "per_page": per_page,
                "page": page + 1,
            },
        )
        if not all(isinstance(item, dict) for item in items):
            raise GitHubResponseShapeError.expected("a list of objects", url)
        return items[offset:]

    async def list_labels(self, repo: Repository, number: int) -> list[typ.Any]:
        """Return the labels attached to issue or pull request ``number``."""
        url = self._url(f"/repos/{repo.owner}/{repo.name}/issues/{number}/labels")
        return await self._get_list(url, {"per_page": MAX_PER_PAGE})

    def _url(self, path: str) -> str:
        return f"{self._config.base_url.rstrip('/')}{path}"

    async def _get_list(self, url: str, params: dict[str, typ.Any]) -> list[typ.Any]:
        response = await self._get(url, params)
        try:
            payload = response.json()
        except ValueError as exc:
            raise GitHubResponseShapeError.expected("JSON", url) from exc
        if not isinstance(payload, list):
            raise GitHubResponseShapeError.expected("a JSON list", url)
        return payload

    async def _get(self, url: str, params: dict[str, typ.Any]) -> httpx.Response:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self._config.max_retries + 1),
            wait=_RateLimitAwareWait(
                wait_exponential(multiplier=self._config.retry_backoff_s)
            ),
            retry=retry_if_exception_type(
                (httpx.TransportError, _RetryableResponseError)
            ),
            sleep=self._sleep,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._send(url, params)
        except _RetryableResponseError as exc:
            raise GitHubAPIError.http_error(exc.response.status_code, url) from None
        except httpx.HTTPError as exc:
            raise GitHubAPIError.transport_error(url, exc) from exc

        # Redirects are followed by the owned client; anything left is an error.
        if response.status_code >= HTTPStatus.MULTIPLE_CHOICES:
            raise GitHubAPIError.http_error(response.status_code, url)
        return response

    async def _send(self, url: str, params: dict[str, typ.Any]) -> httpx.Response:
        response = await self._client.get(url, params=params, headers=self._headers)
        if _is_retryable(response):
            raise _RetryableResponseError(response)
        return response
