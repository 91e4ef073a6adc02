"""Structured log events for sync runs.

Every event is a single line of the form ``[sync.<event>] key=value ...`` so
log aggregators can parse throughput and failures without a metrics stack.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from trawler.events import BlobError
from trawler.github.errors import (
    GitHubAPIError,
    GitHubConfigError,
    GitHubResponseShapeError,
)
from trawler.logging import get_logger, log_error, log_info, log_warning
from trawler.store.errors import MalformedBlobError, SinkError

if typ.TYPE_CHECKING:
    import datetime as dt

    from .job import RepositorySyncResult, SyncOptions

logger = get_logger(__name__)

_HTTP_SERVER_ERROR_THRESHOLD = 500


class SyncEventType(enum.StrEnum):
    """Structured log event types for sync runs."""

    REPOSITORY_STARTED = "sync.repository.started"
    REPOSITORY_COMPLETED = "sync.repository.completed"
    REPOSITORY_ABORTED = "sync.repository.aborted"
    PAGE_COMPLETED = "sync.page.completed"
    ITEM_SKIPPED = "sync.item.skipped"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    MALFORMED_ITEM = "malformed_item"
    CONFIGURATION = "configuration"
    DATABASE_CONNECTIVITY = "database_connectivity"
    DATA_INTEGRITY = "data_integrity"
    DATABASE_ERROR = "database_error"
    UNKNOWN = "unknown"


@dataclasses.dataclass(frozen=True, slots=True)
class SyncRunContext:
    """Shared context for syncing one repository."""

    repo_slug: str
    destination: str
    started_at: dt.datetime


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (GitHubResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (GitHubConfigError, ErrorCategory.CONFIGURATION),
    (BlobError, ErrorCategory.MALFORMED_ITEM),
    (MalformedBlobError, ErrorCategory.MALFORMED_ITEM),
    (OperationalError, ErrorCategory.DATABASE_CONNECTIVITY),
    (InterfaceError, ErrorCategory.DATABASE_CONNECTIVITY),
    (IntegrityError, ErrorCategory.DATA_INTEGRITY),
    (SQLAlchemyError, ErrorCategory.DATABASE_ERROR),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize an exception for alert routing.

    Sink errors are classified by the database error that caused them.
    """
    if isinstance(exc, GitHubAPIError):
        if exc.status_code is None or exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD:
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    if isinstance(exc, SinkError) and exc.__cause__ is not None:
        return categorize_error(exc.__cause__)

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class SyncEventLogger:
    """Emit structured sync events through femtologging.

    Successful progress logs at INFO, skipped items at WARNING and aborted
    repositories at ERROR.
    """

    def log_repository_started(
        self, context: SyncRunContext, options: SyncOptions
    ) -> None:
        """Log the start of a repository sync."""
        log_info(
            logger,
            "[%s] repo_slug=%s destination=%s from=%d state=%s per_page=%d "
            "started_at=%s",
            SyncEventType.REPOSITORY_STARTED,
            context.repo_slug,
            context.destination,
            options.from_number,
            options.state,
            options.per_page,
            context.started_at.isoformat(),
        )

    def log_page_completed(
        self, context: SyncRunContext, page: int, items: int, next_cursor: int
    ) -> None:
        """Log one indexed page and the cursor the next request starts at."""
        log_info(
            logger,
            "[%s] repo_slug=%s page=%d items=%d next_cursor=%d",
            SyncEventType.PAGE_COMPLETED,
            context.repo_slug,
            page,
            items,
            next_cursor,
        )

    def log_item_skipped(
        self,
        context: SyncRunContext,
        kind: str,
        number: object,
        error: BaseException,
    ) -> None:
        """Log an item that could not be indexed."""
        log_warning(
            logger,
            "[%s] repo_slug=%s kind=%s number=%s error_type=%s error_category=%s "
            "error_message=%s",
            SyncEventType.ITEM_SKIPPED,
            context.repo_slug,
            kind,
            number,
            type(error).__name__,
            categorize_error(error),
            str(error),
        )

    def log_repository_completed(
        self,
        context: SyncRunContext,
        result: RepositorySyncResult,
        duration: dt.timedelta,
    ) -> None:
        """Log a repository whose history was read to the end."""
        log_info(
            logger,
            "[%s] repo_slug=%s duration_seconds=%.3f pages_fetched=%d "
            "items_indexed=%d items_skipped=%d next_cursor=%d",
            SyncEventType.REPOSITORY_COMPLETED,
            context.repo_slug,
            duration.total_seconds(),
            result.pages_fetched,
            result.items_indexed,
            result.items_skipped,
            result.next_cursor,
        )

    def log_repository_aborted(
        self,
        context: SyncRunContext,
        result: RepositorySyncResult,
        error: BaseException,
        duration: dt.timedelta,
    ) -> None:
        """Log a repository abandoned part way, with the cursor to resume at."""
        log_error(
            logger,
            "[%s] repo_slug=%s duration_seconds=%.3f pages_fetched=%d "
            "items_indexed=%d last_cursor=%d error_type=%s error_category=%s "
            "error_message=%s",
            SyncEventType.REPOSITORY_ABORTED,
            context.repo_slug,
            duration.total_seconds(),
            result.pages_fetched,
            result.items_indexed,
            result.next_cursor,
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )
