"""Sync path: backfill repository history into the document index."""

from __future__ import annotations

from .errors import SyncOptionsError
from .job import MAX_PER_PAGE, RepositorySyncResult, SyncJob, SyncOptions
from .observability import (
    ErrorCategory,
    SyncEventLogger,
    SyncEventType,
    SyncRunContext,
    categorize_error,
)

__all__ = [
    "MAX_PER_PAGE",
    "ErrorCategory",
    "RepositorySyncResult",
    "SyncEventLogger",
    "SyncEventType",
    "SyncJob",
    "SyncOptions",
    "SyncOptionsError",
    "SyncRunContext",
    "categorize_error",
]
