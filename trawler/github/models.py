"""Typed values exchanged with the GitHub REST API."""

from __future__ import annotations

import enum

# Largest page size the REST API honours.
MAX_PER_PAGE = 100


class IssueState(enum.StrEnum):
    """``state`` filter accepted by the issue listing endpoint."""

    OPEN = "open"
    CLOSED = "closed"
    ALL = "all"
