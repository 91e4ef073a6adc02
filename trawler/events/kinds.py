"""Classification of inbound GitHub events."""

from __future__ import annotations

import enum

from .errors import UnsupportedEventKindError


class EventKind(enum.StrEnum):
    """GitHub webhook event names Trawler knows how to index.

    Values match the ``X-GitHub-Event`` header so subscription lists in the
    configuration can be compared to queue envelopes verbatim.
    """

    ISSUES = "issues"
    ISSUE_COMMENT = "issue_comment"
    LABEL = "label"
    PULL_REQUEST = "pull_request"
    PULL_REQUEST_REVIEW = "pull_request_review"
    PULL_REQUEST_REVIEW_COMMENT = "pull_request_review_comment"

    @classmethod
    def parse(cls, value: str) -> EventKind:
        """Return the kind for an event-kind string.

        Raises
        ------
        UnsupportedEventKindError
            If ``value`` is not a known GitHub event name.

        """
        try:
            return cls(value)
        except ValueError as exc:
            raise UnsupportedEventKindError(value) from exc

    @property
    def natural_key_paths(self) -> tuple[str, ...]:
        """Attribute paths that identify the object this event is about."""
        return _NATURAL_KEY_PATHS[self]


# Webhook payloads nest the object under its kind; REST listings used by the
# sync job put issue and pull request fields at the top level.
_NATURAL_KEY_PATHS: dict[EventKind, tuple[str, ...]] = {
    EventKind.ISSUES: ("issue.number", "number"),
    EventKind.ISSUE_COMMENT: ("comment.id",),
    EventKind.LABEL: ("label.id",),
    EventKind.PULL_REQUEST: ("number", "pull_request.number"),
    EventKind.PULL_REQUEST_REVIEW: ("review.id",),
    EventKind.PULL_REQUEST_REVIEW_COMMENT: ("comment.id",),
}
