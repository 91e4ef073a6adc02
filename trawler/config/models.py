"""Typed configuration structures."""

from __future__ import annotations

import msgspec

from trawler.common.slug import repo_slug
from trawler.events import EventKind
from trawler.github.models import IssueState


class Repository(msgspec.Struct, frozen=True, kw_only=True):
    """A GitHub repository Trawler subscribes to.

    Attributes
    ----------
    owner : str
        GitHub owner or organisation.
    name : str
        Repository name.
    events : tuple[EventKind, ...]
        Event kinds the live path indexes for this repository.
    display_name : str, optional
        Human-readable name used in log messages.

    """

    owner: str
    name: str
    events: tuple[EventKind, ...] = ()
    display_name: str | None = None

    @property
    def slug(self) -> str:
        """Return the GitHub-style owner/name identifier."""
        return repo_slug(self.owner, self.name)

    @property
    def pretty_name(self) -> str:
        """Return the display name, falling back to the slug."""
        return self.display_name or self.slug

    def is_subscribed(self, event: str) -> bool:
        """Return True when the live path should index ``event``."""
        return event in self.events


class TransformationRule(msgspec.Struct, frozen=True, kw_only=True):
    """One entry in the ordered attribute rewrite table.

    Attributes
    ----------
    rewrite : str
        Name of a registered rewrite (``drop``, ``keep``, ``rename``,
        ``label_names``, ``user_login``).
    events : tuple[EventKind, ...]
        Kinds the rule applies to; empty applies to every kind.
    attributes : tuple[str, ...]
        Dotted attribute paths the rewrite operates on.
    target : str, optional
        Destination path for ``rename``.
    when : str, optional
        Attribute path that must hold a non-null value for the rule to apply.

    """

    rewrite: str
    events: tuple[EventKind, ...] = ()
    attributes: tuple[str, ...] = ()
    target: str | None = None
    when: str | None = None


class SyncDefaults(
    msgspec.Struct,
    frozen=True,
    kw_only=True,
    rename={"from_number": "from", "sleep_per_page": "sleep"},
):
    """Defaults applied to sync runs when the CLI does not override them."""

    from_number: int = 1
    sleep_per_page: float = 0.0
    state: IssueState = IssueState.ALL
    per_page: int = 100


class TrawlerConfig(msgspec.Struct, frozen=True, kw_only=True):
    """Root configuration document."""

    repositories: tuple[Repository, ...]
    transformations: tuple[TransformationRule, ...] = ()
    sync: SyncDefaults = msgspec.field(default_factory=SyncDefaults)
    database_url: str | None = None
    github_api_token: str | None = None
