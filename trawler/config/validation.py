"""Structural validation rules for the Trawler configuration."""

from __future__ import annotations

import re
import typing as typ

from trawler.github.models import MAX_PER_PAGE
from trawler.store.errors import TransformationConfigError
from trawler.store.transformations import compile_transformations

from .errors import ConfigValidationError

if typ.TYPE_CHECKING:
    from .models import Repository, SyncDefaults, TrawlerConfig

REPO_SEGMENT_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


def validate_config(config: TrawlerConfig) -> TrawlerConfig:
    """Validate a configuration instance, returning it when all checks pass."""
    issues: list[str] = []

    if not config.repositories:
        issues.append("at least one repository must be configured")

    seen: set[str] = set()
    for index, repository in enumerate(config.repositories):
        _validate_repository(index, repository, issues)
        if repository.slug in seen:
            issues.append(f"repositories[{index}]: duplicate {repository.slug}")
        seen.add(repository.slug)

    _validate_sync_defaults(config.sync, issues)

    try:
        compile_transformations(config.transformations)
    except TransformationConfigError as exc:
        issues.append(str(exc))

    if issues:
        raise ConfigValidationError(issues)
    return config


def _validate_repository(
    index: int, repository: Repository, issues: list[str]
) -> None:
    for field, value in (("owner", repository.owner), ("name", repository.name)):
        if not REPO_SEGMENT_PATTERN.fullmatch(value):
            issues.append(f"repositories[{index}].{field} is invalid: {value!r}")
    if not repository.events:
        issues.append(
            f"repositories[{index}] ({repository.slug}) subscribes to no events"
        )


def _validate_sync_defaults(sync: SyncDefaults, issues: list[str]) -> None:
    if sync.from_number < 1:
        issues.append(f"sync.from must be >= 1, got {sync.from_number}")
    if sync.sleep_per_page < 0:
        issues.append(f"sync.sleep must be >= 0, got {sync.sleep_per_page}")
    if not 1 <= sync.per_page <= MAX_PER_PAGE:
        issues.append(
            f"sync.per_page must be between 1 and {MAX_PER_PAGE}, got {sync.per_page}"
        )
