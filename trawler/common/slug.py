"""Repository slug helper."""

from __future__ import annotations


def repo_slug(owner: str, name: str) -> str:
    """Return the ``owner/name`` identifier GitHub uses for a repository.

    Slugs key document rows and live handlers, so every producer must build
    them through this helper.

    >>> repo_slug("octo", "reef")
    'octo/reef'

    """
    return f"{owner}/{name}"
