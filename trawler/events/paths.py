"""Dotted attribute path helpers for semi-structured JSON payloads.

Paths address nested mappings with ``.`` separators, for example
``pull_request.labels``. Only mappings are traversed; list indices are not
part of the path language.
"""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

MISSING: typ.Final = object()


def split_path(path: str) -> tuple[str, ...]:
    """Split a dotted path into its segments, rejecting empty segments.

    >>> split_path("pull_request.labels")
    ('pull_request', 'labels')

    """
    segments = tuple(path.split("."))
    if not path or any(not segment for segment in segments):
        msg = f"invalid attribute path: {path!r}"
        raise ValueError(msg)
    return segments


def resolve_path(data: cabc.Mapping[str, typ.Any], path: str) -> object:
    """Return the value at ``path`` or :data:`MISSING` when it does not resolve."""
    node: object = data
    for segment in split_path(path):
        if not isinstance(node, dict) or segment not in node:
            return MISSING
        node = node[segment]
    return node


def assign_path(data: dict[str, typ.Any], path: str, value: object) -> str | None:
    """Set ``value`` at ``path``, creating intermediate mappings.

    Returns the prefix of ``path`` that holds a non-mapping value and blocks
    the assignment, or ``None`` on success.
    """
    *parents, leaf = split_path(path)
    node = data
    walked: list[str] = []
    for segment in parents:
        walked.append(segment)
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            return ".".join(walked)
        node = child
    node[leaf] = value
    return None


def remove_path(data: dict[str, typ.Any], path: str) -> bool:
    """Delete the value at ``path``; return whether anything was removed."""
    *parents, leaf = split_path(path)
    node: object = data
    for segment in parents:
        if not isinstance(node, dict):
            return False
        node = node.get(segment)
    if not isinstance(node, dict) or leaf not in node:
        return False
    del node[leaf]
    return True
