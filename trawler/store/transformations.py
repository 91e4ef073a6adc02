"""Configurable attribute rewrites applied to blobs before indexing.

Each configured :class:`~trawler.config.models.TransformationRule` names a
registered rewrite. Compiling the rule table resolves those names into pure
``(EventKind, data) -> data`` callables which the transforming store applies
in configuration order. The caller's payload is never mutated: a rule that
applies works on a deep copy.
"""

from __future__ import annotations

import copy
import dataclasses
import typing as typ

from trawler.events.paths import (
    MISSING,
    assign_path,
    remove_path,
    resolve_path,
    split_path,
)

from .errors import TransformationConfigError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from trawler.config.models import TransformationRule
    from trawler.events import EventKind, Payload

Rewrite = typ.Callable[[dict[str, typ.Any]], None]
RewriteFactory = typ.Callable[["TransformationRule"], Rewrite]
Transformation = typ.Callable[["EventKind", "Payload"], "Payload"]

_registry: dict[str, RewriteFactory] = {}


def register(name: str) -> typ.Callable[[RewriteFactory], RewriteFactory]:
    """Register a rewrite factory under ``name``."""

    def _inner(factory: RewriteFactory) -> RewriteFactory:
        _registry[name] = factory
        return factory

    return _inner


def get_rewrite(name: str) -> RewriteFactory | None:
    """Return the rewrite factory registered under ``name`` if present."""
    return _registry.get(name)


def registered_rewrites() -> tuple[str, ...]:
    """Return the names of all registered rewrites, sorted."""
    return tuple(sorted(_registry))


def _require_attributes(rule: TransformationRule) -> tuple[str, ...]:
    if not rule.attributes:
        msg = f"rewrite {rule.rewrite!r} requires at least one attribute"
        raise ValueError(msg)
    return rule.attributes


@register("drop")
def _drop(rule: TransformationRule) -> Rewrite:
    paths = _require_attributes(rule)

    def apply(data: dict[str, typ.Any]) -> None:
        for path in paths:
            remove_path(data, path)

    return apply


@register("keep")
def _keep(rule: TransformationRule) -> Rewrite:
    paths = _require_attributes(rule)

    def apply(data: dict[str, typ.Any]) -> None:
        kept: dict[str, typ.Any] = {}
        for path in paths:
            value = resolve_path(data, path)
            if value is not MISSING:
                assign_path(kept, path, value)
        data.clear()
        data.update(kept)

    return apply


@register("rename")
def _rename(rule: TransformationRule) -> Rewrite:
    paths = _require_attributes(rule)
    if len(paths) != 1 or not rule.target:
        msg = "rewrite 'rename' requires exactly one attribute and a target"
        raise ValueError(msg)
    (source,) = paths
    target = rule.target
    split_path(target)

    def apply(data: dict[str, typ.Any]) -> None:
        value = resolve_path(data, source)
        if value is MISSING:
            return
        remove_path(data, source)
        if assign_path(data, target, value) is not None:
            # Target sits under a scalar; leave the attribute where it was.
            assign_path(data, source, value)

    return apply


def _label_name(label: object) -> str | None:
    if isinstance(label, str):
        return label
    if isinstance(label, dict):
        name = label.get("name")
        if isinstance(name, str):
            return name
    return None


@register("label_names")
def _label_names(rule: TransformationRule) -> Rewrite:
    paths = _require_attributes(rule)

    def apply(data: dict[str, typ.Any]) -> None:
        for path in paths:
            labels = resolve_path(data, path)
            if not isinstance(labels, list):
                continue
            names = [name for name in map(_label_name, labels) if name is not None]
            assign_path(data, path, names)

    return apply


@register("user_login")
def _user_login(rule: TransformationRule) -> Rewrite:
    paths = _require_attributes(rule)

    def apply(data: dict[str, typ.Any]) -> None:
        for path in paths:
            user = resolve_path(data, path)
            if isinstance(user, dict) and isinstance(user.get("login"), str):
                assign_path(data, path, user["login"])

    return apply


@dataclasses.dataclass(frozen=True, slots=True)
class CompiledTransformation:
    """A configured rewrite bound to its kind and predicate filters."""

    name: str
    events: frozenset[str]
    when: str | None
    rewrite: Rewrite

    def applies_to(self, kind: EventKind, data: Payload) -> bool:
        """Return True when the rule matches ``kind`` and its predicate."""
        if self.events and str(kind) not in self.events:
            return False
        if self.when is None:
            return True
        value = resolve_path(data, self.when)
        return value is not MISSING and value is not None

    def __call__(self, kind: EventKind, data: Payload) -> Payload:
        """Return the rewritten payload, or ``data`` itself when not matched."""
        if not self.applies_to(kind, data):
            return data
        rewritten = copy.deepcopy(data)
        self.rewrite(rewritten)
        return rewritten


def _compile_rule(index: int, rule: TransformationRule) -> CompiledTransformation:
    factory = get_rewrite(rule.rewrite)
    if factory is None:
        known = ", ".join(registered_rewrites())
        raise TransformationConfigError(
            index, f"unknown rewrite {rule.rewrite!r} (known: {known})"
        )
    try:
        for path in (*rule.attributes, *((rule.when,) if rule.when else ())):
            split_path(path)
        rewrite = factory(rule)
    except ValueError as exc:
        raise TransformationConfigError(index, str(exc)) from exc
    return CompiledTransformation(
        name=rule.rewrite,
        events=frozenset(str(kind) for kind in rule.events),
        when=rule.when,
        rewrite=rewrite,
    )


def compile_transformations(
    rules: cabc.Sequence[TransformationRule],
) -> tuple[CompiledTransformation, ...]:
    """Resolve a rule table into callables, preserving configuration order.

    Raises
    ------
    TransformationConfigError
        If a rule names an unknown rewrite or has invalid arguments.

    """
    return tuple(_compile_rule(index, rule) for index, rule in enumerate(rules))


def apply_transformations(
    transformations: cabc.Sequence[Transformation],
    kind: EventKind,
    data: Payload,
) -> Payload:
    """Thread ``data`` through ``transformations`` in order."""
    for transformation in transformations:
        data = transformation(kind, data)
    return data
