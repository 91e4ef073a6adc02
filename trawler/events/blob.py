"""Normalised representation of one ingested GitHub event."""

from __future__ import annotations

import copy
import dataclasses
import typing as typ

import msgspec

from .errors import AttributeTypeError, MissingAttributeError, PayloadDecodeError
from .kinds import EventKind
from .paths import MISSING, assign_path, resolve_path

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    import datetime as dt

Payload: typ.TypeAlias = dict[str, typ.Any]

LABELS_ATTRIBUTE: typ.Final = "pull_request.labels"


@dataclasses.dataclass(slots=True)
class Blob:
    """A single event record on its way to the document index.

    Attributes
    ----------
    kind
        Event classification, decided once from the event-kind string.
    delivery
        Idempotency key supplied by GitHub for the delivery attempt. Snapshot
        blobs produced by the sync job carry an empty delivery.
    data
        Decoded JSON payload addressed with dotted attribute paths.
    timestamp
        When the event is considered to have occurred. Live events use the
        queue receipt time so replayed backlogs keep their original order.

    """

    kind: EventKind
    delivery: str
    data: Payload
    timestamp: dt.datetime | None = None

    @classmethod
    def from_payload(
        cls, kind: EventKind | str, delivery: str, raw_payload: bytes | str
    ) -> Blob:
        """Decode ``raw_payload`` into a new blob.

        Raises
        ------
        UnsupportedEventKindError
            If ``kind`` is not a known event name.
        PayloadDecodeError
            If the payload is not a JSON object.

        """
        event_kind = EventKind.parse(kind)
        try:
            decoded = msgspec.json.decode(raw_payload)
        except msgspec.DecodeError as exc:
            raise PayloadDecodeError.not_json(exc) from exc
        if not isinstance(decoded, dict):
            raise PayloadDecodeError.not_object(type(decoded).__name__)
        return cls(kind=event_kind, delivery=delivery, data=decoded)

    @classmethod
    def from_mapping(
        cls,
        kind: EventKind | str,
        delivery: str,
        data: cabc.Mapping[str, typ.Any],
    ) -> Blob:
        """Build a blob from an already decoded payload, copying it."""
        return cls(
            kind=EventKind.parse(kind),
            delivery=delivery,
            data=copy.deepcopy(dict(data)),
        )

    def has_attribute(self, path: str) -> bool:
        """Return True when ``path`` resolves to a non-null value."""
        value = resolve_path(self.data, path)
        return value is not MISSING and value is not None

    def get(self, path: str, default: object = None) -> typ.Any:  # noqa: ANN401
        """Return the value at ``path`` or ``default`` when absent."""
        value = resolve_path(self.data, path)
        if value is MISSING or value is None:
            return default
        return value

    def get_int(self, path: str) -> int:
        """Return the integer at ``path``; booleans are rejected."""
        value = self._require(path)
        if isinstance(value, bool) or not isinstance(value, int):
            raise AttributeTypeError(path, "an integer", value)
        return value

    def get_str(self, path: str) -> str:
        """Return the string at ``path``."""
        value = self._require(path)
        if not isinstance(value, str):
            raise AttributeTypeError(path, "a string", value)
        return value

    def get_list(self, path: str) -> list[typ.Any]:
        """Return the list at ``path``."""
        value = self._require(path)
        if not isinstance(value, list):
            raise AttributeTypeError(path, "a list", value)
        return value

    def get_mapping(self, path: str) -> dict[str, typ.Any]:
        """Return the mapping at ``path``."""
        value = self._require(path)
        if not isinstance(value, dict):
            raise AttributeTypeError(path, "a mapping", value)
        return value

    def push(self, path: str, value: object) -> None:
        """Set or overwrite the attribute at ``path``.

        Raises
        ------
        AttributeTypeError
            If an intermediate segment already holds a non-mapping value.

        """
        blocked = assign_path(self.data, path, value)
        if blocked is not None:
            raise AttributeTypeError(
                blocked, "a mapping", resolve_path(self.data, blocked)
            )

    def natural_key(self) -> str:
        """Return the identifier of the issue, pull request or comment.

        The first of the kind's natural key paths holding an integer or a
        non-empty string wins.

        Raises
        ------
        MissingAttributeError
            If none of the kind's natural key paths resolve.

        """
        paths = self.kind.natural_key_paths
        for path in paths:
            value = resolve_path(self.data, path)
            if isinstance(value, bool):
                continue
            if isinstance(value, int) or (isinstance(value, str) and value):
                return str(value)
        raise MissingAttributeError(" | ".join(paths))

    def _require(self, path: str) -> object:
        value = resolve_path(self.data, path)
        if value is MISSING or value is None:
            raise MissingAttributeError(path)
        return value
