"""The transforming store: the single funnel between producers and the sink."""

from __future__ import annotations

import dataclasses
import typing as typ

from trawler.events import MissingAttributeError
from trawler.logging import get_logger, log_debug

from .errors import MalformedBlobError
from .transformations import apply_transformations, compile_transformations

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from trawler.config.models import Repository, TransformationRule
    from trawler.events import Blob

    from .sink import DocumentSink
    from .storage import Destination
    from .transformations import Transformation

logger = get_logger(__name__)


class TransformingStore:
    """Rewrite blobs with the configured rules and upsert them into the sink.

    Both the live handler and the sync job write through this class, so it is
    the one place where normalisation and dispatch rules hold. It keeps no
    per-call state and is safe to share between concurrent writers as long as
    the sink is.
    """

    def __init__(
        self,
        sink: DocumentSink,
        transformations: cabc.Sequence[Transformation] = (),
    ) -> None:
        """Bind the sink and the ordered transformation chain."""
        self._sink = sink
        self._transformations = tuple(transformations)

    @classmethod
    def from_rules(
        cls, sink: DocumentSink, rules: cabc.Sequence[TransformationRule]
    ) -> TransformingStore:
        """Compile a configured rule table and build a store around ``sink``."""
        return cls(sink, compile_transformations(rules))

    async def index(
        self, destination: Destination, repository: Repository, blob: Blob
    ) -> None:
        """Transform ``blob`` and write it to ``destination``.

        The caller's blob is left untouched; rewrites operate on copies.

        Raises
        ------
        MalformedBlobError
            If the transformed blob has no natural key. Nothing is written.
        SinkError
            If the sink fails the write.

        """
        data = apply_transformations(self._transformations, blob.kind, blob.data)
        prepared = dataclasses.replace(blob, data=data)
        try:
            natural_key = prepared.natural_key()
        except MissingAttributeError as exc:
            raise MalformedBlobError(str(blob.kind), exc) from exc

        await self._sink.upsert(destination, repository.slug, prepared)
        log_debug(
            logger,
            "indexed %s %s #%s into %s",
            repository.pretty_name,
            blob.kind,
            natural_key,
            destination,
        )
