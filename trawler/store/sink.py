"""Document sink: idempotent upserts into the document index."""

from __future__ import annotations

import copy
import typing as typ

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from .errors import SinkError
from .storage import Destination, Document

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from trawler.events import Blob

    type SessionFactory = async_sessionmaker[AsyncSession]


class DocumentSink(typ.Protocol):
    """Destination for transformed blobs."""

    async def upsert(
        self, destination: Destination, repository: str, blob: Blob
    ) -> None:
        """Insert or overwrite the document identified by ``blob``."""
        ...


def document_key(destination: Destination, blob: Blob) -> str:
    """Return the per-repository identity of the document ``blob`` maps to.

    Snapshot documents hold the full current state of one issue or pull
    request. Live documents record one delivery each, so replaying a
    delivery overwrites its earlier write instead of adding a duplicate.

    Raises
    ------
    MissingAttributeError
        If the blob carries none of its kind's natural key attributes.

    """
    key = f"{blob.kind}:{blob.natural_key()}"
    if destination is Destination.LIVE:
        return f"{key}:{blob.delivery}"
    return key


class SQLAlchemyDocumentSink:
    """Document sink storing JSON documents in a relational table."""

    def __init__(self, session_factory: SessionFactory) -> None:
        """Store the session factory used for writes."""
        self._session_factory = session_factory

    async def upsert(
        self, destination: Destination, repository: str, blob: Blob
    ) -> None:
        """Write ``blob`` as the latest state of its document.

        Two writers racing on a brand new document both attempt an insert;
        the loser hits the unique constraint and retries as an update.

        Raises
        ------
        SinkError
            If the database rejects the write.

        """
        key = document_key(destination, blob)
        values: dict[str, typ.Any] = {
            "kind": str(blob.kind),
            "natural_key": blob.natural_key(),
            "delivery": blob.delivery,
            "timestamp": blob.timestamp,
            "data": copy.deepcopy(blob.data),
        }
        try:
            try:
                await self._write(destination, repository, key, values, insert=True)
            except IntegrityError:
                written = await self._write(
                    destination, repository, key, values, insert=False
                )
                if not written:
                    raise SinkError.lost_race(repository, key) from None
        except SQLAlchemyError as exc:
            raise SinkError.write_failed(repository, key) from exc

    async def _write(
        self,
        destination: Destination,
        repository: str,
        key: str,
        values: dict[str, typ.Any],
        *,
        insert: bool,
    ) -> bool:
        async with self._session_factory() as session:
            document = await session.scalar(
                select(Document).where(
                    Document.destination == destination.value,
                    Document.repository == repository,
                    Document.document_key == key,
                )
            )
            if document is None:
                if not insert:
                    return False
                document = Document(
                    destination=destination.value,
                    repository=repository,
                    document_key=key,
                    **values,
                )
                session.add(document)
            else:
                for field, value in values.items():
                    setattr(document, field, value)

            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise
            return True
