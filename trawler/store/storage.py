"""Persistence models for the indexed document store."""

from __future__ import annotations

import datetime as dt
import enum
import typing as typ

from sqlalchemy import (
    JSON,
    DateTime,
    Index,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from trawler.common.time import utcnow

if typ.TYPE_CHECKING:
    from sqlalchemy.engine import Dialect
    from sqlalchemy.ext.asyncio import AsyncEngine


class Destination(enum.StrEnum):
    """Logical index a blob is written to."""

    LIVE = "live"
    SNAPSHOT = "snapshot"


class Base(DeclarativeBase):
    """Base declarative class for document models."""


class UTCDateTime(TypeDecorator[dt.datetime]):
    """DateTime wrapper that round-trips UTC tzinfo even on SQLite."""

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Force bound datetime values to UTC with tzinfo."""
        if value is None:
            return None
        if value.tzinfo is None:
            msg = "document timestamps must be timezone aware"
            raise ValueError(msg)
        return value.astimezone(dt.UTC)

    def process_result_value(
        self, value: dt.datetime | None, dialect: Dialect
    ) -> dt.datetime | None:
        """Ensure result datetimes are UTC and timezone aware."""
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=dt.UTC)
        return value.astimezone(dt.UTC)


class Document(Base):
    """Latest indexed state of one event or one issue snapshot.

    Live documents are keyed per delivery so each webhook delivery is its own
    document; snapshot documents are keyed per issue or pull request and are
    overwritten by every sync.
    """

    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint(
            "destination",
            "repository",
            "document_key",
            name="uq_documents_identity",
        ),
        Index("ix_documents_repo_time", "repository", "timestamp"),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    destination: Mapped[str] = mapped_column(String(16))
    repository: Mapped[str] = mapped_column(String(255))
    document_key: Mapped[str] = mapped_column(String(255))
    kind: Mapped[str] = mapped_column(String(64))
    natural_key: Mapped[str] = mapped_column(String(64))
    delivery: Mapped[str] = mapped_column(String(64), default="")
    timestamp: Mapped[dt.datetime | None] = mapped_column(UTCDateTime(), default=None)
    data: Mapped[dict[str, typ.Any]] = mapped_column(JSON)
    indexed_at: Mapped[dt.datetime] = mapped_column(UTCDateTime(), default=utcnow)
    updated_at: Mapped[dt.datetime] = mapped_column(
        UTCDateTime(), default=utcnow, onupdate=utcnow
    )


async def init_document_storage(engine: AsyncEngine) -> None:
    """Create all tables registered with Base if they are absent."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
