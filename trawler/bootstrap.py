"""Build the collaborators shared by the sync command and the live worker."""

from __future__ import annotations

import dataclasses
import typing as typ

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from trawler.config.errors import ConfigValidationError
from trawler.github import GitHubRestClient, GitHubRestConfig
from trawler.store import (
    SQLAlchemyDocumentSink,
    TransformingStore,
    init_document_storage,
)

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from trawler.config.models import TrawlerConfig

type SessionFactory = async_sessionmaker[AsyncSession]


@dataclasses.dataclass(slots=True)
class Services:
    """Engine, store and GitHub client wired from one configuration."""

    engine: AsyncEngine
    session_factory: SessionFactory
    store: TransformingStore
    client: GitHubRestClient

    async def aclose(self) -> None:
        """Release the HTTP client and dispose of the engine."""
        await self.client.aclose()
        await self.engine.dispose()


async def build_services(config: TrawlerConfig) -> Services:
    """Create the document tables if needed and wire the store and client.

    Raises
    ------
    ConfigValidationError
        If no database URL is configured.

    """
    if not config.database_url:
        raise ConfigValidationError(
            ["database_url must be set in the configuration or environment"]
        )

    engine = create_async_engine(config.database_url)
    await init_document_storage(engine)
    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    store = TransformingStore.from_rules(
        SQLAlchemyDocumentSink(session_factory), config.transformations
    )
    client = GitHubRestClient(GitHubRestConfig.from_env(config.github_api_token))
    return Services(
        engine=engine, session_factory=session_factory, store=store, client=client
    )
