"""Unit tests for service wiring."""

from __future__ import annotations

import typing as typ

import pytest
from sqlalchemy import inspect

from tests.helpers.db import sqlite_url
from trawler.bootstrap import build_services
from trawler.config import ConfigValidationError, Repository, TrawlerConfig
from trawler.events import EventKind

if typ.TYPE_CHECKING:
    from pathlib import Path

_REPOS = (Repository(owner="octo", name="reef", events=(EventKind.ISSUES,)),)


@pytest.mark.asyncio
async def test_build_services_creates_document_table(tmp_path: Path) -> None:
    config = TrawlerConfig(
        repositories=_REPOS,
        database_url=sqlite_url(tmp_path),
        github_api_token="token",
    )

    services = await build_services(config)
    try:
        async with services.engine.connect() as conn:
            tables = await conn.run_sync(
                lambda sync_conn: inspect(sync_conn).get_table_names()
            )
    finally:
        await services.aclose()

    assert "documents" in tables


@pytest.mark.asyncio
async def test_build_services_requires_database_url() -> None:
    with pytest.raises(ConfigValidationError, match="database_url"):
        await build_services(TrawlerConfig(repositories=_REPOS))
