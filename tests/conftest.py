"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from agentdir.cache import LocalStore
from agentdir.store import init_directory_storage

if typ.TYPE_CHECKING:
    from pathlib import Path


async def _setup_sqlite(tmp_path: Path, name: str, *, provision: bool) -> AsyncEngine:
    """Create a SQLite engine, optionally creating the directory table."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / name}")
    if not provision:
        return engine
    try:
        await init_directory_storage(engine)
    except Exception:
        await engine.dispose()
        raise
    return engine


@pytest_asyncio.fixture
async def session_factory(
    tmp_path: Path,
) -> typ.AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a session factory for a sqlite database with the projects table."""
    engine = await _setup_sqlite(tmp_path, "agentdir_test.db", provision=True)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def unprovisioned_session_factory(
    tmp_path: Path,
) -> typ.AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Yield a session factory for a database without the projects table.

    Every query against the table fails, which stands in for a durable
    store outage.
    """
    engine = await _setup_sqlite(tmp_path, "agentdir_outage.db", provision=False)
    factory = async_sessionmaker(engine, expire_on_commit=False)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest.fixture
def local_store() -> LocalStore:
    """Return memory-backed local blobs."""
    return LocalStore.in_memory()
