"""Unit tests for the schema-tolerant durable store adapter."""

from __future__ import annotations

import typing as typ

import pytest
import sqlalchemy as sa
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from agentdir.directory import RECORD_FIELDS
from agentdir.store import (
    REQUIRED_COLUMNS,
    DurableStoreAdapter,
    ProjectRow,
    init_directory_storage,
)
from agentdir.store import adapter as adapter_module
from tests.helpers.directory_builders import FakeLogger, make_record

if typ.TYPE_CHECKING:
    from pathlib import Path

    from sqlalchemy.ext.asyncio import AsyncSession


async def _reduced_factory(
    tmp_path: Path, ddl: str
) -> tuple[async_sessionmaker[AsyncSession], typ.Callable[[], typ.Awaitable[None]]]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'reduced.db'}")
    async with engine.begin() as conn:
        await conn.execute(sa.text(ddl))
    return async_sessionmaker(engine, expire_on_commit=False), engine.dispose


def _row(
    row_id: str, owner: str, name: str, stars: int, *, suffix: str = ""
) -> ProjectRow:
    return ProjectRow(
        id=row_id,
        owner=owner,
        name=name,
        stars=stars,
        url=f"https://github.com/{owner}/{name}{suffix}",
    )


def test_batch_size_must_be_positive(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """A zero batch size is a configuration error."""
    with pytest.raises(ValueError, match="batch_size"):
        DurableStoreAdapter(session_factory, batch_size=0)


@pytest.mark.asyncio
async def test_ensure_table_reports_reachability(
    session_factory: async_sessionmaker[AsyncSession],
    unprovisioned_session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """ensure_table is True for a provisioned table and False otherwise."""
    assert await DurableStoreAdapter(session_factory).ensure_table() is True
    assert (
        await DurableStoreAdapter(unprovisioned_session_factory).ensure_table()
        is False
    )


@pytest.mark.asyncio
async def test_list_columns_detects_full_schema(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """A table created from the model exposes every record field."""
    adapter = DurableStoreAdapter(session_factory)

    assert await adapter.list_columns() == set(RECORD_FIELDS)


@pytest.mark.asyncio
async def test_list_columns_detects_reduced_schema(tmp_path: Path) -> None:
    """Only the columns a deployment actually has are reported."""
    factory, dispose = await _reduced_factory(
        tmp_path, "CREATE TABLE projects (id TEXT, url TEXT, name TEXT, stars INTEGER)"
    )
    try:
        adapter = DurableStoreAdapter(factory)
        assert await adapter.list_columns() == {"id", "url", "name", "stars"}
    finally:
        await dispose()


@pytest.mark.asyncio
async def test_list_columns_falls_back_to_required_set(
    monkeypatch: pytest.MonkeyPatch,
    unprovisioned_session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Failed detection assumes the required columns and is not cached."""
    logger = FakeLogger()
    monkeypatch.setattr(adapter_module, "logger", logger)
    adapter = DurableStoreAdapter(unprovisioned_session_factory)

    assert await adapter.list_columns() == set(REQUIRED_COLUMNS)
    assert await adapter.list_columns() == set(REQUIRED_COLUMNS)
    warnings = logger.messages("WARNING")
    assert len([msg for msg in warnings if "Column detection" in msg]) == 2


@pytest.mark.asyncio
async def test_insert_batch_skips_existing_and_invalid(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Only records unknown to the store by URL or owner/name are written."""
    adapter = DurableStoreAdapter(session_factory, batch_size=2, batch_pause_s=0)
    await adapter.insert_batch(
        [make_record("a", "one", id="1"), make_record("b", "two", id="2")]
    )

    inserted = await adapter.insert_batch(
        [
            make_record("A", "ONE", id="3"),
            make_record("b", "two", id="4", url="https://github.com/b/two/"),
            make_record("c", "three", id="5"),
            make_record("d", "four", id="6"),
            make_record("e", "five", id="7"),
            make_record("f", "", id="8"),
        ]
    )

    assert inserted == 3
    stored = await adapter.get_all()
    assert sorted(record.slug for record in stored) == [
        "a/one",
        "b/two",
        "c/three",
        "d/four",
        "e/five",
    ]


@pytest.mark.asyncio
async def test_insert_batch_matches_stored_url_variants(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Stored URLs differing in case, scheme, host or subpath still match."""
    async with session_factory() as session, session.begin():
        session.add_all(
            [
                ProjectRow(
                    id="1",
                    owner="Foo",
                    name="Bar Display",
                    stars=3,
                    url="https://github.com/Foo/Bar/",
                ),
                ProjectRow(
                    id="2",
                    owner="",
                    name="Forest Mirror",
                    stars=1,
                    url="http://www.github.com/Kelp/Forest/tree/main",
                ),
            ]
        )
    adapter = DurableStoreAdapter(session_factory, batch_pause_s=0)

    first = await adapter.insert_batch(
        [make_record("foo", "bar"), make_record("kelp", "forest")]
    )
    second = await adapter.insert_batch([make_record("foo", "bar")])

    assert (first, second) == (0, 0)
    async with session_factory() as session:
        count = await session.scalar(sa.text("SELECT COUNT(*) FROM projects"))
    assert count == 2


@pytest.mark.asyncio
async def test_insert_batch_round_trips_fields(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Topics, counters and metadata survive a write and read."""
    adapter = DurableStoreAdapter(session_factory)
    record = make_record(
        "octo",
        "reef",
        id="r1",
        stars=42,
        forks=3,
        topics=("mcp", "agents"),
        language="Python",
        license="MIT",
    )

    assert await adapter.insert_batch([record]) == 1

    (stored,) = await adapter.get_all()
    assert stored.topics == ("mcp", "agents")
    assert (stored.stars, stored.forks) == (42, 3)
    assert (stored.language, stored.license) == ("Python", "MIT")


@pytest.mark.asyncio
async def test_insert_batch_writes_only_available_columns(tmp_path: Path) -> None:
    """Fields without a column are dropped and reads fill sentinels."""
    factory, dispose = await _reduced_factory(
        tmp_path, "CREATE TABLE projects (id TEXT, url TEXT, name TEXT, stars INTEGER)"
    )
    try:
        adapter = DurableStoreAdapter(factory)
        assert await adapter.insert_batch([make_record("a", "b", stars=7)]) == 1

        (stored,) = await adapter.get_all()
        assert stored.stars == 7
        assert stored.owner == "a"
        assert stored.description == ""
        assert stored.language == "Unknown"
    finally:
        await dispose()


@pytest.mark.asyncio
async def test_insert_batch_retries_with_minimal_fields(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """A failed full insert is retried once with the minimal field set."""
    factory, dispose = await _reduced_factory(
        tmp_path,
        "CREATE TABLE projects (id TEXT, name TEXT, url TEXT, description TEXT, "
        "owner TEXT, stars INTEGER)",
    )
    logger = FakeLogger()
    monkeypatch.setattr(adapter_module, "logger", logger)
    adapter = DurableStoreAdapter(factory)

    async def _stale_columns() -> set[str]:
        return set(RECORD_FIELDS)

    monkeypatch.setattr(adapter, "list_columns", _stale_columns)
    try:
        assert await adapter.insert_batch([make_record("a", "b")]) == 1
        async with factory() as session:
            count = await session.scalar(sa.text("SELECT COUNT(*) FROM projects"))
        assert count == 1
        assert any("minimal fields" in msg for msg in logger.messages("WARNING"))
    finally:
        await dispose()


@pytest.mark.asyncio
async def test_outage_degrades_to_empty_results(
    unprovisioned_session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Reads return empty lists and writes report zero during an outage."""
    adapter = DurableStoreAdapter(unprovisioned_session_factory)

    assert await adapter.get_all() == []
    assert await adapter.search("agent") == []
    assert await adapter.insert_batch([make_record("a", "b")]) == 0


@pytest.mark.asyncio
async def test_get_all_deduplicates_dirty_rows(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Rows duplicated outside the adapter collapse to the most starred."""
    async with session_factory() as session, session.begin():
        session.add_all(
            [
                _row("1", "octo", "reef", 5),
                _row("2", "Octo", "Reef", 50, suffix="/"),
                _row("3", "octo", "kelp", 1),
            ]
        )

    stored = await DurableStoreAdapter(session_factory).get_all()

    assert [(record.id, record.stars) for record in stored] == [("2", 50), ("3", 1)]


@pytest.mark.asyncio
async def test_search_is_case_insensitive(
    session_factory: async_sessionmaker[AsyncSession],
) -> None:
    """Search matches name, description, language or owner substrings."""
    adapter = DurableStoreAdapter(session_factory)
    await adapter.insert_batch(
        [
            make_record("octo", "reef", description="MCP server toolkit"),
            make_record("kelp", "forest", language="Rust"),
            make_record("coral", "bay", description="100% agent_runtime"),
        ]
    )

    assert [r.slug for r in await adapter.search("mcp")] == ["octo/reef"]
    assert [r.slug for r in await adapter.search("RUST")] == ["kelp/forest"]
    assert [r.slug for r in await adapter.search("Coral")] == ["coral/bay"]
    assert [r.slug for r in await adapter.search("% agent_")] == ["coral/bay"]
    assert len(await adapter.search("   ")) == 3


@pytest.mark.asyncio
async def test_custom_table_name(tmp_path: Path) -> None:
    """Storage initialisation and the adapter honour a renamed table."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'custom.db'}")
    try:
        await init_directory_storage(engine, table_name="agent_projects")
        adapter = DurableStoreAdapter(
            async_sessionmaker(engine, expire_on_commit=False),
            table_name="agent_projects",
        )
        assert await adapter.insert_batch([make_record("a", "b")]) == 1
        assert [record.slug for record in await adapter.get_all()] == ["a/b"]
    finally:
        await engine.dispose()
