"""Durable store adapter tolerant of schema drift and outages.

The adapter works against whatever subset of the expected columns a
deployment provides. Every public method catches database and transport
failures, logs them, and returns an empty or ``False`` result, so callers
detect an outage only through degraded results and can fall back to the
local cache.
"""

from __future__ import annotations

import asyncio
import typing as typ
import uuid

import sqlalchemy as sa
from sqlalchemy.exc import SQLAlchemyError

from agentdir.directory.identity import (
    dedupe,
    dedupe_against_existing,
    normalize_identity,
)
from agentdir.directory.models import (
    RECORD_FIELDS,
    RepositoryRecord,
    is_writable,
    record_from_mapping,
)
from agentdir.logging import get_logger, log_debug, log_error, log_info, log_warning

from .storage import DEFAULT_TABLE_NAME

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

type SessionFactory = async_sessionmaker[AsyncSession]

logger = get_logger(__name__)

REQUIRED_COLUMNS: frozenset[str] = frozenset({"id", "url", "name"})
MINIMAL_FIELDS: tuple[str, ...] = (
    "id",
    "name",
    "url",
    "description",
    "owner",
    "stars",
)
SEARCH_COLUMNS: tuple[str, ...] = ("name", "description", "language", "owner")
IDENTITY_COLUMNS: frozenset[str] = frozenset({"id", "url", "owner", "name"})

_STORE_ERRORS = (SQLAlchemyError, OSError)
_GITHUB_KEY = "github.com/"


def _column_type(name: str) -> sa.types.TypeEngine[typ.Any]:
    if name in {"stars", "forks"}:
        return sa.Integer()
    if name == "topics":
        return sa.JSON()
    return sa.String()


def _ordered(columns: cabc.Iterable[str]) -> list[str]:
    wanted = set(columns)
    return [name for name in RECORD_FIELDS if name in wanted]


def _chunks[T](items: list[T], size: int) -> cabc.Iterator[list[T]]:
    for start in range(0, len(items), size):
        yield items[start : start + size]


def _escape_like(text: str) -> str:
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class DurableStoreAdapter:
    """Read and write directory records in a relational table.

    Parameters
    ----------
    session_factory:
        Async session factory bound to the durable database.
    table_name:
        Table holding the directory rows.
    batch_size:
        Records sent per insert statement.
    batch_pause_s:
        Pause between insert chunks, to avoid overwhelming the remote store.

    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        table_name: str = DEFAULT_TABLE_NAME,
        batch_size: int = 50,
        batch_pause_s: float = 0.1,
    ) -> None:
        """Configure the adapter; no database work happens until first use."""
        if batch_size <= 0:
            msg = f"batch_size must be positive, got {batch_size}"
            raise ValueError(msg)
        self._session_factory = session_factory
        self._table_name = table_name
        self._batch_size = batch_size
        self._batch_pause_s = max(batch_pause_s, 0.0)
        self._columns: frozenset[str] | None = None

    @property
    def table_name(self) -> str:
        """Return the name of the backing table."""
        return self._table_name

    def _table(self, columns: cabc.Iterable[str]) -> sa.TableClause:
        return sa.table(
            self._table_name,
            *(sa.column(name, _column_type(name)) for name in _ordered(columns)),
        )

    async def ensure_table(self) -> bool:
        """Return True when the backing table is reachable.

        A lightweight read is tried first. If it fails, an insert and delete
        of a sentinel row inside a rolled-back transaction serves as a
        second existence check.
        """
        table = self._table(REQUIRED_COLUMNS)
        try:
            async with self._session_factory() as session:
                await session.execute(sa.select(table.c.id).limit(1))
        except _STORE_ERRORS as exc:
            log_debug(logger, "Table probe for %s failed: %s", self._table_name, exc)
        else:
            return True

        sentinel = f"probe-{uuid.uuid4()}"
        try:
            async with self._session_factory() as session:
                await session.execute(
                    sa.insert(table).values(
                        id=sentinel, url=f"probe://{sentinel}", name=sentinel
                    )
                )
                await session.execute(sa.delete(table).where(table.c.id == sentinel))
                await session.rollback()
        except _STORE_ERRORS as exc:
            log_warning(
                logger,
                "Durable table %s is unreachable: %s",
                self._table_name,
                exc,
            )
            return False
        return True

    async def list_columns(self) -> set[str]:
        """Return the expected columns the backing table provides.

        The result always contains ``id``, ``url`` and ``name``. Detection
        tries the database catalogue, then a full-row probe, then one probe
        per column; a successful detection is cached for the adapter's
        lifetime.
        """
        if self._columns is not None:
            return set(self._columns)

        for strategy in (
            self._columns_from_catalogue,
            self._columns_from_full_probe,
            self._columns_from_single_probes,
        ):
            detected = await strategy()
            if detected:
                self._columns = frozenset(detected | REQUIRED_COLUMNS)
                log_info(
                    logger,
                    "Detected columns for %s: %s",
                    self._table_name,
                    ", ".join(_ordered(self._columns)),
                )
                return set(self._columns)

        log_warning(
            logger,
            "Column detection for %s failed; assuming %s",
            self._table_name,
            ", ".join(_ordered(REQUIRED_COLUMNS)),
        )
        return set(REQUIRED_COLUMNS)

    async def _columns_from_catalogue(self) -> set[str]:
        def _inspect(sync_conn: sa.Connection) -> list[str]:
            return [
                column["name"]
                for column in sa.inspect(sync_conn).get_columns(self._table_name)
            ]

        try:
            async with self._session_factory() as session:
                conn = await session.connection()
                names = await conn.run_sync(_inspect)
        except _STORE_ERRORS as exc:
            log_debug(
                logger, "Catalogue lookup for %s failed: %s", self._table_name, exc
            )
            return set()
        return {name for name in names if name in RECORD_FIELDS}

    async def _probe(self, columns: cabc.Iterable[str]) -> bool:
        table = self._table(columns)
        try:
            async with self._session_factory() as session:
                await session.execute(sa.select(*table.c).limit(1))
        except _STORE_ERRORS:
            return False
        return True

    async def _columns_from_full_probe(self) -> set[str]:
        if await self._probe(RECORD_FIELDS):
            return set(RECORD_FIELDS)
        return set()

    async def _columns_from_single_probes(self) -> set[str]:
        return {name for name in RECORD_FIELDS if await self._probe((name,))}

    async def get_all(self) -> list[RepositoryRecord]:
        """Return every stored record, deduplicated, most starred first."""
        columns = await self.list_columns()
        table = self._table(columns)
        statement = sa.select(*table.c)
        if "stars" in columns:
            statement = statement.order_by(table.c.stars.desc())
        return await self._fetch(statement, "read")

    async def search(self, text: str) -> list[RepositoryRecord]:
        """Return records whose name, description, language or owner contain ``text``.

        Matching is case-insensitive; blank text is equivalent to
        :meth:`get_all`.
        """
        needle = text.strip().lower()
        if not needle:
            return await self.get_all()

        columns = await self.list_columns()
        table = self._table(columns)
        pattern = f"%{_escape_like(needle)}%"
        conditions = [
            sa.func.lower(table.c[name]).like(pattern, escape="\\")
            for name in SEARCH_COLUMNS
            if name in columns
        ]
        statement = sa.select(*table.c).where(sa.or_(*conditions))
        if "stars" in columns:
            statement = statement.order_by(table.c.stars.desc())
        return await self._fetch(statement, "search")

    async def _fetch(
        self, statement: sa.Select[typ.Any], operation: str
    ) -> list[RepositoryRecord]:
        try:
            async with self._session_factory() as session:
                result = await session.execute(statement)
                rows = result.mappings().all()
        except _STORE_ERRORS as exc:
            log_warning(
                logger,
                "Durable store %s on %s failed: %s",
                operation,
                self._table_name,
                exc,
            )
            return []
        return dedupe(record_from_mapping(row) for row in rows)

    async def insert_batch(self, records: cabc.Iterable[RepositoryRecord]) -> int:
        """Insert records not already stored and return how many were written.

        Records without a URL or name are skipped. Records are sent in
        chunks of ``batch_size`` with ``batch_pause_s`` between chunks; each
        chunk costs one existence query. A chunk that fails is retried once
        with the minimal field set and skipped if that fails too.
        """
        writable = [record for record in records if is_writable(record)]
        if not writable:
            return 0

        columns = await self.list_columns()
        inserted = 0
        for index, chunk in enumerate(_chunks(dedupe(writable), self._batch_size)):
            if index and self._batch_pause_s:
                await asyncio.sleep(self._batch_pause_s)
            inserted += await self._insert_chunk(chunk, columns)
        return inserted

    async def _existing(
        self, chunk: list[RepositoryRecord], columns: set[str]
    ) -> list[RepositoryRecord]:
        table = self._table(columns & IDENTITY_COLUMNS)
        stored_url = sa.func.lower(sa.func.trim(table.c.url))
        url_keys = {normalize_identity(record).url_key for record in chunk}
        github_keys = sorted(key for key in url_keys if key.startswith(_GITHUB_KEY))
        plain_keys = url_keys.difference(github_keys)
        names = {record.name.strip().lower() for record in chunk}
        # Every stored URL variant of a repository contains its canonical key.
        conditions = [
            stored_url.like(f"%{_escape_like(key)}%", escape="\\")
            for key in github_keys
        ]
        conditions.append(stored_url.in_(sorted(plain_keys)))
        conditions.append(sa.func.lower(sa.func.trim(table.c.name)).in_(sorted(names)))
        statement = sa.select(*table.c).where(sa.or_(*conditions))
        async with self._session_factory() as session:
            result = await session.execute(statement)
            return [record_from_mapping(row) for row in result.mappings().all()]

    async def _insert_chunk(
        self, chunk: list[RepositoryRecord], columns: set[str]
    ) -> int:
        try:
            existing = await self._existing(chunk, columns)
        except _STORE_ERRORS as exc:
            log_warning(
                logger,
                "Existence check on %s failed; skipping %d records: %s",
                self._table_name,
                len(chunk),
                exc,
            )
            return 0

        fresh = dedupe_against_existing(chunk, existing)
        if not fresh:
            return 0

        try:
            await self._execute_insert(fresh, columns)
        except _STORE_ERRORS as exc:
            log_warning(
                logger,
                "Insert into %s failed, retrying with minimal fields: %s",
                self._table_name,
                exc,
            )
        else:
            return len(fresh)

        try:
            await self._execute_insert(fresh, MINIMAL_FIELDS)
        except _STORE_ERRORS as exc:
            log_error(
                logger,
                "Minimal insert into %s failed; skipping %d records: %s",
                self._table_name,
                len(fresh),
                exc,
            )
            return 0
        return len(fresh)

    async def _execute_insert(
        self, records: list[RepositoryRecord], columns: cabc.Iterable[str]
    ) -> None:
        fields = _ordered(columns)
        table = self._table(fields)
        rows = [
            {name: value for name, value in record.to_row().items() if name in fields}
            for record in records
        ]
        async with self._session_factory() as session, session.begin():
            await session.execute(sa.insert(table), rows)
