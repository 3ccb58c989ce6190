"""Reconciliation between the durable store, the local cache and seed data."""

from __future__ import annotations

import asyncio
import typing as typ

from sqlalchemy.exc import SQLAlchemyError

from agentdir.common.slug import canonical_github_url, split_github_url
from agentdir.directory.errors import InvalidRecordError
from agentdir.directory.identity import (
    IdentityIndex,
    dedupe,
    dedupe_against_existing,
)
from agentdir.directory.listing import list_records, matches_text
from agentdir.directory.models import (
    RepositoryRecord,
    is_writable,
    promote,
    summary_to_record,
)
from agentdir.directory.seed import seed_records
from agentdir.discovery.errors import DiscoveryError
from agentdir.discovery.relevance import DEFAULT_POLICY, RelevancePolicy, top_projects

from .notifications import ChangeEvent, ChangeNotifier
from .observability import DirectoryEventLogger

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from agentdir.cache import CredentialStore, QueryResultCache, RecordCache
    from agentdir.directory.listing import DirectoryListOptions
    from agentdir.discovery.service import DiscoveryService

_STORE_ERRORS = (SQLAlchemyError, OSError)


class DurableStore(typ.Protocol):
    """Durable tier operations the orchestrator depends on."""

    async def get_all(self) -> list[RepositoryRecord]: ...

    async def search(self, text: str) -> list[RepositoryRecord]: ...

    async def insert_batch(self, records: cabc.Iterable[RepositoryRecord]) -> int: ...

    async def ensure_table(self) -> bool: ...


type Closer = cabc.Callable[[], cabc.Awaitable[None]]


class ReconciliationOrchestrator:
    """Coordinate reads and writes across the directory's storage tiers.

    Reads prefer the durable store, fall back to the local record cache
    (pushing it back to the store in the background) and finally bootstrap
    from the seed dataset. Writes deduplicate against every known record,
    then move both tiers together and notify observers once the local
    cache holds the new records.

    The durable table is probed once on first use; an unreachable table
    switches the orchestrator to cache-only operation.

    Parameters
    ----------
    records:
        Local tier cache.
    queries:
        Query result cache used by discovery.
    store:
        Durable store, or ``None`` for cache-only operation.
    discovery:
        Discovery service, or ``None`` when only cached results are served.
    notifier:
        Change broadcast; a private notifier is created when omitted.
    credentials:
        Stored access token used when discovery is called without one.

    """

    def __init__(  # noqa: PLR0913
        self,
        *,
        records: RecordCache,
        queries: QueryResultCache,
        store: DurableStore | None = None,
        discovery: DiscoveryService | None = None,
        notifier: ChangeNotifier | None = None,
        credentials: CredentialStore | None = None,
        seed: cabc.Callable[[], list[RepositoryRecord]] = seed_records,
        policy: RelevancePolicy = DEFAULT_POLICY,
        events: DirectoryEventLogger | None = None,
        closers: cabc.Sequence[Closer] = (),
    ) -> None:
        """Wire the orchestrator to its collaborators."""
        self._records = records
        self._queries = queries
        self._store = store
        self._store_probed = False
        self._discovery = discovery
        self._notifier = notifier or ChangeNotifier()
        self._credentials = credentials
        self._seed = seed
        self._policy = policy
        self._events = events or DirectoryEventLogger()
        self._closers = list(closers)
        self._background: set[asyncio.Task[None]] = set()

    @property
    def notifier(self) -> ChangeNotifier:
        """Return the change broadcast observers subscribe to."""
        return self._notifier

    async def read(self) -> list[RepositoryRecord]:
        """Return the directory contents from the best available tier."""
        stored = await self._store_get_all()
        if stored:
            records = dedupe(stored)
            self._records.replace(records)
            self._events.read_completed("store", len(records))
            return records

        cached = dedupe(self._records.snapshot())
        if cached:
            self._schedule_resync(cached)
            self._events.read_completed("cache", len(cached))
            return cached

        seeded = dedupe(promote(record) for record in self._seed())
        stored_count = await self._store_insert(seeded)
        cached_ok = self._records.replace(seeded)
        self._events.write_completed(
            submitted=len(seeded),
            accepted=len(seeded),
            stored=stored_count,
            cached=cached_ok,
        )
        self._events.read_completed("seed", len(seeded))
        return seeded

    async def write(self, records: cabc.Iterable[RepositoryRecord]) -> int:
        """Add new records to both tiers and return how many were accepted.

        Records without a URL or name are skipped. Records already known
        to either tier are not an error; they simply do not count. The
        write succeeds when the local cache accepts the records, even if
        the durable store is unreachable.
        """
        submitted = list(records)
        writable = [record for record in submitted if is_writable(record)]
        if len(writable) < len(submitted):
            self._events.write_skipped(
                "missing_url_or_name", len(submitted) - len(writable)
            )

        batch = dedupe(promote(record) for record in writable)
        fresh = dedupe_against_existing(batch, await self._known_index())
        if not fresh:
            self._events.write_completed(
                submitted=len(submitted), accepted=0, stored=0, cached=True
            )
            return 0

        stored_count = await self._store_insert(fresh)
        cached_ok = self._records.extend(fresh)
        if cached_ok:
            self._notifier.publish(ChangeEvent(count=len(fresh), source="write"))

        self._events.write_completed(
            submitted=len(submitted),
            accepted=len(fresh),
            stored=stored_count,
            cached=cached_ok,
        )
        return len(fresh) if cached_ok else stored_count

    async def add_urls(self, urls: cabc.Iterable[str]) -> int:
        """Add repositories by GitHub URL and return how many were accepted.

        Raises
        ------
        InvalidRecordError
            If any URL is not a GitHub repository URL; nothing is written.

        """
        records: list[RepositoryRecord] = []
        for url in urls:
            canonical = canonical_github_url(url)
            split = split_github_url(url)
            if canonical is None or split is None:
                raise InvalidRecordError.not_github(url)
            owner, name = split
            records.append(RepositoryRecord(url=canonical, owner=owner, name=name))
        return await self.write(records)

    async def discover(
        self, query: str, credential: str | None = None
    ) -> list[RepositoryRecord]:
        """Run discovery for ``query`` and return records not yet known.

        A successful call overwrites the query cache entry. When discovery
        fails or is not configured, the cached entry for the query is
        served instead, or an empty list when there is none.
        """
        token = credential or self._stored_credential()
        if self._discovery is None:
            return await self._cached_discovery(query)

        try:
            summaries = await self._discovery.discover(query, token)
        except DiscoveryError as exc:
            fallback = await self._cached_discovery(query)
            self._events.discovery_failed(query, exc, len(fallback))
            return fallback

        found = [summary_to_record(summary) for summary in summaries]
        self._queries.put(query, found)
        self._events.discovery_completed(query, len(found))
        return dedupe_against_existing(dedupe(found), await self._known_index())

    async def discover_and_add(
        self, query: str, credential: str | None = None
    ) -> int:
        """Discover repositories for ``query`` and write them to the directory."""
        return await self.write(await self.discover(query, credential))

    async def search(self, text: str) -> list[RepositoryRecord]:
        """Search the durable store, falling back to the local cache."""
        found: list[RepositoryRecord] = []
        store = await self._durable()
        if store is not None:
            try:
                found = await store.search(text)
            except _STORE_ERRORS as exc:
                self._events.tier_degraded("store", "search", exc)
        if found:
            return dedupe(found)
        return [
            record for record in self._records.snapshot() if matches_text(record, text)
        ]

    async def list_records(
        self, options: DirectoryListOptions
    ) -> list[RepositoryRecord]:
        """Return a filtered, sorted page of the directory."""
        return list_records(await self.read(), options)

    async def top_projects(self, limit: int = 10) -> list[RepositoryRecord]:
        """Return the most starred relevant agent and MCP projects."""
        return top_projects(await self.read(), limit=limit, policy=self._policy)

    async def drain(self) -> None:
        """Wait for scheduled background work to finish."""
        while self._background:
            await asyncio.gather(*list(self._background))

    async def aclose(self) -> None:
        """Drain background work and release owned resources."""
        await self.drain()
        for closer in self._closers:
            await closer()
        self._closers.clear()

    def _stored_credential(self) -> str | None:
        if self._credentials is None:
            return None
        return self._credentials.load()

    async def _cached_discovery(self, query: str) -> list[RepositoryRecord]:
        cached = self._queries.get(query) or []
        return dedupe_against_existing(cached, await self._known_index())

    async def _known_index(self) -> IdentityIndex:
        stored = await self._store_get_all()
        return IdentityIndex.from_records([*stored, *self._records.snapshot()])

    async def _durable(self) -> DurableStore | None:
        if self._store is None or self._store_probed:
            return self._store
        self._store_probed = True
        try:
            ready = await self._store.ensure_table()
        except _STORE_ERRORS as exc:
            self._events.tier_degraded("store", "probe", exc)
            ready = False
        if not ready:
            self._events.store_unavailable()
            self._store = None
        return self._store

    async def _store_get_all(self) -> list[RepositoryRecord]:
        store = await self._durable()
        if store is None:
            return []
        try:
            return await store.get_all()
        except _STORE_ERRORS as exc:
            self._events.tier_degraded("store", "read", exc)
            return []

    async def _store_insert(self, records: list[RepositoryRecord]) -> int:
        if not records:
            return 0
        store = await self._durable()
        if store is None:
            return 0
        try:
            return await store.insert_batch(records)
        except _STORE_ERRORS as exc:
            self._events.tier_degraded("store", "write", exc)
            return 0

    def _schedule_resync(self, records: list[RepositoryRecord]) -> None:
        if self._store is None:
            return
        task = asyncio.create_task(self._resync(records), name="agentdir-resync")
        self._background.add(task)
        task.add_done_callback(self._background.discard)
        self._events.resync_scheduled(len(records))

    async def _resync(self, records: list[RepositoryRecord]) -> None:
        if self._store is None:
            return
        try:
            inserted = await self._store.insert_batch(records)
        except _STORE_ERRORS as exc:
            self._events.resync_failed(exc)
            return
        self._events.resync_completed(len(records), inserted)
