"""Factory for building a ReconciliationOrchestrator from configuration.

Usage
-----
Build an orchestrator from the environment and read the directory::

    from agentdir.factory import build_orchestrator

    orchestrator = build_orchestrator()
    records = await orchestrator.read()
    await orchestrator.aclose()

"""

from __future__ import annotations

import typing as typ

from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

from agentdir.cache import CredentialStore, LocalStore, QueryResultCache, RecordCache
from agentdir.config import DirectoryConfig
from agentdir.discovery import DiscoveryService, GitHubSearchClient, GitHubSearchConfig
from agentdir.reconcile import ReconciliationOrchestrator
from agentdir.store import DurableStoreAdapter

if typ.TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncEngine

    from agentdir.discovery import DiscoveryProvider
    from agentdir.reconcile import ChangeNotifier

__all__ = ["build_orchestrator", "create_engine"]


def create_engine(config: DirectoryConfig) -> AsyncEngine | None:
    """Return an async engine for the durable store, or ``None`` if unset."""
    if config.database_url is None:
        return None
    return create_async_engine(config.database_url)


def build_orchestrator(
    config: DirectoryConfig | None = None,
    *,
    local: LocalStore | None = None,
    provider: DiscoveryProvider | None = None,
    notifier: ChangeNotifier | None = None,
) -> ReconciliationOrchestrator:
    """Assemble the orchestrator and the tiers it coordinates.

    Parameters
    ----------
    config
        Directory configuration; read from the environment when omitted.
    local
        Local blobs; file-backed under ``config.state_dir`` when omitted.
    provider
        Discovery provider; a :class:`GitHubSearchClient` configured from
        the environment when omitted.
    notifier
        Shared change broadcast.

    Returns
    -------
    ReconciliationOrchestrator
        Orchestrator whose ``aclose()`` disposes of the engine and any HTTP
        client created here.

    Raises
    ------
    DiscoveryConfigError
        If the search client configuration in the environment is invalid.

    """
    config = config or DirectoryConfig.from_env()
    local = local or LocalStore.in_directory(config.state_dir)
    closers: list[typ.Callable[[], typ.Awaitable[None]]] = []

    if provider is None:
        client = GitHubSearchClient(GitHubSearchConfig.from_env())
        closers.append(client.aclose)
        provider = client

    store: DurableStoreAdapter | None = None
    engine = create_engine(config)
    if engine is not None:
        store = DurableStoreAdapter(
            async_sessionmaker(engine, expire_on_commit=False),
            table_name=config.table_name,
            batch_size=config.batch_size,
            batch_pause_s=config.batch_pause_s,
        )
        closers.append(engine.dispose)

    return ReconciliationOrchestrator(
        records=RecordCache(local.records),
        queries=QueryResultCache(local.queries),
        store=store,
        discovery=DiscoveryService(provider),
        notifier=notifier,
        credentials=CredentialStore(local.credential),
        closers=closers,
    )
