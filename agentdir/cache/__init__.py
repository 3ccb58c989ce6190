"""Local persistence: tier cache, query result cache and stored credential.

Usage
-----
Open the caches under a state directory::

    from pathlib import Path

    from agentdir.cache import LocalStore, QueryResultCache, RecordCache

    store = LocalStore.in_directory(Path("~/.agentdir").expanduser())
    records = RecordCache(store.records)
    queries = QueryResultCache(store.queries)

"""

from agentdir.cache.backends import (
    BlobBackend,
    FileBlobBackend,
    LocalStore,
    MemoryBlobBackend,
)
from agentdir.cache.credentials import CredentialStore
from agentdir.cache.errors import CacheError, CorruptBlobError
from agentdir.cache.queries import QueryResultCache, normalize_query
from agentdir.cache.records import RecordCache

__all__ = [
    "BlobBackend",
    "CacheError",
    "CorruptBlobError",
    "CredentialStore",
    "FileBlobBackend",
    "LocalStore",
    "MemoryBlobBackend",
    "QueryResultCache",
    "RecordCache",
    "normalize_query",
]
