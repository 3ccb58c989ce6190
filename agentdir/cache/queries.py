"""Query result cache keyed by normalised query text."""

from __future__ import annotations

import typing as typ

from agentdir.directory.identity import dedupe
from agentdir.logging import get_logger, log_debug, log_warning

from .backends import QUERIES_BLOB
from .codec import decode_query_map, encode_query_map
from .errors import CorruptBlobError
from .records import load_blob, save_blob

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from agentdir.directory.models import RepositoryRecord

    from .backends import BlobBackend

logger = get_logger(__name__)


def normalize_query(query: str) -> str:
    """Return the cache key for ``query``.

    >>> normalize_query("  AI Agents ")
    'ai agents'

    """
    return query.strip().lower()


class QueryResultCache:
    """Map of query text to the result set captured for it.

    Entries never expire; a fresh discovery call for the same query
    overwrites its entry. The whole map is persisted on every change and
    read once at construction.

    Entries may hold records that have since become duplicates of newly
    stored ones, so callers re-filter :meth:`get` results with
    :func:`agentdir.directory.dedupe_against_existing` before use.
    """

    def __init__(self, backend: BlobBackend) -> None:
        """Load the persisted query map from ``backend``."""
        self._backend = backend
        self._entries: dict[str, list[RepositoryRecord]] = self._load()

    def _load(self) -> dict[str, list[RepositoryRecord]]:
        blob = load_blob(self._backend, QUERIES_BLOB)
        if not blob:
            return {}
        try:
            entries = decode_query_map(blob, blob_name=QUERIES_BLOB)
        except CorruptBlobError as exc:
            log_warning(logger, "%s; starting with an empty query cache", exc)
            return {}
        return {
            normalize_query(query): dedupe(records)
            for query, records in entries.items()
        }

    def get(self, query: str) -> list[RepositoryRecord] | None:
        """Return the entry for ``query``, or ``None`` on a miss."""
        records = self._entries.get(normalize_query(query))
        if records is None:
            log_debug(logger, "Query cache miss for %r", query)
            return None
        return list(records)

    def put(self, query: str, records: cabc.Iterable[RepositoryRecord]) -> bool:
        """Overwrite the entry for ``query`` and persist the map."""
        self._entries[normalize_query(query)] = dedupe(records)
        return self._persist()

    def invalidate(self, query: str) -> bool:
        """Drop the entry for ``query``; return ``True`` if one existed."""
        if self._entries.pop(normalize_query(query), None) is None:
            return False
        self._persist()
        return True

    def queries(self) -> list[str]:
        """Return the cached query keys."""
        return list(self._entries)

    def _persist(self) -> bool:
        return save_blob(self._backend, QUERIES_BLOB, encode_query_map(self._entries))

    def __contains__(self, query: object) -> bool:
        """Return True when an entry exists for ``query``."""
        return isinstance(query, str) and normalize_query(query) in self._entries

    def __len__(self) -> int:
        """Return the number of cached queries."""
        return len(self._entries)
