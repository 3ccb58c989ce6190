"""Local tier cache holding the full deduplicated record set."""

from __future__ import annotations

import typing as typ

from agentdir.directory.identity import dedupe, dedupe_against_existing
from agentdir.logging import get_logger, log_warning

from .backends import RECORDS_BLOB
from .codec import decode_records, encode_records
from .errors import CorruptBlobError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from agentdir.directory.models import RepositoryRecord

    from .backends import BlobBackend

logger = get_logger(__name__)


def load_blob(backend: BlobBackend, blob_name: str) -> bytes | None:
    """Read a blob, logging and returning ``None`` when it cannot be read."""
    try:
        return backend.load()
    except OSError as exc:
        log_warning(logger, "Could not read local blob %r: %s", blob_name, exc)
        return None


def save_blob(backend: BlobBackend, blob_name: str, blob: bytes) -> bool:
    """Write a blob, logging and returning ``False`` when it cannot be written."""
    try:
        backend.save(blob)
    except OSError as exc:
        log_warning(logger, "Could not write local blob %r: %s", blob_name, exc)
        return False
    return True


class RecordCache:
    """Deduplicated snapshot of every known record, persisted on change.

    The snapshot is read once at construction. A corrupt or unreadable blob
    yields an empty cache and a warning rather than an exception.
    """

    def __init__(self, backend: BlobBackend) -> None:
        """Load the persisted snapshot from ``backend``."""
        self._backend = backend
        self._records: list[RepositoryRecord] = self._load()

    def _load(self) -> list[RepositoryRecord]:
        blob = load_blob(self._backend, RECORDS_BLOB)
        if not blob:
            return []
        try:
            return dedupe(decode_records(blob, blob_name=RECORDS_BLOB))
        except CorruptBlobError as exc:
            log_warning(logger, "%s; starting with an empty record cache", exc)
            return []

    def snapshot(self) -> list[RepositoryRecord]:
        """Return a copy of the cached records in stored order."""
        return list(self._records)

    def replace(self, records: cabc.Iterable[RepositoryRecord]) -> bool:
        """Replace the snapshot with ``records`` (deduplicated) and persist it.

        Returns
        -------
        bool
            ``True`` when the snapshot reached local storage.

        """
        self._records = dedupe(records)
        return save_blob(self._backend, RECORDS_BLOB, encode_records(self._records))

    def extend(self, records: cabc.Iterable[RepositoryRecord]) -> bool:
        """Add ``records``, superseding cached entries with the same identity."""
        incoming = dedupe(records)
        kept = dedupe_against_existing(self._records, incoming)
        return self.replace([*kept, *incoming])

    def __len__(self) -> int:
        """Return the number of cached records."""
        return len(self._records)
