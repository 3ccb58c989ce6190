"""Persistence backends for named local blobs."""

from __future__ import annotations

import dataclasses
import os
import tempfile
import typing as typ
from pathlib import Path

RECORDS_BLOB = "records"
QUERIES_BLOB = "queries"
CREDENTIAL_BLOB = "credential"


class BlobBackend(typ.Protocol):
    """Load and save a single opaque blob."""

    def load(self) -> bytes | None:
        """Return the stored blob, or ``None`` when nothing was saved yet."""
        ...

    def save(self, blob: bytes) -> None:
        """Replace the stored blob."""
        ...


class FileBlobBackend:
    """Blob stored in a single file, replaced atomically on save."""

    def __init__(self, path: Path) -> None:
        """Bind the backend to ``path``; the file need not exist yet."""
        self.path = path

    def load(self) -> bytes | None:
        """Return the file contents, or ``None`` when the file is missing."""
        try:
            return self.path.read_bytes()
        except FileNotFoundError:
            return None

    def save(self, blob: bytes) -> None:
        """Write ``blob`` to a temporary sibling and move it into place."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(blob)
            tmp_path.replace(self.path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise

    def __repr__(self) -> str:
        """Return a debug representation naming the file."""
        return f"FileBlobBackend({str(self.path)!r})"


@dataclasses.dataclass(slots=True)
class MemoryBlobBackend:
    """In-process blob, used by tests and cache-only sessions."""

    blob: bytes | None = None
    saves: int = 0

    def load(self) -> bytes | None:
        """Return the held blob."""
        return self.blob

    def save(self, blob: bytes) -> None:
        """Replace the held blob and count the write."""
        self.blob = blob
        self.saves += 1


@dataclasses.dataclass(frozen=True, slots=True)
class LocalStore:
    """The three named blobs that make up local persistence.

    Attributes
    ----------
    records
        Full deduplicated record set mirrored from the durable store.
    queries
        Map of normalised query strings to captured result sets.
    credential
        Optional GitHub access token.

    """

    records: BlobBackend
    queries: BlobBackend
    credential: BlobBackend

    @classmethod
    def in_directory(cls, directory: Path) -> LocalStore:
        """Return file-backed blobs under ``directory``."""
        return cls(
            records=FileBlobBackend(directory / f"{RECORDS_BLOB}.json"),
            queries=FileBlobBackend(directory / f"{QUERIES_BLOB}.json"),
            credential=FileBlobBackend(directory / CREDENTIAL_BLOB),
        )

    @classmethod
    def in_memory(cls) -> LocalStore:
        """Return memory-backed blobs."""
        return cls(
            records=MemoryBlobBackend(),
            queries=MemoryBlobBackend(),
            credential=MemoryBlobBackend(),
        )
