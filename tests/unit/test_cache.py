"""Unit tests for local persistence: backends, caches and the credential."""

from __future__ import annotations

import typing as typ

import msgspec
import pytest

from agentdir.cache import (
    CredentialStore,
    FileBlobBackend,
    LocalStore,
    MemoryBlobBackend,
    QueryResultCache,
    RecordCache,
    normalize_query,
)
from agentdir.cache import records as records_module
from tests.helpers.directory_builders import FakeLogger, make_record

if typ.TYPE_CHECKING:
    from pathlib import Path


class _UnwritableBackend(MemoryBlobBackend):
    def save(self, blob: bytes) -> None:
        raise PermissionError("read-only filesystem")


def test_file_backend_round_trips_and_replaces(tmp_path: Path) -> None:
    """Saving creates parent directories and leaves no temporary files."""
    backend = FileBlobBackend(tmp_path / "state" / "records.json")

    assert backend.load() is None
    backend.save(b"[]")
    backend.save(b"[1]")

    assert backend.load() == b"[1]"
    assert sorted(path.name for path in (tmp_path / "state").iterdir()) == [
        "records.json"
    ]


def test_local_store_in_directory_names_three_blobs(tmp_path: Path) -> None:
    """The file layout holds records, queries and the credential."""
    store = LocalStore.in_directory(tmp_path)

    paths = {
        typ.cast("FileBlobBackend", backend).path.name
        for backend in (store.records, store.queries, store.credential)
    }

    assert paths == {"records.json", "queries.json", "credential"}


def test_record_cache_persists_deduplicated_snapshot() -> None:
    """replace() stores a deduplicated snapshot that survives a reload."""
    backend = MemoryBlobBackend()
    cache = RecordCache(backend)

    assert cache.replace(
        [make_record("a", "b"), make_record("A", "B"), make_record("c", "d")]
    )

    reloaded = RecordCache(backend)
    assert [record.slug for record in reloaded.snapshot()] == ["a/b", "c/d"]
    assert len(reloaded) == 2


def test_record_cache_extend_supersedes_by_identity() -> None:
    """A fresher record replaces the cached one with the same identity."""
    cache = RecordCache(MemoryBlobBackend())
    cache.replace([make_record("a", "b", stars=1), make_record("c", "d")])

    assert cache.extend([make_record("A", "B", stars=9)])

    snapshot = cache.snapshot()
    assert [record.slug for record in snapshot] == ["c/d", "A/B"]
    assert snapshot[1].stars == 9


def test_record_cache_snapshot_is_a_copy() -> None:
    """Mutating a snapshot leaves the cache untouched."""
    cache = RecordCache(MemoryBlobBackend())
    cache.replace([make_record("a", "b")])

    cache.snapshot().clear()

    assert len(cache) == 1


@pytest.mark.parametrize(
    "blob",
    [
        pytest.param(b"{not json", id="undecodable"),
        pytest.param(b'{"a": 1}', id="wrong-shape"),
        pytest.param(b"[1, 2]", id="wrong-items"),
    ],
)
def test_corrupt_record_blob_starts_empty_with_warning(
    monkeypatch: pytest.MonkeyPatch, blob: bytes
) -> None:
    """Corrupt persisted data never crashes startup."""
    logger = FakeLogger()
    monkeypatch.setattr(records_module, "logger", logger)

    cache = RecordCache(MemoryBlobBackend(blob=blob))

    assert cache.snapshot() == []
    assert any("corrupt" in message for message in logger.messages("WARNING"))


def test_record_cache_reports_unwritable_storage(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    """A failed save keeps the in-memory snapshot and returns False."""
    logger = FakeLogger()
    monkeypatch.setattr(records_module, "logger", logger)
    cache = RecordCache(_UnwritableBackend())

    assert cache.replace([make_record("a", "b")]) is False
    assert len(cache) == 1
    assert logger.messages("WARNING")


def test_query_cache_normalises_keys_and_overwrites() -> None:
    """Lookups are exact after trimming and lowercasing; put overwrites."""
    backend = MemoryBlobBackend()
    cache = QueryResultCache(backend)

    cache.put("  AI Agents ", [make_record("a", "b")])
    cache.put("ai agents", [make_record("c", "d"), make_record("C", "D")])

    hit = cache.get("AI AGENTS")
    assert hit is not None
    assert [record.slug for record in hit] == ["c/d"]
    assert cache.get("ai agent") is None
    assert len(cache) == 1
    assert backend.saves == 2


def test_query_cache_survives_reload_and_invalidation() -> None:
    """Entries persist across instances until invalidated."""
    backend = MemoryBlobBackend()
    QueryResultCache(backend).put("mcp", [make_record("a", "b")])

    reloaded = QueryResultCache(backend)
    assert "MCP" in reloaded
    assert reloaded.queries() == ["mcp"]
    assert reloaded.invalidate("mcp") is True
    assert reloaded.invalidate("mcp") is False
    assert QueryResultCache(backend).get("mcp") is None


def test_query_cache_treats_corrupt_blob_as_empty() -> None:
    """A query map with the wrong structure is discarded."""
    cache = QueryResultCache(MemoryBlobBackend(blob=b'{"mcp": "oops"}'))

    assert len(cache) == 0


def test_query_cache_blob_is_json_rows() -> None:
    """The persisted blob maps queries to arrays of row objects."""
    backend = MemoryBlobBackend()
    QueryResultCache(backend).put("mcp", [make_record("a", "b")])

    assert backend.blob is not None
    decoded = msgspec.json.decode(backend.blob)
    assert decoded["mcp"][0]["url"] == "https://github.com/a/b"
    assert "is_loading" not in decoded["mcp"][0]


def test_credential_store_round_trip() -> None:
    """Tokens are trimmed on save; blank tokens and clear() forget them."""
    store = CredentialStore(MemoryBlobBackend())

    assert store.load() is None
    store.save("  ghp_secret \n")
    assert store.load() == "ghp_secret"
    store.save("   ")
    assert store.load() is None
    store.save("ghp_other")
    store.clear()
    assert store.load() is None


def test_normalize_query() -> None:
    """Keys are trimmed and lowercased only."""
    assert normalize_query(" Model  Context ") == "model  context"
