"""Unit tests for directory filtering, sorting and pagination."""

from __future__ import annotations

import typing as typ

import pytest

from agentdir.directory import (
    DirectoryListOptions,
    NegativePaginationError,
    list_records,
    matches_text,
)
from tests.helpers.directory_builders import make_record

if typ.TYPE_CHECKING:
    from agentdir.directory.listing import SortOption

_RECORDS = [
    make_record(
        "a", "alpha", stars=5, forks=50, language="Python", updated="2024-01-01"
    ),
    make_record(
        "b", "beta", stars=50, forks=5, language="Rust", updated="2024-03-01"
    ),
    make_record(
        "c",
        "gamma",
        stars=20,
        forks=20,
        language="python",
        license="Apache-2.0",
        topics=("mcp",),
        updated="2024-02-01",
    ),
]


@pytest.mark.parametrize(
    ("sort", "expected"),
    [
        pytest.param("stars", ["beta", "gamma", "alpha"], id="stars"),
        pytest.param("forks", ["alpha", "gamma", "beta"], id="forks"),
        pytest.param("updated", ["beta", "gamma", "alpha"], id="updated"),
    ],
)
def test_list_records_sorts_descending(sort: str, expected: list[str]) -> None:
    """Every sort column orders highest first."""
    options = DirectoryListOptions(sort=typ.cast("SortOption", sort))

    page = list_records(_RECORDS, options)

    assert [record.name for record in page] == expected


def test_list_records_filters_language_case_insensitively() -> None:
    """Language filters compare without case."""
    page = list_records(_RECORDS, DirectoryListOptions(language="PYTHON"))

    assert [record.name for record in page] == ["gamma", "alpha"]


def test_list_records_filters_license_and_topic_text() -> None:
    """Free text also matches topics; license filters are exact."""
    by_topic = list_records(_RECORDS, DirectoryListOptions(query="MCP"))
    by_license = list_records(_RECORDS, DirectoryListOptions(license="apache-2.0"))

    assert [record.name for record in by_topic] == ["gamma"]
    assert [record.name for record in by_license] == ["gamma"]


def test_list_records_paginates_after_sorting() -> None:
    """Offset and limit slice the ordered result."""
    page = list_records(_RECORDS, DirectoryListOptions(limit=1, offset=1))

    assert [record.name for record in page] == ["gamma"]


@pytest.mark.parametrize(
    ("options", "name"),
    [
        pytest.param(DirectoryListOptions(limit=-1), "limit", id="limit"),
        pytest.param(DirectoryListOptions(offset=-5), "offset", id="offset"),
    ],
)
def test_list_records_rejects_negative_pagination(
    options: DirectoryListOptions, name: str
) -> None:
    """Negative pagination raises an error that is also a ValueError."""
    with pytest.raises(NegativePaginationError, match=name):
        list_records(_RECORDS, options)

    with pytest.raises(ValueError, match="non-negative"):
        list_records(_RECORDS, options)


def test_matches_text_covers_searchable_fields() -> None:
    """Name, description, language and owner are searched; blank matches all."""
    record = make_record("Acme", "Rocket", description="Launch agents", language="Go")

    assert matches_text(record, "rock")
    assert matches_text(record, "LAUNCH")
    assert matches_text(record, "go")
    assert matches_text(record, "acme")
    assert matches_text(record, "   ")
    assert not matches_text(record, "python")
