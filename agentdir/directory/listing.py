"""Filtering, sorting and pagination over directory records.

The directory view narrows a record snapshot by language, license and free
text, orders it by a popularity or freshness column, then slices a page.

Example:
-------
Fetch the second page of Python projects ordered by forks::

    options = DirectoryListOptions(
        language="Python",
        sort="forks",
        limit=12,
        offset=12,
    )
    page = list_records(records, options)

"""

from __future__ import annotations

import dataclasses
import typing as typ

from agentdir.directory.errors import NegativePaginationError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from agentdir.directory.models import RepositoryRecord

type SortOption = typ.Literal["stars", "forks", "updated"]


@dataclasses.dataclass(frozen=True, slots=True)
class DirectoryListOptions:
    """Directory listing options.

    Attributes
    ----------
    language
        Type: ``str | None``. Default: ``None``.

        Case-insensitive exact match on the programming language.
    license
        Type: ``str | None``. Default: ``None``.

        Case-insensitive exact match on the license identifier.
    query
        Type: ``str``. Default: ``""``.

        Free text matched as a substring of name, description, language,
        owner or any topic. Blank text matches everything.
    sort
        Type: ``SortOption``. Default: ``"stars"``.

        Column used for descending ordering.
    limit
        Type: ``int | None``. Default: ``None``.

        Optional maximum number of records to return.
    offset
        Type: ``int | None``. Default: ``None``.

        Optional number of ordered records to skip.

    """

    language: str | None = None
    license: str | None = None
    query: str = ""
    sort: SortOption = "stars"
    limit: int | None = None
    offset: int | None = None


def _validate_pagination(options: DirectoryListOptions) -> None:
    if options.limit is not None and options.limit < 0:
        raise NegativePaginationError("limit")

    if options.offset is not None and options.offset < 0:
        raise NegativePaginationError("offset")


def matches_text(record: RepositoryRecord, text: str) -> bool:
    """Return True when ``text`` occurs in the record's searchable fields.

    Matching is a case-insensitive substring test over name, description,
    language and owner; blank text matches every record.
    """
    needle = text.strip().lower()
    if not needle:
        return True
    haystack = (record.name, record.description, record.language, record.owner)
    return any(needle in field.lower() for field in haystack)


def _matches(record: RepositoryRecord, options: DirectoryListOptions) -> bool:
    if options.language and record.language.lower() != options.language.lower():
        return False
    if options.license and record.license.lower() != options.license.lower():
        return False
    if not options.query.strip():
        return True
    return matches_text(record, options.query) or any(
        options.query.strip().lower() in topic for topic in record.topics
    )


def _sort_key(sort: SortOption) -> cabc.Callable[[RepositoryRecord], typ.Any]:
    if sort == "forks":
        return lambda record: record.forks
    if sort == "updated":
        return lambda record: record.updated
    return lambda record: record.stars


def list_records(
    records: cabc.Iterable[RepositoryRecord],
    options: DirectoryListOptions,
) -> list[RepositoryRecord]:
    """Filter, order and paginate ``records``.

    Raises
    ------
    NegativePaginationError
        If limit or offset is negative.

    """
    _validate_pagination(options)
    selected = [record for record in records if _matches(record, options)]
    selected.sort(key=_sort_key(options.sort), reverse=True)

    start = options.offset or 0
    if options.limit is None:
        return selected[start:]
    return selected[start : start + options.limit]
