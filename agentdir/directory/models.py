"""Typed directory entries and their boundary conversions.

``RepositorySummary`` is what the discovery provider hands back;
``RepositoryRecord`` is the canonical directory entry stored in every tier.
Loose shapes (database rows, persisted JSON blobs, GitHub payloads) are
converted into these structs as soon as they cross into the package.
"""

from __future__ import annotations

import typing as typ
import uuid

import msgspec

from agentdir.common.slug import repo_slug, split_github_url
from agentdir.common.time import utcnow_iso

UNKNOWN = "Unknown"

# Columns a fully provisioned durable store carries, in display order.
RECORD_FIELDS: tuple[str, ...] = (
    "id",
    "name",
    "description",
    "stars",
    "forks",
    "url",
    "owner",
    "avatar",
    "language",
    "updated",
    "topics",
    "license",
)


class RepositorySummary(msgspec.Struct, kw_only=True, frozen=True):
    """Candidate repository returned by a discovery provider.

    Attributes
    ----------
    url : str
        Repository URL as reported by the provider.
    name : str
        Repository name.
    owner : str
        Owning user or organisation login.
    description : str
        Free-text description, empty when the provider has none.
    stars, forks : int
        Popularity counters, never negative.
    topics : tuple[str, ...]
        Lowercase topic tags.
    language : str
        Primary programming language, ``"Unknown"`` when absent.
    license : str
        SPDX identifier or ``"Unknown"``.
    updated : str
        ISO-8601 timestamp of the last upstream update.
    natural_language : str | None
        Optional human-language hint for the project's prose.

    """

    url: str
    name: str
    owner: str = ""
    description: str = ""
    stars: int = 0
    forks: int = 0
    topics: tuple[str, ...] = ()
    language: str = UNKNOWN
    license: str = UNKNOWN
    updated: str = ""
    natural_language: str | None = None


class RepositoryRecord(msgspec.Struct, kw_only=True, frozen=True):
    """Directory entry shared by the durable store, local cache and seed data.

    Records are replaced, never mutated: a fresher record with the same
    identity supersedes the old one. ``is_loading`` marks transient
    placeholders and is never persisted.
    """

    url: str
    name: str
    id: str = ""
    owner: str = ""
    description: str = ""
    stars: int = 0
    forks: int = 0
    topics: tuple[str, ...] = ()
    language: str = UNKNOWN
    license: str = UNKNOWN
    updated: str = ""
    avatar: str = ""
    is_loading: bool = False

    @property
    def slug(self) -> str:
        """Return ``owner/name`` as shown in the directory."""
        return repo_slug(self.owner, self.name)

    def to_row(self) -> dict[str, typ.Any]:
        """Return the persisted representation (no transient fields)."""
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "stars": self.stars,
            "forks": self.forks,
            "url": self.url,
            "owner": self.owner,
            "avatar": self.avatar,
            "language": self.language,
            "updated": self.updated,
            "topics": list(self.topics),
            "license": self.license,
        }


def coerce_count(value: object) -> int:
    """Coerce a star/fork counter to a non-negative integer.

    >>> coerce_count(None), coerce_count("12"), coerce_count(-3)
    (0, 12, 0)

    """
    if isinstance(value, bool):
        return 0
    if isinstance(value, int):
        return max(value, 0)
    if isinstance(value, float):
        return max(int(value), 0)
    if isinstance(value, str):
        try:
            return max(int(value.strip()), 0)
        except ValueError:
            return 0
    return 0


def coerce_topics(value: object) -> tuple[str, ...]:
    """Return lowercase, stripped, order-preserving unique topic tags."""
    if isinstance(value, str):
        candidates: typ.Iterable[object] = value.split(",")
    elif isinstance(value, list | tuple | set | frozenset):
        candidates = value
    else:
        return ()

    cleaned = (
        candidate.strip().lower()
        for candidate in candidates
        if isinstance(candidate, str) and candidate.strip()
    )
    return tuple(dict.fromkeys(cleaned))


def _text(value: object, default: str = "") -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def avatar_for(owner: str) -> str:
    """Derive the avatar URL GitHub serves for an owner login."""
    if not owner:
        return ""
    return f"https://github.com/{owner}.png"


def record_from_mapping(mapping: typ.Mapping[str, typ.Any]) -> RepositoryRecord:
    """Convert a loose mapping (row, blob entry, form payload) to a record.

    Missing metadata falls back to sentinels, counters coerce to
    non-negative integers, and ``owner``/``name`` are derived from a GitHub
    ``url`` when absent. Both ``is_loading`` and the legacy ``isLoading``
    spelling are honoured so placeholders can be promoted later.
    """
    url = _text(mapping.get("url"))
    owner = _text(mapping.get("owner"))
    name = _text(mapping.get("name"))
    if url and (not owner or not name):
        split = split_github_url(url)
        if split is not None:
            owner = owner or split[0]
            name = name or split[1]

    raw_id = mapping.get("id")
    loading = mapping.get("is_loading", mapping.get("isLoading", False))
    return RepositoryRecord(
        id=str(raw_id) if raw_id not in (None, "") else "",
        url=url,
        name=name,
        owner=owner,
        description=_text(mapping.get("description")),
        stars=coerce_count(mapping.get("stars")),
        forks=coerce_count(mapping.get("forks")),
        topics=coerce_topics(mapping.get("topics")),
        language=_text(mapping.get("language"), UNKNOWN),
        license=_text(mapping.get("license"), UNKNOWN),
        updated=_text(mapping.get("updated")),
        avatar=_text(mapping.get("avatar")),
        is_loading=bool(loading),
    )


def summary_to_record(summary: RepositorySummary) -> RepositoryRecord:
    """Convert a discovery summary into a directory record."""
    return RepositoryRecord(
        url=summary.url.strip(),
        name=summary.name.strip(),
        owner=summary.owner.strip(),
        description=summary.description.strip(),
        stars=coerce_count(summary.stars),
        forks=coerce_count(summary.forks),
        topics=coerce_topics(summary.topics),
        language=_text(summary.language, UNKNOWN),
        license=_text(summary.license, UNKNOWN),
        updated=summary.updated or utcnow_iso(),
        avatar=avatar_for(summary.owner.strip()),
    )


def is_writable(record: RepositoryRecord) -> bool:
    """Return True when a record carries the fields a write requires."""
    return bool(record.url.strip()) and bool(record.name.strip())


def promote(record: RepositoryRecord) -> RepositoryRecord:
    """Return the persistent form of ``record``.

    Applies the same coercion as :func:`record_from_mapping`, assigns an
    ``id`` when missing, clears ``is_loading`` and derives the avatar when
    absent. The input record is left untouched.

    >>> promoted = promote(
    ...     RepositoryRecord(url="u", name="n", stars=-5, topics=("MCP",))
    ... )
    >>> promoted.stars, promoted.topics, promoted.language
    (0, ('mcp',), 'Unknown')

    """
    owner = _text(record.owner)
    return msgspec.structs.replace(
        record,
        id=record.id.strip() or str(uuid.uuid4()),
        url=_text(record.url),
        name=_text(record.name),
        owner=owner,
        description=_text(record.description),
        stars=coerce_count(record.stars),
        forks=coerce_count(record.forks),
        topics=coerce_topics(record.topics),
        language=_text(record.language, UNKNOWN),
        license=_text(record.license, UNKNOWN),
        updated=_text(record.updated),
        avatar=_text(record.avatar) or avatar_for(owner),
        is_loading=False,
    )
