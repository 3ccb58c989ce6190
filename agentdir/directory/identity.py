"""Identity keys and duplicate filtering for directory records.

Two records refer to the same repository when their normalised URLs match
or when their case-insensitive ``owner/name`` pairs match; either is
sufficient. GitHub URLs are canonicalised to ``github.com/<owner>/<repo>``
so issue links, trailing slashes and case differences collapse together.
"""

from __future__ import annotations

import dataclasses
import typing as typ
from urllib.parse import urlsplit

from agentdir.common.slug import GITHUB_HOST

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_MISSING = object()


class Identifiable(typ.Protocol):
    """Fields that carry a repository's identity."""

    @property
    def url(self) -> str: ...

    @property
    def owner(self) -> str: ...

    @property
    def name(self) -> str: ...


@dataclasses.dataclass(frozen=True, slots=True)
class IdentityKey:
    """Normalised identity of a record.

    Attributes
    ----------
    url_key
        Lowercased, trimmed URL; GitHub URLs are reduced to
        ``github.com/<owner>/<repo>``.
    owner_repo_key
        ``owner/name`` lowercased, or ``None`` when either part is missing.

    """

    url_key: str
    owner_repo_key: str | None


def _canonical_url_key(url: str) -> str:
    lowered = url.strip().lower()
    if not lowered:
        return ""

    parsed = urlsplit(lowered if "://" in lowered else f"//{lowered}")
    host = parsed.hostname or ""
    if host.startswith("www."):
        host = host[len("www.") :]
    if host != GITHUB_HOST:
        return lowered

    segments = [segment for segment in parsed.path.split("/") if segment]
    if len(segments) < 2:  # noqa: PLR2004 - owner and repository segments
        return lowered
    return f"{host}/{segments[0]}/{segments[1]}"


def _owner_repo_key(owner: object, name: object) -> str | None:
    if not isinstance(owner, str) or not isinstance(name, str):
        return None
    owner_part = owner.strip().lower()
    name_part = name.strip().lower()
    if not owner_part or not name_part:
        return None
    return f"{owner_part}/{name_part}"


def normalize_identity(record: Identifiable) -> IdentityKey:
    """Return the identity key for ``record``.

    Examples
    --------
    >>> from agentdir.directory.models import RepositoryRecord
    >>> key = normalize_identity(
    ...     RepositoryRecord(url="https://github.com/Foo/Bar/issues/9", name="Bar")
    ... )
    >>> key.url_key
    'github.com/foo/bar'

    """
    url = getattr(record, "url", "")
    return IdentityKey(
        url_key=_canonical_url_key(url if isinstance(url, str) else ""),
        owner_repo_key=_owner_repo_key(
            getattr(record, "owner", None), getattr(record, "name", None)
        ),
    )


@dataclasses.dataclass(slots=True)
class IdentityIndex:
    """Mutable set of identity keys used for membership tests."""

    url_keys: set[str] = dataclasses.field(default_factory=set)
    owner_repo_keys: set[str] = dataclasses.field(default_factory=set)

    @classmethod
    def from_records(
        cls, records: cabc.Iterable[Identifiable]
    ) -> IdentityIndex:
        """Index every record that carries a usable URL."""
        index = cls()
        for record in records:
            if _url_state(record) == "present":
                index.add(normalize_identity(record))
        return index

    def add(self, key: IdentityKey) -> None:
        """Record ``key`` as seen."""
        if key.url_key:
            self.url_keys.add(key.url_key)
        if key.owner_repo_key is not None:
            self.owner_repo_keys.add(key.owner_repo_key)

    def __contains__(self, key: object) -> bool:
        """Return True when either component of ``key`` has been seen."""
        if not isinstance(key, IdentityKey):
            return False
        if key.url_key and key.url_key in self.url_keys:
            return True
        return (
            key.owner_repo_key is not None
            and key.owner_repo_key in self.owner_repo_keys
        )

    def __len__(self) -> int:
        """Return the number of distinct URL keys indexed."""
        return len(self.url_keys)


def _url_state(record: object) -> typ.Literal["absent", "empty", "present"]:
    # Foreign objects without a url attribute pass through untouched.
    url = getattr(record, "url", _MISSING)
    if url is _MISSING:
        return "absent"
    if not isinstance(url, str) or not url.strip():
        return "empty"
    return "present"


def dedupe[R: Identifiable](records: cabc.Iterable[R]) -> list[R]:
    """Drop records whose identity matches one already kept.

    A single left-to-right pass: first occurrence wins and survivors keep
    their relative order. Records with an empty URL are dropped.

    >>> from agentdir.directory.models import RepositoryRecord
    >>> a = RepositoryRecord(url="https://github.com/a/b", name="b", owner="a")
    >>> b = RepositoryRecord(url="https://github.com/A/B/", name="B", owner="A")
    >>> dedupe([a, b]) == [a]
    True

    """
    seen = IdentityIndex()
    survivors: list[R] = []
    for record in records:
        state = _url_state(record)
        if state == "absent":
            survivors.append(record)
            continue
        if state == "empty":
            continue

        key = normalize_identity(record)
        if key in seen:
            continue
        seen.add(key)
        survivors.append(record)
    return survivors


def dedupe_against_existing[R: Identifiable](
    new_records: cabc.Iterable[R],
    existing_records: cabc.Iterable[Identifiable] | IdentityIndex,
) -> list[R]:
    """Keep new records whose identity is absent from ``existing_records``.

    Only the existing set is consulted; duplicates among ``new_records``
    themselves all survive, so callers that need a unique batch must also
    call :func:`dedupe`.
    """
    index = (
        existing_records
        if isinstance(existing_records, IdentityIndex)
        else IdentityIndex.from_records(existing_records)
    )
    survivors: list[R] = []
    for record in new_records:
        state = _url_state(record)
        if state == "empty":
            continue
        if state == "present" and normalize_identity(record) in index:
            continue
        survivors.append(record)
    return survivors
