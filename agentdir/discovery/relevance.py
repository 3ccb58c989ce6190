"""Relevance classification for discovered repositories.

A repository belongs in the directory when its name, description or topics
mention an agent or Model Context Protocol phrase, and its text is English
enough to be useful to the directory's readers. Matching is plain substring
search without tokenisation: the classifier prefers precision, so some
relevant repositories are expected to slip through.
"""

from __future__ import annotations

import dataclasses
import typing as typ

if typ.TYPE_CHECKING:
    import collections.abc as cabc

    from agentdir.directory.models import RepositoryRecord

AGENT_KEYWORDS: tuple[str, ...] = (
    "ai agent",
    "ai-agent",
    "aiagent",
    "llm agent",
    "llm-agent",
    "llmagent",
    "autonomous agent",
    "agent framework",
    "agent-framework",
    "agent orchestration",
    "agent-orchestration",
    "ai assistant",
    "ai-assistant",
    "llm framework",
    "agent system",
    "multi-agent",
    "multiagent",
    "agent communication",
)

MCP_KEYWORDS: tuple[str, ...] = (
    "mcp",
    "model context protocol",
    "context protocol",
    "context orchestration",
    "model orchestration",
    "context handling",
    "agent communication",
    "agent protocol",
    "model context",
    "context window",
    "context framework",
    "agent interoperability",
    "agent communication protocol",
    "model integration",
)

# Inclusive code point ranges whose presence rejects a repository outright.
BLOCKED_RANGES: tuple[tuple[int, int], ...] = (
    (0x4E00, 0x9FFF),  # CJK unified ideographs
    (0x3040, 0x30FF),  # Hiragana and Katakana
    (0xAC00, 0xD7AF),  # Hangul syllables
    (0x0400, 0x04FF),  # Cyrillic
    (0x0600, 0x06FF),  # Arabic
    (0x0900, 0x097F),  # Devanagari
)

# Human-language names only; programming language names never appear here.
BLOCKED_HUMAN_LANGUAGES: frozenset[str] = frozenset(
    {
        "arabic",
        "bulgarian",
        "cantonese",
        "chinese",
        "farsi",
        "hindi",
        "japanese",
        "korean",
        "mandarin",
        "marathi",
        "nepali",
        "persian",
        "russian",
        "ukrainian",
        "urdu",
    }
)


class Classifiable(typ.Protocol):
    """Text fields the classifier reads from summaries and records."""

    @property
    def name(self) -> str: ...

    @property
    def description(self) -> str: ...

    @property
    def topics(self) -> cabc.Sequence[str]: ...

    @property
    def language(self) -> str: ...


def _text_fields(item: Classifiable) -> list[str]:
    fields = [item.name or "", item.description or ""]
    fields.extend(topic for topic in item.topics or () if isinstance(topic, str))
    return fields


def _is_blocked_char(char: str, ranges: tuple[tuple[int, int], ...]) -> bool:
    code = ord(char)
    return any(low <= code <= high for low, high in ranges)


@dataclasses.dataclass(frozen=True, slots=True)
class RelevancePolicy:
    """Compiled relevance heuristic.

    Attributes
    ----------
    agent_keywords, mcp_keywords
        Lowercase phrases; a match from either list accepts the repository.
    blocked_ranges
        Unicode ranges that reject a repository when any character matches.
    blocked_languages
        Lowercase human-language names rejected when reported as the
        project's natural language.
    max_non_ascii_ratio
        Largest tolerated fraction of non-ASCII characters.

    """

    agent_keywords: tuple[str, ...] = AGENT_KEYWORDS
    mcp_keywords: tuple[str, ...] = MCP_KEYWORDS
    blocked_ranges: tuple[tuple[int, int], ...] = BLOCKED_RANGES
    blocked_languages: frozenset[str] = BLOCKED_HUMAN_LANGUAGES
    max_non_ascii_ratio: float = 0.10

    def rejection_reason(self, item: Classifiable) -> str | None:
        """Return why ``item`` is rejected, or ``None`` when it is accepted."""
        fields = _text_fields(item)
        if self._has_blocked_script(fields):
            return "blocked_script"
        if self._non_ascii_ratio(fields) > self.max_non_ascii_ratio:
            return "non_ascii_ratio"
        if self._has_blocked_language(item):
            return "blocked_language"
        if not self.matches_domain(item):
            return "no_keyword"
        return None

    def is_relevant(self, item: Classifiable) -> bool:
        """Return True when ``item`` belongs in the directory."""
        return self.rejection_reason(item) is None

    def matches_domain(self, item: Classifiable) -> bool:
        """Return True when any agent or MCP keyword occurs in the text."""
        combined = " ".join(_text_fields(item)).lower()
        return any(keyword in combined for keyword in self.agent_keywords) or any(
            keyword in combined for keyword in self.mcp_keywords
        )

    def _has_blocked_script(self, fields: list[str]) -> bool:
        return any(
            _is_blocked_char(char, self.blocked_ranges)
            for field in fields
            for char in field
        )

    def _non_ascii_ratio(self, fields: list[str]) -> float:
        combined = " ".join(fields)
        if not combined:
            return 0.0
        non_ascii = sum(1 for char in combined if not char.isascii())
        return non_ascii / len(combined)

    def _has_blocked_language(self, item: Classifiable) -> bool:
        hints = (getattr(item, "natural_language", None), item.language)
        return any(
            isinstance(hint, str) and hint.strip().lower() in self.blocked_languages
            for hint in hints
        )


DEFAULT_POLICY = RelevancePolicy()


def is_relevant(item: Classifiable, policy: RelevancePolicy = DEFAULT_POLICY) -> bool:
    """Return True when ``item`` passes the relevance heuristic.

    >>> from agentdir.directory.models import RepositorySummary
    >>> is_relevant(RepositorySummary(
    ...     url="https://github.com/a/b", name="b",
    ...     description="An autonomous AI agent framework",
    ... ))
    True

    """
    return policy.is_relevant(item)


def top_projects(
    records: cabc.Iterable[RepositoryRecord],
    *,
    limit: int = 10,
    policy: RelevancePolicy = DEFAULT_POLICY,
) -> list[RepositoryRecord]:
    """Return the most starred relevant records, highest first."""
    relevant = [record for record in records if policy.is_relevant(record)]
    relevant.sort(key=lambda record: record.stars, reverse=True)
    return relevant[: max(limit, 0)]
