"""Discovery of candidate repositories across a fixed set of search terms."""

from __future__ import annotations

import dataclasses
import typing as typ

import msgspec

from agentdir.common.slug import canonical_github_url, split_github_url
from agentdir.directory.identity import dedupe
from agentdir.logging import get_logger, log_info, log_warning

from .errors import DiscoveryError
from .relevance import DEFAULT_POLICY, RelevancePolicy

if typ.TYPE_CHECKING:
    from agentdir.directory.models import RepositorySummary

    from .client import DiscoveryProvider

logger = get_logger(__name__)

DEFAULT_SEARCH_TERMS: tuple[str, ...] = (
    "AI Agent",
    "MCP Model Context Protocol",
    "autonomous AI agent framework",
    "Model Context Orchestration agent",
)


@dataclasses.dataclass(frozen=True, slots=True)
class DiscoveryOptions:
    """Tuning for :class:`DiscoveryService`.

    Attributes
    ----------
    search_terms
        Phrases combined with the caller's query, one provider call each.
    max_results
        Upper bound on the number of summaries returned.

    """

    search_terms: tuple[str, ...] = DEFAULT_SEARCH_TERMS
    max_results: int = 100


def _canonicalise(summary: RepositorySummary) -> RepositorySummary | None:
    url = canonical_github_url(summary.url)
    if url is None:
        return None
    owner, name = split_github_url(url) or ("", "")
    return msgspec.structs.replace(
        summary,
        url=url,
        owner=summary.owner or owner,
        name=summary.name or name,
    )


class DiscoveryService:
    """Run a query against the provider and keep relevant GitHub results.

    Each configured search term is combined with the query and sent to the
    provider in turn. URLs are canonicalised to
    ``https://github.com/<owner>/<repo>``; non-GitHub URLs, duplicates and
    irrelevant repositories are dropped, and collection stops once
    ``max_results`` summaries are held.
    """

    def __init__(
        self,
        provider: DiscoveryProvider,
        *,
        options: DiscoveryOptions | None = None,
        policy: RelevancePolicy = DEFAULT_POLICY,
    ) -> None:
        """Configure the service with a provider and relevance policy."""
        self._provider = provider
        self._options = options or DiscoveryOptions()
        self._policy = policy

    async def discover(
        self, query: str, credential: str | None = None
    ) -> list[RepositorySummary]:
        """Return relevant, deduplicated summaries for ``query``.

        Raises
        ------
        DiscoveryError
            If the provider failed for every search term.

        """
        collected: list[RepositorySummary] = []
        failures: list[DiscoveryError] = []
        limit = max(self._options.max_results, 0)

        for term in self._options.search_terms:
            if len(collected) >= limit:
                break
            expression = f"{term} {query}".strip()
            try:
                summaries = await self._provider.search(expression, credential)
            except DiscoveryError as exc:
                log_warning(
                    logger,
                    "Discovery term %r failed: %s",
                    term,
                    exc,
                )
                failures.append(exc)
                continue

            collected = self._accumulate(collected, summaries, limit)

        if failures and len(failures) == len(self._options.search_terms):
            raise failures[-1]

        log_info(
            logger,
            "Discovery for %r kept %d repositories",
            query,
            len(collected),
        )
        return collected

    def _accumulate(
        self,
        collected: list[RepositorySummary],
        summaries: typ.Iterable[RepositorySummary],
        limit: int,
    ) -> list[RepositorySummary]:
        candidates = (_canonicalise(summary) for summary in summaries)
        relevant = [
            summary
            for summary in candidates
            if summary is not None and self._policy.is_relevant(summary)
        ]
        return dedupe([*collected, *relevant])[:limit]
