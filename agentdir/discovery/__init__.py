"""Discovery of agent and MCP repositories from an external search provider."""

from agentdir.discovery.client import (
    DiscoveryProvider,
    GitHubSearchClient,
    GitHubSearchConfig,
    build_search_query,
    summary_from_item,
)
from agentdir.discovery.errors import (
    DiscoveryAPIError,
    DiscoveryConfigError,
    DiscoveryError,
    DiscoveryResponseShapeError,
)
from agentdir.discovery.relevance import (
    AGENT_KEYWORDS,
    DEFAULT_POLICY,
    MCP_KEYWORDS,
    RelevancePolicy,
    is_relevant,
    top_projects,
)
from agentdir.discovery.service import (
    DEFAULT_SEARCH_TERMS,
    DiscoveryOptions,
    DiscoveryService,
)

__all__ = [
    "AGENT_KEYWORDS",
    "DEFAULT_POLICY",
    "DEFAULT_SEARCH_TERMS",
    "MCP_KEYWORDS",
    "DiscoveryAPIError",
    "DiscoveryConfigError",
    "DiscoveryError",
    "DiscoveryOptions",
    "DiscoveryProvider",
    "DiscoveryResponseShapeError",
    "DiscoveryService",
    "GitHubSearchClient",
    "GitHubSearchConfig",
    "RelevancePolicy",
    "build_search_query",
    "is_relevant",
    "summary_from_item",
    "top_projects",
]
