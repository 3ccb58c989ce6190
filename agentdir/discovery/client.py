"""GitHub search client used as the directory's discovery provider."""

from __future__ import annotations

import dataclasses
import os
import typing as typ

import httpx

from agentdir.directory.models import (
    UNKNOWN,
    RepositorySummary,
    coerce_count,
    coerce_topics,
)

from .errors import DiscoveryAPIError, DiscoveryConfigError, DiscoveryResponseShapeError


_DEFAULT_ENDPOINT = "https://api.github.com/search/repositories"
_DEFAULT_TIMEOUT_S = 20.0
_DEFAULT_USER_AGENT = "agentdir/0.1"


class DiscoveryProvider(typ.Protocol):
    """Interface for services that find candidate repositories."""

    async def search(
        self, query: str, credential: str | None = None
    ) -> list[RepositorySummary]:
        """Return ranked summaries for ``query``.

        A missing credential is permitted and yields a smaller,
        rate-limited result set rather than an error.
        """
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class GitHubSearchConfig:
    """Configuration for the GitHub REST search client."""

    token: str | None = None
    endpoint: str = _DEFAULT_ENDPOINT
    timeout_s: float = _DEFAULT_TIMEOUT_S
    user_agent: str = _DEFAULT_USER_AGENT
    per_page: int = 100

    @classmethod
    def from_env(cls) -> GitHubSearchConfig:
        """Build configuration from ``AGENTDIR_GITHUB_*`` variables.

        ``AGENTDIR_GITHUB_TOKEN`` is optional; ``AGENTDIR_GITHUB_TIMEOUT_S``
        must be a positive number when set.
        """
        token = os.environ.get("AGENTDIR_GITHUB_TOKEN", "").strip() or None
        raw_timeout = os.environ.get("AGENTDIR_GITHUB_TIMEOUT_S", "").strip()
        timeout_s = _DEFAULT_TIMEOUT_S
        if raw_timeout:
            try:
                timeout_s = float(raw_timeout)
            except ValueError as exc:
                raise DiscoveryConfigError.invalid_timeout(raw_timeout) from exc
            if timeout_s <= 0:
                raise DiscoveryConfigError.invalid_timeout(raw_timeout)
        endpoint = os.environ.get("AGENTDIR_GITHUB_ENDPOINT", "").strip()
        user_agent = os.environ.get("AGENTDIR_GITHUB_USER_AGENT", "").strip()
        return cls(
            token=token,
            endpoint=endpoint or _DEFAULT_ENDPOINT,
            timeout_s=timeout_s,
            user_agent=user_agent or _DEFAULT_USER_AGENT,
        )


_HTTP_ERROR_STATUS_THRESHOLD = 400
_SHORT_TERM_LENGTH = 2


def build_search_query(query: str) -> str:
    """Return the GitHub search expression for a free-text query.

    Words of two characters or fewer are dropped before the qualifier is
    appended.

    >>> build_search_query("AI Agent MCP")
    'Agent MCP in:name,description,readme'

    """
    terms = [term for term in query.split() if len(term) > _SHORT_TERM_LENGTH]
    if not terms:
        return ""
    return f"{' '.join(terms)} in:name,description,readme"


def _text(value: object, default: str = "") -> str:
    return value.strip() if isinstance(value, str) and value.strip() else default


def _license_id(raw: object) -> str:
    if not isinstance(raw, dict):
        return UNKNOWN
    spdx = raw.get("spdx_id")
    if isinstance(spdx, str) and spdx.strip() and spdx != "NOASSERTION":
        return spdx.strip()
    return _text(raw.get("name"), UNKNOWN)


def summary_from_item(item: dict[str, typ.Any]) -> RepositorySummary | None:
    """Convert one search API item into a summary, or ``None`` if unusable."""
    url = item.get("html_url")
    name = item.get("name")
    owner = item.get("owner")
    login = owner.get("login") if isinstance(owner, dict) else None
    if not isinstance(url, str) or not isinstance(name, str) or not url.strip():
        return None

    return RepositorySummary(
        url=url.strip(),
        name=name.strip(),
        owner=login.strip() if isinstance(login, str) else "",
        description=_text(item.get("description")),
        stars=coerce_count(item.get("stargazers_count")),
        forks=coerce_count(item.get("forks_count")),
        topics=coerce_topics(item.get("topics")),
        language=_text(item.get("language"), UNKNOWN),
        license=_license_id(item.get("license")),
        updated=_text(item.get("updated_at")),
    )


def _parse_items(payload: object) -> list[dict[str, typ.Any]]:
    if not isinstance(payload, dict):
        raise DiscoveryResponseShapeError.missing("response")
    items = payload.get("items")
    if not isinstance(items, list):
        raise DiscoveryResponseShapeError.missing("items")
    return [item for item in items if isinstance(item, dict)]


class GitHubSearchClient:
    """GitHub REST implementation of :class:`DiscoveryProvider`."""

    def __init__(
        self,
        config: GitHubSearchConfig | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialise the client, creating an HTTP client when none is given."""
        self._config = config or GitHubSearchConfig()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self._config.timeout_s,
            headers={
                "User-Agent": self._config.user_agent,
                "Accept": "application/vnd.github+json",
            },
        )

    async def aclose(self) -> None:
        """Close any owned HTTP resources."""
        if self._owns_client:
            await self._client.aclose()

    def _headers(self, credential: str | None) -> dict[str, str]:
        token = (credential or "").strip() or self._config.token
        if not token:
            return {}
        return {"Authorization": f"Bearer {token}"}

    async def search(
        self, query: str, credential: str | None = None
    ) -> list[RepositorySummary]:
        """Search GitHub repositories ranked by stars."""
        expression = build_search_query(query)
        if not expression:
            return []

        try:
            response = await self._client.get(
                self._config.endpoint,
                params={
                    "q": expression,
                    "sort": "stars",
                    "order": "desc",
                    "per_page": self._config.per_page,
                },
                headers=self._headers(credential),
            )
        except httpx.TransportError as exc:
            raise DiscoveryAPIError.transport(exc) from exc

        if response.status_code >= _HTTP_ERROR_STATUS_THRESHOLD:
            raise DiscoveryAPIError.http_error(response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise DiscoveryResponseShapeError.missing("response") from exc

        summaries = (summary_from_item(item) for item in _parse_items(payload))
        return [summary for summary in summaries if summary is not None]
