"""Unit tests for repository slug and GitHub URL helpers."""

from __future__ import annotations

import pytest

from agentdir.common.slug import (
    canonical_github_url,
    parse_repo_slug,
    repo_slug,
    split_github_url,
)


def test_repo_slug_combines_owner_and_name() -> None:
    """repo_slug returns owner/name format."""
    assert repo_slug("langchain-ai", "langchain") == "langchain-ai/langchain"


def test_parse_repo_slug_splits_owner_and_name() -> None:
    """parse_repo_slug returns (owner, name) for valid slugs."""
    assert parse_repo_slug("Significant-Gravitas/Auto-GPT") == (
        "Significant-Gravitas",
        "Auto-GPT",
    )


@pytest.mark.parametrize(
    "slug",
    ["", "/", "invalid", "owner/name/extra", "owner/", "/name", "owner//name"],
)
def test_parse_repo_slug_rejects_invalid_slugs(slug: str) -> None:
    """parse_repo_slug raises ValueError for invalid slugs."""
    with pytest.raises(ValueError, match="Invalid repository slug"):
        parse_repo_slug(slug)


@pytest.mark.parametrize(
    ("url", "expected"),
    [
        pytest.param(
            "https://github.com/ollama/ollama", ("ollama", "ollama"), id="plain"
        ),
        pytest.param(
            "https://www.github.com/a/b/tree/main/src", ("a", "b"), id="www-subpath"
        ),
        pytest.param("github.com/a/b.git", ("a", "b"), id="schemeless-git-suffix"),
        pytest.param("http://GitHub.com/A/B?tab=readme#top", ("A", "B"), id="query"),
        pytest.param("https://github.com/only-owner", None, id="one-segment"),
        pytest.param("https://gitlab.com/a/b", None, id="other-host"),
        pytest.param("   ", None, id="blank"),
    ],
)
def test_split_github_url(url: str, expected: tuple[str, str] | None) -> None:
    """Only GitHub repository URLs split into owner and name."""
    assert split_github_url(url) == expected


def test_canonical_github_url_drops_subpaths() -> None:
    """Canonical URLs keep exactly the owner and repository segments."""
    assert (
        canonical_github_url("https://github.com/reworkd/AgentGPT/issues/12")
        == "https://github.com/reworkd/AgentGPT"
    )
    assert canonical_github_url("https://example.com/a/b") is None
