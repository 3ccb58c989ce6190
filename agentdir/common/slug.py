"""Repository slug utilities.

Repository slugs are GitHub identifiers in ``owner/name`` format. They are not
filesystem paths, even though they use ``/`` as a separator, so they should be
parsed using these helpers rather than ``pathlib``.
"""

from __future__ import annotations

from urllib.parse import urlsplit

GITHUB_HOST = "github.com"


def repo_slug(owner: str, name: str) -> str:
    """Build a repository slug from owner and name.

    Examples
    --------
    >>> repo_slug("langchain-ai", "langchain")
    'langchain-ai/langchain'

    """
    return f"{owner}/{name}"


def parse_repo_slug(slug: str) -> tuple[str, str]:
    """Parse a repository slug into owner and name.

    Raises
    ------
    ValueError
        If the slug is not in ``owner/name`` format.

    Examples
    --------
    >>> parse_repo_slug("ollama/ollama")
    ('ollama', 'ollama')

    """
    if slug.count("/") != 1:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    owner, name = slug.split("/")
    if not owner or not name:
        msg = f"Invalid repository slug: expected 'owner/name', got {slug!r}"
        raise ValueError(msg)

    return owner, name


def split_github_url(url: str) -> tuple[str, str] | None:
    """Return ``(owner, name)`` for a GitHub repository URL, else ``None``.

    Only the first two path segments are considered, so issue, tree and
    blob links resolve to their repository. A trailing ``.git`` is dropped.

    Examples
    --------
    >>> split_github_url("https://github.com/ollama/ollama/issues/9")
    ('ollama', 'ollama')
    >>> split_github_url("https://gitlab.com/a/b") is None
    True

    """
    text = url.strip()
    if not text:
        return None
    if "://" not in text:
        text = f"https://{text}"

    parts = urlsplit(text)
    host = (parts.hostname or "").lower()
    if host not in {GITHUB_HOST, f"www.{GITHUB_HOST}"}:
        return None

    segments = [segment for segment in parts.path.split("/") if segment]
    if len(segments) < 2:  # noqa: PLR2004 - owner and repository segments
        return None

    owner, name = segments[0], segments[1]
    name = name.removesuffix(".git")
    if not name:
        return None
    return owner, name


def canonical_github_url(url: str) -> str | None:
    """Return ``https://github.com/<owner>/<name>`` for a GitHub URL.

    Examples
    --------
    >>> canonical_github_url("github.com/reworkd/AgentGPT/tree/main")
    'https://github.com/reworkd/AgentGPT'

    """
    split = split_github_url(url)
    if split is None:
        return None
    return f"https://{GITHUB_HOST}/{repo_slug(*split)}"
