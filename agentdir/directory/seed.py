"""Bundled seed dataset used when every storage tier is empty.

The list is versioned so an operator can tell which snapshot bootstrapped a
deployment; bump ``SEED_VERSION`` whenever entries change.
"""

from __future__ import annotations

from agentdir.common.slug import parse_repo_slug
from agentdir.directory.models import RepositoryRecord, avatar_for

SEED_VERSION = "2024.05.1"


def _seed(  # noqa: PLR0913 - mirrors the record columns one-to-one
    index: int,
    slug: str,
    description: str,
    *,
    stars: int,
    forks: int,
    language: str,
    updated: str,
    topics: tuple[str, ...],
    license_id: str,
) -> RepositoryRecord:
    owner, name = parse_repo_slug(slug)
    return RepositoryRecord(
        id=f"seed-{index:02d}",
        url=f"https://github.com/{slug}",
        name=name,
        owner=owner,
        description=description,
        stars=stars,
        forks=forks,
        topics=topics,
        language=language,
        license=license_id,
        updated=updated,
        avatar=avatar_for(owner),
    )


SEED_RECORDS: tuple[RepositoryRecord, ...] = (
    _seed(
        1,
        "Significant-Gravitas/Auto-GPT",
        "An experimental open-source autonomous AI agent that can perform "
        "tasks without human intervention",
        stars=153000,
        forks=39200,
        language="Python",
        updated="2024-05-15",
        topics=("ai", "agents", "autonomous", "gpt", "openai"),
        license_id="MIT",
    ),
    _seed(
        2,
        "yoheinakajima/babyagi",
        "An AI-powered task management system that uses the OpenAI API and "
        "vector databases",
        stars=17700,
        forks=2700,
        language="Python",
        updated="2024-04-20",
        topics=("ai", "agi", "autonomous-agents", "python"),
        license_id="MIT",
    ),
    _seed(
        3,
        "reworkd/AgentGPT",
        "Deploy autonomous AI Agents on your browser",
        stars=28100,
        forks=5100,
        language="TypeScript",
        updated="2024-05-10",
        topics=("ai", "web", "gpt", "agents", "autonomous"),
        license_id="GPL-3.0",
    ),
    _seed(
        4,
        "langchain-ai/langchain",
        "Building applications with LLMs through composability",
        stars=77000,
        forks=12200,
        language="Python",
        updated="2024-05-18",
        topics=("llm", "ai", "language-model", "agents"),
        license_id="MIT",
    ),
    _seed(
        5,
        "OpenDevin/OpenDevin",
        "Self-improving AI software engineer",
        stars=31700,
        forks=3500,
        language="Python",
        updated="2024-05-17",
        topics=("ai-agent", "software-engineering", "autonomous"),
        license_id="Apache-2.0",
    ),
    _seed(
        6,
        "joaomdmoura/crewAI",
        "Framework for orchestrating role-playing autonomous AI agents",
        stars=19800,
        forks=2300,
        language="Python",
        updated="2024-05-12",
        topics=("ai", "agents", "collaborative", "framework"),
        license_id="MIT",
    ),
    _seed(
        7,
        "TransformerOptimus/SuperAGI",
        "An open-source autonomous AI agent framework",
        stars=13700,
        forks=1700,
        language="Python",
        updated="2024-05-11",
        topics=("agi", "autonomous-agents", "framework"),
        license_id="MIT",
    ),
    _seed(
        8,
        "deepset-ai/haystack",
        "LLM orchestration framework for building NLP applications",
        stars=13900,
        forks=1800,
        language="Python",
        updated="2024-05-19",
        topics=("llm", "rag", "agents", "nlp"),
        license_id="Apache-2.0",
    ),
    _seed(
        9,
        "run-llama/llama_index",
        "Data framework for building LLM applications with complex data",
        stars=33600,
        forks=4100,
        language="Python",
        updated="2024-05-21",
        topics=("llm", "rag", "ai", "data-framework"),
        license_id="MIT",
    ),
    _seed(
        10,
        "geekan/MetaGPT",
        "The Multi-Agent Framework: Given one line requirement, generate PRD, "
        "design, tasks, and repo",
        stars=35200,
        forks=4200,
        language="Python",
        updated="2024-05-19",
        topics=("agents", "multi-agent", "ai", "llm"),
        license_id="MIT",
    ),
    _seed(
        11,
        "OpenBMB/XAgent",
        "An Autonomous AI Agent for complex task-solving with tool-use and "
        "human feedback",
        stars=11200,
        forks=1300,
        language="Python",
        updated="2024-05-01",
        topics=("ai-agent", "autonomous", "tool-use", "llm"),
        license_id="Apache-2.0",
    ),
    _seed(
        12,
        "OpenBMB/ChatDev",
        "Create customized software using natural language",
        stars=20200,
        forks=2100,
        language="Python",
        updated="2024-04-25",
        topics=("software-development", "llm", "ai-agent"),
        license_id="Apache-2.0",
    ),
    _seed(
        13,
        "mlc-ai/mlc-llm",
        "Run large language models locally on phones, laptops, and edge devices",
        stars=14200,
        forks=1600,
        language="C++",
        updated="2024-05-16",
        topics=("llm", "edge-computing", "optimization"),
        license_id="Apache-2.0",
    ),
    _seed(
        14,
        "ggerganov/llama.cpp",
        "Port of Facebook's LLaMA model in C/C++",
        stars=51300,
        forks=7800,
        language="C++",
        updated="2024-05-21",
        topics=("llm", "ai", "language-model", "cpp"),
        license_id="MIT",
    ),
    _seed(
        15,
        "ollama/ollama",
        "Get up and running with Llama 2, Mistral, and other large language "
        "models locally",
        stars=49200,
        forks=3600,
        language="Go",
        updated="2024-05-21",
        topics=("llm", "local", "language-model", "inference"),
        license_id="MIT",
    ),
)


def seed_records() -> list[RepositoryRecord]:
    """Return a fresh list of the seed records."""
    return list(SEED_RECORDS)
