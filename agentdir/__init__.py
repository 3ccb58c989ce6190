"""agentdir: a tiered directory of AI agent and MCP repositories.

The package discovers candidate repositories on GitHub, classifies them for
relevance, and reconciles the resulting records across a durable SQL store,
a local JSON cache, and a bundled seed dataset.
"""

from __future__ import annotations

__version__ = "0.1.0"
