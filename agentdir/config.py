"""Runtime configuration for the directory.

Usage
-----
Create a configuration with defaults:

>>> config = DirectoryConfig()
>>> config.batch_size
50

Or load it from environment variables:

>>> import os
>>> os.environ["AGENTDIR_BATCH_SIZE"] = "20"
>>> DirectoryConfig.from_env().batch_size
20
>>> del os.environ["AGENTDIR_BATCH_SIZE"]

"""

from __future__ import annotations

import dataclasses as dc
import os
from pathlib import Path

from agentdir.store.storage import DEFAULT_TABLE_NAME

_DEFAULT_STATE_DIR = Path("~/.agentdir")


@dc.dataclass(frozen=True, slots=True)
class DirectoryConfig:
    """Configuration for the directory tiers.

    Attributes
    ----------
    database_url
        SQLAlchemy URL of the durable store. When ``None`` the directory
        runs cache-only.
    state_dir
        Directory holding the local record, query and credential blobs.
    table_name
        Durable store table holding directory rows.
    batch_size
        Records per insert chunk. Default is 50.
    batch_pause_ms
        Pause between insert chunks in milliseconds. Default is 100.
    log_level
        Raw log level name; normalised when logging is configured.

    """

    database_url: str | None = None
    state_dir: Path = _DEFAULT_STATE_DIR
    table_name: str = DEFAULT_TABLE_NAME
    batch_size: int = 50
    batch_pause_ms: int = 100
    log_level: str = "INFO"

    @property
    def batch_pause_s(self) -> float:
        """Return the inter-chunk pause in seconds."""
        return self.batch_pause_ms / 1000

    @staticmethod
    def _parse_int(env_var: str, default: int, *, minimum: int) -> int:
        """Read an integer env var of at least ``minimum``, else the default."""
        raw = os.environ.get(env_var, "")
        if not raw.strip():
            return default
        try:
            value = int(raw)
        except ValueError as exc:
            msg = f"{env_var} must be an integer, got: {raw!r}"
            raise ValueError(msg) from exc
        if value < minimum:
            msg = f"{env_var} must be at least {minimum}, got: {value}"
            raise ValueError(msg)
        return value

    @classmethod
    def from_env(cls) -> DirectoryConfig:
        """Create configuration from environment variables.

        Reads the following environment variables:

        - ``AGENTDIR_DATABASE_URL``: optional durable store URL.
        - ``AGENTDIR_STATE_DIR``: local state directory
          (default ``~/.agentdir``).
        - ``AGENTDIR_TABLE``: durable table name (default ``projects``).
        - ``AGENTDIR_BATCH_SIZE``: positive integer.
        - ``AGENTDIR_BATCH_PAUSE_MS``: non-negative integer.
        - ``AGENTDIR_LOG_LEVEL``: log level name.

        Raises
        ------
        ValueError
            If a numeric variable is not an integer in range.

        """
        database_url = os.environ.get("AGENTDIR_DATABASE_URL", "").strip() or None
        raw_state_dir = os.environ.get("AGENTDIR_STATE_DIR", "").strip()
        state_dir = Path(raw_state_dir) if raw_state_dir else _DEFAULT_STATE_DIR
        table_name = (
            os.environ.get("AGENTDIR_TABLE", "").strip() or DEFAULT_TABLE_NAME
        )

        return cls(
            database_url=database_url,
            state_dir=state_dir.expanduser(),
            table_name=table_name,
            batch_size=cls._parse_int("AGENTDIR_BATCH_SIZE", 50, minimum=1),
            batch_pause_ms=cls._parse_int("AGENTDIR_BATCH_PAUSE_MS", 100, minimum=0),
            log_level=os.environ.get("AGENTDIR_LOG_LEVEL", "").strip() or "INFO",
        )
