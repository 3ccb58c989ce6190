"""Durable relational tier of the directory."""

from agentdir.store.adapter import (
    MINIMAL_FIELDS,
    REQUIRED_COLUMNS,
    DurableStoreAdapter,
    SessionFactory,
)
from agentdir.store.storage import (
    DEFAULT_TABLE_NAME,
    Base,
    ProjectRow,
    init_directory_storage,
)

__all__ = [
    "DEFAULT_TABLE_NAME",
    "MINIMAL_FIELDS",
    "REQUIRED_COLUMNS",
    "Base",
    "DurableStoreAdapter",
    "ProjectRow",
    "SessionFactory",
    "init_directory_storage",
]
