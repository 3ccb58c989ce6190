"""Directory records, identity rules and the bundled seed dataset.

Usage
-----
Deduplicate a mixed batch of records::

    from agentdir.directory import dedupe, record_from_mapping

    records = [record_from_mapping(row) for row in rows]
    unique = dedupe(records)

"""

from agentdir.directory.errors import (
    DirectoryError,
    InvalidRecordError,
    NegativePaginationError,
)
from agentdir.directory.identity import (
    Identifiable,
    IdentityIndex,
    IdentityKey,
    dedupe,
    dedupe_against_existing,
    normalize_identity,
)
from agentdir.directory.listing import DirectoryListOptions, list_records, matches_text
from agentdir.directory.models import (
    RECORD_FIELDS,
    UNKNOWN,
    RepositoryRecord,
    RepositorySummary,
    is_writable,
    promote,
    record_from_mapping,
    summary_to_record,
)
from agentdir.directory.seed import SEED_RECORDS, SEED_VERSION, seed_records

__all__ = [
    "RECORD_FIELDS",
    "SEED_RECORDS",
    "SEED_VERSION",
    "UNKNOWN",
    "DirectoryError",
    "DirectoryListOptions",
    "Identifiable",
    "IdentityIndex",
    "IdentityKey",
    "InvalidRecordError",
    "NegativePaginationError",
    "RepositoryRecord",
    "RepositorySummary",
    "dedupe",
    "dedupe_against_existing",
    "is_writable",
    "list_records",
    "matches_text",
    "normalize_identity",
    "promote",
    "record_from_mapping",
    "seed_records",
    "summary_to_record",
]
