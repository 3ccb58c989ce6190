"""JSON encoding of record sets for local blobs."""

from __future__ import annotations

import typing as typ

import msgspec

from agentdir.directory.models import RepositoryRecord, record_from_mapping

from .errors import CorruptBlobError

if typ.TYPE_CHECKING:
    import collections.abc as cabc

_ROWS = msgspec.json.Decoder(list[dict[str, typ.Any]])
_QUERY_MAP = msgspec.json.Decoder(dict[str, list[dict[str, typ.Any]]])
_ENCODER = msgspec.json.Encoder()


def encode_records(records: cabc.Iterable[RepositoryRecord]) -> bytes:
    """Encode records as a JSON array of persisted rows."""
    return _ENCODER.encode([record.to_row() for record in records])


def decode_records(blob: bytes, *, blob_name: str) -> list[RepositoryRecord]:
    """Decode a JSON array of rows into records.

    Raises
    ------
    CorruptBlobError
        If the blob is not valid JSON or not an array of objects.

    """
    try:
        rows = _ROWS.decode(blob)
    except msgspec.ValidationError as exc:
        raise CorruptBlobError.wrong_shape(blob_name, "an array of objects") from exc
    except msgspec.DecodeError as exc:
        raise CorruptBlobError.undecodable(blob_name, exc) from exc
    return [record_from_mapping(row) for row in rows]


def encode_query_map(entries: cabc.Mapping[str, list[RepositoryRecord]]) -> bytes:
    """Encode a query map as a JSON object of row arrays."""
    return _ENCODER.encode(
        {
            query: [record.to_row() for record in records]
            for query, records in entries.items()
        }
    )


def decode_query_map(
    blob: bytes, *, blob_name: str
) -> dict[str, list[RepositoryRecord]]:
    """Decode a JSON object mapping queries to row arrays.

    Raises
    ------
    CorruptBlobError
        If the blob is not valid JSON or has the wrong structure.

    """
    try:
        raw = _QUERY_MAP.decode(blob)
    except msgspec.ValidationError as exc:
        raise CorruptBlobError.wrong_shape(
            blob_name, "an object of record arrays"
        ) from exc
    except msgspec.DecodeError as exc:
        raise CorruptBlobError.undecodable(blob_name, exc) from exc
    return {
        query: [record_from_mapping(row) for row in rows]
        for query, rows in raw.items()
    }
