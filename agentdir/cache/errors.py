"""Local cache errors."""

from __future__ import annotations


class CacheError(RuntimeError):
    """Base class for local persistence failures."""


class CorruptBlobError(CacheError):
    """Raised when a persisted blob cannot be decoded into its expected shape."""

    def __init__(self, blob_name: str, reason: str) -> None:
        """Initialise with the blob name and a short reason."""
        self.blob_name = blob_name
        self.reason = reason
        super().__init__(f"Local blob {blob_name!r} is corrupt: {reason}")

    @classmethod
    def undecodable(cls, blob_name: str, exc: BaseException) -> CorruptBlobError:
        """Return an error for blobs that fail JSON decoding."""
        return cls(blob_name, f"{type(exc).__name__}: {exc}")

    @classmethod
    def wrong_shape(cls, blob_name: str, expected: str) -> CorruptBlobError:
        """Return an error for blobs whose JSON has an unexpected structure."""
        return cls(blob_name, f"expected {expected}")
