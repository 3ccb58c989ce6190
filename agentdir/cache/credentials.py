"""Optional GitHub access token kept in local storage."""

from __future__ import annotations

import typing as typ

from .backends import CREDENTIAL_BLOB
from .records import load_blob, save_blob

if typ.TYPE_CHECKING:
    from .backends import BlobBackend


class CredentialStore:
    """Read and write the stored access token."""

    def __init__(self, backend: BlobBackend) -> None:
        """Bind the store to ``backend``."""
        self._backend = backend

    def load(self) -> str | None:
        """Return the stored token, or ``None`` when absent or unreadable."""
        blob = load_blob(self._backend, CREDENTIAL_BLOB)
        if not blob:
            return None
        token = blob.decode("utf-8", errors="ignore").strip()
        return token or None

    def save(self, token: str) -> bool:
        """Store ``token``; a blank token clears the credential."""
        cleaned = token.strip()
        if not cleaned:
            return self.clear()
        return save_blob(self._backend, CREDENTIAL_BLOB, cleaned.encode("utf-8"))

    def clear(self) -> bool:
        """Forget the stored token."""
        return save_blob(self._backend, CREDENTIAL_BLOB, b"")
