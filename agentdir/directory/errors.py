"""Errors raised by the directory domain."""

from __future__ import annotations


class DirectoryError(Exception):
    """Base class for directory errors."""


class InvalidRecordError(DirectoryError):
    """Raised when a submitted record lacks the fields a write requires."""

    def __init__(self, reason: str, *, url: str = "") -> None:
        """Initialise with the rejection reason and offending URL."""
        self.reason = reason
        self.url = url
        detail = f" ({url})" if url else ""
        super().__init__(f"Invalid repository record{detail}: {reason}")

    @classmethod
    def not_github(cls, url: str) -> InvalidRecordError:
        """Return an error for URLs that are not GitHub repository URLs."""
        return cls("expected https://github.com/<owner>/<repo>", url=url)


class NegativePaginationError(DirectoryError, ValueError):
    """Raised when pagination parameters are negative."""

    def __init__(self, name: str) -> None:
        """Build a consistent error message for the invalid parameter."""
        super().__init__(f"{name} must be non-negative")
