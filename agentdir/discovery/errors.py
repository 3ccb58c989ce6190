"""Discovery provider errors."""

from __future__ import annotations


class DiscoveryError(RuntimeError):
    """Base class for failures reported by a discovery provider."""


class DiscoveryAPIError(DiscoveryError):
    """Raised when the search API is unreachable or answers with an error."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        """Initialise with a message and optional HTTP status code."""
        self.status_code = status_code
        super().__init__(message)

    @classmethod
    def http_error(cls, status_code: int) -> DiscoveryAPIError:
        """Return an error for non-2xx HTTP responses."""
        return cls(f"GitHub search HTTP {status_code}", status_code=status_code)

    @classmethod
    def transport(cls, exc: BaseException) -> DiscoveryAPIError:
        """Return an error for connection, timeout and protocol failures."""
        return cls(f"GitHub search transport failure: {type(exc).__name__}: {exc}")


class DiscoveryResponseShapeError(DiscoveryError):
    """Raised when search responses are missing expected fields."""

    @classmethod
    def missing(cls, field: str) -> DiscoveryResponseShapeError:
        """Return an error for a missing response field."""
        return cls(f"GitHub search response missing expected field: {field}")


class DiscoveryConfigError(DiscoveryError):
    """Raised when discovery client configuration is invalid."""

    @classmethod
    def invalid_timeout(cls, raw: str) -> DiscoveryConfigError:
        """Return an error for a timeout that is not a positive number."""
        return cls(f"AGENTDIR_GITHUB_TIMEOUT_S must be a positive number, got {raw!r}")
