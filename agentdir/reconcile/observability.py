"""Structured events for directory reads, writes and discovery.

Events are emitted as ``[event.type] key=value`` log lines through the
femtologging helpers so log aggregators can parse them.
"""

from __future__ import annotations

import enum

from sqlalchemy.exc import (
    IntegrityError,
    InterfaceError,
    OperationalError,
    SQLAlchemyError,
)

from agentdir.cache.errors import CorruptBlobError
from agentdir.discovery.errors import (
    DiscoveryAPIError,
    DiscoveryConfigError,
    DiscoveryResponseShapeError,
)
from agentdir.logging import get_logger, log_error, log_info, log_warning

logger = get_logger(__name__)

_HTTP_SERVER_ERROR_THRESHOLD = 500


class DirectoryEventType(enum.StrEnum):
    """Structured log event types for the directory."""

    READ_COMPLETED = "directory.read.completed"
    WRITE_COMPLETED = "directory.write.completed"
    WRITE_SKIPPED = "directory.write.skipped"
    TIER_DEGRADED = "directory.tier.degraded"
    STORE_UNAVAILABLE = "directory.store.unavailable"
    RESYNC_SCHEDULED = "directory.resync.scheduled"
    RESYNC_COMPLETED = "directory.resync.completed"
    RESYNC_FAILED = "directory.resync.failed"
    DISCOVERY_COMPLETED = "directory.discovery.completed"
    DISCOVERY_FAILED = "directory.discovery.failed"


class ErrorCategory(enum.StrEnum):
    """Categories for error classification in alerts."""

    TRANSIENT = "transient"
    CLIENT_ERROR = "client_error"
    SCHEMA_DRIFT = "schema_drift"
    CONFIGURATION = "configuration"
    DATABASE_CONNECTIVITY = "database_connectivity"
    DATA_INTEGRITY = "data_integrity"
    DATABASE_ERROR = "database_error"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (DiscoveryResponseShapeError, ErrorCategory.SCHEMA_DRIFT),
    (CorruptBlobError, ErrorCategory.SCHEMA_DRIFT),
    (DiscoveryConfigError, ErrorCategory.CONFIGURATION),
    (OperationalError, ErrorCategory.DATABASE_CONNECTIVITY),
    (InterfaceError, ErrorCategory.DATABASE_CONNECTIVITY),
    (IntegrityError, ErrorCategory.DATA_INTEGRITY),
    (SQLAlchemyError, ErrorCategory.DATABASE_ERROR),
    (ConnectionError, ErrorCategory.TRANSIENT),
    (TimeoutError, ErrorCategory.TRANSIENT),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorise an exception for alert routing.

    Search API failures without a status code are transport failures and
    count as transient, as do 5xx responses; other statuses are client
    errors.
    """
    if isinstance(exc, DiscoveryAPIError):
        if exc.status_code is None or exc.status_code >= _HTTP_SERVER_ERROR_THRESHOLD:
            return ErrorCategory.TRANSIENT
        return ErrorCategory.CLIENT_ERROR

    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category

    return ErrorCategory.UNKNOWN


class DirectoryEventLogger:
    """Emit structured directory events.

    Completed operations are logged at INFO, degraded tiers and skipped
    input at WARNING, and failed background work at ERROR.
    """

    def read_completed(self, source: str, count: int) -> None:
        """Log which tier served a read."""
        log_info(
            logger,
            "[%s] source=%s count=%d",
            DirectoryEventType.READ_COMPLETED,
            source,
            count,
        )

    def write_completed(
        self, *, submitted: int, accepted: int, stored: int, cached: bool
    ) -> None:
        """Log the outcome of a write across both tiers."""
        log_info(
            logger,
            "[%s] submitted=%d accepted=%d stored=%d cached=%s",
            DirectoryEventType.WRITE_COMPLETED,
            submitted,
            accepted,
            stored,
            cached,
        )

    def write_skipped(self, reason: str, count: int) -> None:
        """Log records dropped from a write before deduplication."""
        log_warning(
            logger,
            "[%s] reason=%s count=%d",
            DirectoryEventType.WRITE_SKIPPED,
            reason,
            count,
        )

    def tier_degraded(self, tier: str, operation: str, error: BaseException) -> None:
        """Log a tier that failed and was bypassed."""
        log_warning(
            logger,
            "[%s] tier=%s operation=%s error_type=%s error_category=%s "
            "error_message=%s",
            DirectoryEventType.TIER_DEGRADED,
            tier,
            operation,
            type(error).__name__,
            categorize_error(error),
            str(error),
        )

    def store_unavailable(self) -> None:
        """Log a durable store whose table failed the startup probe."""
        log_warning(
            logger,
            "[%s] tier=store mode=cache_only",
            DirectoryEventType.STORE_UNAVAILABLE,
        )

    def resync_scheduled(self, count: int) -> None:
        """Log a background push of cached records to the durable store."""
        log_info(
            logger, "[%s] count=%d", DirectoryEventType.RESYNC_SCHEDULED, count
        )

    def resync_completed(self, submitted: int, inserted: int) -> None:
        """Log the outcome of a background resync."""
        log_info(
            logger,
            "[%s] submitted=%d inserted=%d",
            DirectoryEventType.RESYNC_COMPLETED,
            submitted,
            inserted,
        )

    def resync_failed(self, error: BaseException) -> None:
        """Log a background resync that raised."""
        log_error(
            logger,
            "[%s] error_type=%s error_category=%s error_message=%s",
            DirectoryEventType.RESYNC_FAILED,
            type(error).__name__,
            categorize_error(error),
            str(error),
            exc_info=error,
        )

    def discovery_completed(self, query: str, count: int) -> None:
        """Log a discovery call that reached the provider."""
        log_info(
            logger,
            "[%s] query=%r count=%d",
            DirectoryEventType.DISCOVERY_COMPLETED,
            query,
            count,
        )

    def discovery_failed(
        self, query: str, error: BaseException, fallback_count: int
    ) -> None:
        """Log a failed discovery call and the size of the cached fallback."""
        log_warning(
            logger,
            "[%s] query=%r error_type=%s error_category=%s fallback_count=%d "
            "error_message=%s",
            DirectoryEventType.DISCOVERY_FAILED,
            query,
            type(error).__name__,
            categorize_error(error),
            fallback_count,
            str(error),
        )
