"""Unit tests for directory event logging and error categorisation."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from agentdir.cache import CorruptBlobError
from agentdir.discovery import (
    DiscoveryAPIError,
    DiscoveryConfigError,
    DiscoveryResponseShapeError,
)
from agentdir.reconcile import DirectoryEventLogger, ErrorCategory, categorize_error
from agentdir.reconcile import observability as observability_module
from tests.helpers.directory_builders import FakeLogger


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        pytest.param(
            DiscoveryAPIError.http_error(502), ErrorCategory.TRANSIENT, id="http-5xx"
        ),
        pytest.param(
            DiscoveryAPIError.http_error(401),
            ErrorCategory.CLIENT_ERROR,
            id="http-4xx",
        ),
        pytest.param(
            DiscoveryAPIError.transport(TimeoutError("slow")),
            ErrorCategory.TRANSIENT,
            id="transport",
        ),
        pytest.param(
            DiscoveryResponseShapeError.missing("items"),
            ErrorCategory.SCHEMA_DRIFT,
            id="response-shape",
        ),
        pytest.param(
            CorruptBlobError("records", "bad"),
            ErrorCategory.SCHEMA_DRIFT,
            id="corrupt-blob",
        ),
        pytest.param(
            DiscoveryConfigError.invalid_timeout("0"),
            ErrorCategory.CONFIGURATION,
            id="config",
        ),
        pytest.param(
            OperationalError("SELECT 1", {}, Exception("down")),
            ErrorCategory.DATABASE_CONNECTIVITY,
            id="operational",
        ),
        pytest.param(
            IntegrityError("INSERT", {}, Exception("dup")),
            ErrorCategory.DATA_INTEGRITY,
            id="integrity",
        ),
        pytest.param(
            ProgrammingError("SELECT", {}, Exception("syntax")),
            ErrorCategory.DATABASE_ERROR,
            id="other-sqlalchemy",
        ),
        pytest.param(
            ConnectionRefusedError("refused"),
            ErrorCategory.TRANSIENT,
            id="connection",
        ),
        pytest.param(ValueError("?"), ErrorCategory.UNKNOWN, id="unknown"),
    ],
)
def test_categorize_error(exc: BaseException, expected: ErrorCategory) -> None:
    """Exceptions map to the alert category operators route on."""
    assert categorize_error(exc) == expected


@pytest.fixture
def captured(monkeypatch: pytest.MonkeyPatch) -> FakeLogger:
    """Replace the module logger with a recorder."""
    logger = FakeLogger()
    monkeypatch.setattr(observability_module, "logger", logger)
    return logger


def test_read_and_write_events_are_structured(captured: FakeLogger) -> None:
    """Completed operations log bracketed event types with key=value pairs."""
    events = DirectoryEventLogger()

    events.read_completed("cache", 12)
    events.write_completed(submitted=5, accepted=3, stored=0, cached=True)

    assert captured.messages("INFO") == [
        "[directory.read.completed] source=cache count=12",
        "[directory.write.completed] submitted=5 accepted=3 stored=0 cached=True",
    ]


def test_degraded_tier_logs_category(captured: FakeLogger) -> None:
    """Degradation is a warning carrying the error type and category."""
    events = DirectoryEventLogger()

    events.tier_degraded("store", "read", ConnectionRefusedError("refused"))

    (message,) = captured.messages("WARNING")
    assert message.startswith("[directory.tier.degraded] tier=store operation=read")
    assert "error_type=ConnectionRefusedError" in message
    assert "error_category=transient" in message


def test_resync_failure_attaches_exception(captured: FakeLogger) -> None:
    """Failed background work is logged at ERROR with the exception attached."""
    error = OperationalError("INSERT", {}, Exception("down"))

    DirectoryEventLogger().resync_failed(error)

    ((level, message, exc_info),) = captured.calls
    assert level == "ERROR"
    assert "error_category=database_connectivity" in message
    assert exc_info is error


def test_discovery_events(captured: FakeLogger) -> None:
    """Discovery success is INFO; failure is WARNING with the fallback size."""
    events = DirectoryEventLogger()

    events.discovery_completed("mcp", 4)
    events.discovery_failed("mcp", DiscoveryAPIError.http_error(403), 2)

    assert captured.messages("INFO") == [
        "[directory.discovery.completed] query='mcp' count=4"
    ]
    (warning,) = captured.messages("WARNING")
    assert "error_category=client_error fallback_count=2" in warning
