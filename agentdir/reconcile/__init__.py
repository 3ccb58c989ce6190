"""Reconciliation of reads and writes across the directory's storage tiers."""

from agentdir.reconcile.notifications import ChangeEvent, ChangeNotifier
from agentdir.reconcile.observability import (
    DirectoryEventLogger,
    DirectoryEventType,
    ErrorCategory,
    categorize_error,
)
from agentdir.reconcile.service import DurableStore, ReconciliationOrchestrator

__all__ = [
    "ChangeEvent",
    "ChangeNotifier",
    "DirectoryEventLogger",
    "DirectoryEventType",
    "DurableStore",
    "ErrorCategory",
    "ReconciliationOrchestrator",
    "categorize_error",
]
