"""Synchronization components for incremental change-feed sync."""

from src.sync.change_reconciler import ChangeFeedReconciler
from src.sync.models import ChangeSet, HydratedChanges, SyncOptions, SyncResult
from src.sync.sync_orchestrator import SyncOrchestrator

__all__ = [
    "ChangeFeedReconciler",
    "ChangeSet",
    "HydratedChanges",
    "SyncOptions",
    "SyncOrchestrator",
    "SyncResult",
]
