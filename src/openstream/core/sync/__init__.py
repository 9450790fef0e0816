"""Synchronization of the managed songs directory with the catalog."""

from .status import StatusListener, StatusNotifier, SyncState, SyncStatus
from .synchronizer import LibrarySynchronizer, SyncStatistics

__all__ = [
    # Status
    "StatusListener",
    "StatusNotifier",
    "SyncState",
    "SyncStatus",
    # Synchronizer
    "LibrarySynchronizer",
    "SyncStatistics",
]
