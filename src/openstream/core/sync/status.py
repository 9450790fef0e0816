"""Synchronization status published to observers."""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List

logger = logging.getLogger(__name__)


class SyncState(str, Enum):
    """Externally visible synchronization states."""

    IDLE = "idle"
    SCANNING = "scanning"
    COMPLETE = "complete"


@dataclass(frozen=True)
class SyncStatus:
    """Current state plus a human readable message."""

    state: SyncState = SyncState.IDLE
    message: str = ""

    @property
    def is_busy(self) -> bool:
        """True while a pass is running."""
        return self.state is SyncState.SCANNING

    def __str__(self) -> str:
        """Short display form, e.g. ``scanning: Importing 3 files``."""
        if self.message:
            return f"{self.state.value}: {self.message}"
        return self.state.value


StatusListener = Callable[[SyncStatus], None]


class StatusNotifier:
    """Holds the current status and fans transitions out to listeners.

    Listeners run on the thread that performs the transition. A failing
    listener is logged and does not affect the others.
    """

    def __init__(self) -> None:
        """Initialize status notifier in the idle state."""
        self._status = SyncStatus()
        self._listeners: List[StatusListener] = []
        self._lock = threading.Lock()

    @property
    def status(self) -> SyncStatus:
        """Current status (safe to poll from any thread)."""
        with self._lock:
            return self._status

    def add_listener(self, listener: StatusListener) -> None:
        """Register a callback invoked on every transition."""
        with self._lock:
            self._listeners.append(listener)

    def remove_listener(self, listener: StatusListener) -> None:
        """Unregister a callback; unknown callbacks are ignored."""
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    def publish(self, state: SyncState, message: str = "") -> SyncStatus:
        """Move to a new status and notify listeners."""
        status = SyncStatus(state, message)
        with self._lock:
            self._status = status
            listeners = list(self._listeners)

        logger.debug("Sync status: %s", status)
        for listener in listeners:
            try:
                listener(status)
            except Exception:
                logger.exception("Status listener failed")
        return status
