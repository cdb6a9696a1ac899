"""Latest-wins mailbox handing snapshots from the worker to the renderer."""

import threading

from mpdinfo.models.snapshot import Snapshot


class SnapshotPublisher:
    """Single-slot snapshot mailbox.

    Publishing replaces the previous snapshot; there is no queue. Snapshots
    are immutable, so a reader always sees a complete one.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._snapshot: Snapshot | None = None
        self._version = 0

    @property
    def version(self) -> int:
        """Return the number of snapshots published so far."""
        with self._lock:
            return self._version

    def publish(self, snapshot: Snapshot) -> int:
        """Replace the current snapshot and return the new version."""
        with self._lock:
            self._snapshot = snapshot
            self._version += 1
            return self._version

    def latest(self) -> Snapshot | None:
        """Return the most recent snapshot, or None before the first publish."""
        with self._lock:
            return self._snapshot

    def latest_since(self, version: int) -> tuple[Snapshot | None, int]:
        """Return the latest snapshot if newer than ``version``.

        Returns:
            (snapshot or None if nothing new, current version)
        """
        with self._lock:
            if self._version > version:
                return self._snapshot, self._version
            return None, self._version
