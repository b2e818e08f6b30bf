# ==============================================================================
# In-Memory Sink
# ==============================================================================
"""
Sink that keeps what it receives, newest beacons first.

Holds the same state the debug panel renders: the latest snapshot and a
bounded list of beacons.
"""

from collections import deque

from xdomain.base.sinks import TrackingSink
from xdomain.core.models import BeaconPayload, TrackerSnapshot

DEFAULT_MAX_BEACONS = 50


class RecordingSink(TrackingSink):
    """Records snapshots and beacons in memory."""

    def __init__(self, max_beacons: int = DEFAULT_MAX_BEACONS):
        self.snapshot: TrackerSnapshot | None = None
        self.update_count = 0
        self._beacons: deque[BeaconPayload] = deque(maxlen=max_beacons)

    @property
    def beacons(self) -> list[BeaconPayload]:
        """Received beacons, newest first."""
        return list(self._beacons)

    def update(self, snapshot: TrackerSnapshot) -> None:
        self.snapshot = snapshot
        self.update_count += 1

    def add_entry(self, payload: BeaconPayload) -> None:
        self._beacons.appendleft(payload)

    def clear(self) -> None:
        self.snapshot = None
        self.update_count = 0
        self._beacons.clear()
