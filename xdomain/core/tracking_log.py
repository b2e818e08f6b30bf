# ==============================================================================
# Tracking Log
# ==============================================================================
"""
Append-only tracking log with a bounded size.

Entries are kept twice:
- in memory, for the lifetime of the page (ring buffer)
- in long-lived storage as a JSON array, shared with the debug panel

Both copies evict the oldest entries first once their cap is reached.
"""

import json
import logging
from collections import deque

from xdomain.base.storage import KeyValueStorage, StorageUnavailableError
from xdomain.core.models import TrackingLogEntry

logger = logging.getLogger(__name__)

TRACKING_LOG_KEY = "xdomain_tracking_log"
DEFAULT_MAX_ENTRIES = 100


class TrackingLog:
    """
    Bounded tracking log backed by per-origin storage.

    Persisting is best-effort: if storage is unavailable the entry is still
    kept in memory.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        memory_entries: int | None = None,
    ):
        """
        Initialize the tracking log.

        Args:
            storage: Long-lived storage of the current origin
            max_entries: Cap on persisted entries
            memory_entries: Cap on in-memory entries (default: max_entries)
        """
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self._storage = storage
        self.max_entries = max_entries
        self._memory: deque[TrackingLogEntry] = deque(maxlen=memory_entries or max_entries)

    def __len__(self) -> int:
        return len(self._memory)

    def append(self, entry: TrackingLogEntry) -> None:
        """Record an entry in memory and in storage."""
        self._memory.append(entry)

        stored = self._read_stored()
        stored.append(entry.to_record())
        if len(stored) > self.max_entries:
            del stored[: len(stored) - self.max_entries]
        try:
            self._storage.set(TRACKING_LOG_KEY, json.dumps(stored))
        except StorageUnavailableError as e:
            logger.warning("Could not persist tracking log entry: %s", e)

    def recent(self, count: int = 20) -> list[TrackingLogEntry]:
        """Most recent in-memory entries, oldest first."""
        if count <= 0:
            return []
        return list(self._memory)[-count:]

    def entries(self) -> list[TrackingLogEntry]:
        """All persisted entries, oldest first."""
        result = []
        for record in self._read_stored():
            try:
                result.append(TrackingLogEntry.from_record(record))
            except (TypeError, ValueError):
                logger.debug("Skipping unreadable tracking log record: %r", record)
        return result

    def clear(self) -> None:
        """Drop all entries from memory and storage."""
        self._memory.clear()
        try:
            self._storage.delete(TRACKING_LOG_KEY)
        except StorageUnavailableError as e:
            logger.warning("Could not clear persisted tracking log: %s", e)

    def _read_stored(self) -> list:
        try:
            raw = self._storage.get(TRACKING_LOG_KEY)
        except StorageUnavailableError as e:
            logger.warning("Could not read persisted tracking log: %s", e)
            return []
        if not raw:
            return []
        try:
            stored = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("Failed to decode JSON for key %s", TRACKING_LOG_KEY)
            return []
        return stored if isinstance(stored, list) else []
