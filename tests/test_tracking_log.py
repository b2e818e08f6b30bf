# ==============================================================================
# Tests for the Tracking Log
# ==============================================================================
"""
Unit tests for the bounded tracking log.

Tests cover:
- Persistence as a JSON array under the tracking log key
- Cap enforcement with oldest-first eviction
- Tolerance of unreadable stored data and unavailable storage
"""

import json

import pytest

from xdomain.core.models import LogCategory, TrackingLogEntry
from xdomain.core.tracking_log import TRACKING_LOG_KEY, TrackingLog
from xdomain.infrastructure.storage import InMemoryStorage


def entry(n: int) -> TrackingLogEntry:
    return TrackingLogEntry(
        timestamp=f"2024-01-01T00:00:{n % 60:02d}.000Z",
        category=LogCategory.SYSTEM,
        message=f"entry {n}",
        data={"n": n},
    )


class TestAppend:
    """Tests for TrackingLog.append()."""

    def test_persists_json_array(self, local_storage):
        tracking_log = TrackingLog(local_storage)
        tracking_log.append(entry(1))

        stored = json.loads(local_storage.get(TRACKING_LOG_KEY))
        assert stored == [
            {
                "timestamp": "2024-01-01T00:00:01.000Z",
                "category": "system",
                "message": "entry 1",
                "data": {"n": 1},
            }
        ]

    def test_never_exceeds_100_entries(self, local_storage):
        """Once the cap is exceeded the oldest entries are evicted first."""
        tracking_log = TrackingLog(local_storage)
        for n in range(150):
            tracking_log.append(entry(n))

        entries = tracking_log.entries()
        assert len(entries) == 100
        assert entries[0].message == "entry 50"
        assert entries[-1].message == "entry 149"
        assert len(json.loads(local_storage.get(TRACKING_LOG_KEY))) == 100

    def test_cap_is_shared_by_later_instances(self, local_storage):
        """A log opened on the next page continues the same bounded array."""
        first = TrackingLog(local_storage, max_entries=3)
        for n in range(3):
            first.append(entry(n))

        second = TrackingLog(local_storage, max_entries=3)
        second.append(entry(3))

        assert [e.message for e in second.entries()] == ["entry 1", "entry 2", "entry 3"]
        assert [e.message for e in second.recent()] == ["entry 3"]

    def test_rejects_non_positive_cap(self, local_storage):
        with pytest.raises(ValueError):
            TrackingLog(local_storage, max_entries=0)


class TestRecent:
    """Tests for TrackingLog.recent()."""

    def test_returns_newest_in_order(self, local_storage):
        tracking_log = TrackingLog(local_storage)
        for n in range(30):
            tracking_log.append(entry(n))

        recent = tracking_log.recent(5)
        assert [e.message for e in recent] == [f"entry {n}" for n in range(25, 30)]
        assert tracking_log.recent(0) == []


class TestResilience:
    """Tests for unreadable or unavailable storage."""

    def test_corrupt_json_treated_as_empty(self, local_storage):
        local_storage.set(TRACKING_LOG_KEY, "{not json")
        tracking_log = TrackingLog(local_storage)

        assert tracking_log.entries() == []
        tracking_log.append(entry(1))
        assert len(tracking_log.entries()) == 1

    def test_unreadable_records_skipped(self, local_storage):
        local_storage.set(
            TRACKING_LOG_KEY,
            json.dumps([{"category": "nope", "message": "x"}, entry(2).to_record()]),
        )
        assert [e.message for e in TrackingLog(local_storage).entries()] == ["entry 2"]

    def test_unavailable_storage_keeps_memory_copy(self):
        tracking_log = TrackingLog(InMemoryStorage(available=False))
        tracking_log.append(entry(1))

        assert len(tracking_log) == 1
        assert tracking_log.entries() == []

    def test_clear(self, local_storage):
        tracking_log = TrackingLog(local_storage)
        tracking_log.append(entry(1))
        tracking_log.clear()

        assert len(tracking_log) == 0
        assert local_storage.get(TRACKING_LOG_KEY) is None
