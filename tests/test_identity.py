# ==============================================================================
# Tests for the Identity Store
# ==============================================================================
"""
Unit tests for IdentityStore and identifier generation.

Tests cover:
- Identifier format (type tag, base36 timestamp, base36 random part)
- Get-or-create of visitor and session ids, scope separation
- First-touch idempotence
- Adoption of inbound visitor ids
- Reset semantics
- Fallback to in-memory identity when storage is unavailable
"""

import random
import re

import pytest

from xdomain.core.identity import (
    FIRST_TOUCH_SITE_KEY,
    FIRST_TOUCH_TIME_KEY,
    SESSION_ID_KEY,
    VISITOR_ID_KEY,
    IdentityStore,
    generate_id,
    to_base36,
)
from xdomain.core.models import LogCategory, TrackingLogEntry, VisitorIdentity
from xdomain.core.tracking_log import TrackingLog
from xdomain.infrastructure.storage import InMemoryStorage

ID_PATTERN = re.compile(r"^(VID|SID)-[0-9a-z]+-[0-9a-z]+$")


class LogRecorder:
    """Collects (category, message, data) log callbacks."""

    def __init__(self):
        self.events = []

    def __call__(self, category, message, data):
        self.events.append((category, message, data))

    def messages(self, category=None):
        return [m for c, m, _ in self.events if category is None or c == category]


@pytest.fixture()
def events():
    return LogRecorder()


@pytest.fixture()
def store(local_storage, session_storage, events, clock, rng):
    return IdentityStore(local_storage, session_storage, log=events, clock=clock, rng=rng)


# ==============================================================================
# Identifier generation
# ==============================================================================


class TestGenerateId:
    """Tests for generate_id() and to_base36()."""

    def test_base36(self):
        assert to_base36(0) == "0"
        assert to_base36(35) == "z"
        assert to_base36(36) == "10"

    def test_base36_rejects_negative(self):
        with pytest.raises(ValueError):
            to_base36(-1)

    def test_format(self):
        """Ids look like <TAG>-<base36 ms>-<base36 random>."""
        value = generate_id("VID", now_ms=1_700_000_000_000, rng=random.Random(1))
        assert ID_PATTERN.match(value)
        assert value.split("-")[1] == to_base36(1_700_000_000_000)

    def test_distinct_for_same_millisecond(self):
        """The random part separates ids generated in the same millisecond."""
        rng = random.Random(7)
        ids = {generate_id("VID", now_ms=1, rng=rng) for _ in range(100)}
        assert len(ids) == 100


# ==============================================================================
# Visitor and session ids
# ==============================================================================


class TestGetOrCreate:
    """Tests for get_or_create_visitor_id() and get_or_create_session_id()."""

    def test_visitor_id_is_stable(self, store, events):
        """Two calls without a reset return the same id."""
        first = store.get_or_create_visitor_id()
        second = store.get_or_create_visitor_id()

        assert first == second
        assert first.startswith("VID-")
        assert events.messages(LogCategory.VISITOR) == [
            "Generated new visitor ID",
            "Retrieved existing visitor ID",
        ]

    def test_visitor_id_persisted_in_local_scope(self, store, local_storage, session_storage):
        visitor_id = store.get_or_create_visitor_id()
        assert local_storage.get(VISITOR_ID_KEY) == visitor_id
        assert session_storage.get(VISITOR_ID_KEY) is None

    def test_session_id_persisted_in_session_scope(self, store, local_storage, session_storage):
        session_id = store.get_or_create_session_id()
        assert session_id.startswith("SID-")
        assert session_storage.get(SESSION_ID_KEY) == session_id
        assert local_storage.get(SESSION_ID_KEY) is None

    def test_existing_values_are_read_back(self, local_storage, session_storage):
        """A second store over the same storages sees the same ids (next page load)."""
        first = IdentityStore(local_storage, session_storage)
        visitor_id = first.get_or_create_visitor_id()
        session_id = first.get_or_create_session_id()

        second = IdentityStore(local_storage, session_storage)
        assert second.get_or_create_visitor_id() == visitor_id
        assert second.get_or_create_session_id() == session_id

    def test_new_session_keeps_visitor(self, local_storage):
        """A fresh session scope yields a new session id but the same visitor id."""
        first = IdentityStore(local_storage, InMemoryStorage())
        visitor_id = first.get_or_create_visitor_id()
        session_id = first.get_or_create_session_id()

        second = IdentityStore(local_storage, InMemoryStorage())
        assert second.get_or_create_visitor_id() == visitor_id
        assert second.get_or_create_session_id() != session_id

    def test_accessors_fall_back_to_storage(self, local_storage, session_storage):
        local_storage.set(VISITOR_ID_KEY, "VID-stored-1")
        store = IdentityStore(local_storage, session_storage)
        assert store.visitor_id == "VID-stored-1"
        assert store.session_id is None


# ==============================================================================
# First touch
# ==============================================================================


class TestFirstTouch:
    """Tests for record_first_touch_if_absent()."""

    def test_only_first_call_persists(self, store, local_storage):
        """Later calls with other site names leave the first record untouched."""
        assert store.record_first_touch_if_absent("Site A") is True
        recorded_time = local_storage.get(FIRST_TOUCH_TIME_KEY)

        for name in ["Site B", "Site C", "Site A"]:
            assert store.record_first_touch_if_absent(name) is False

        assert local_storage.get(FIRST_TOUCH_SITE_KEY) == "Site A"
        assert local_storage.get(FIRST_TOUCH_TIME_KEY) == recorded_time

    def test_timestamp_is_iso8601(self, store):
        store.record_first_touch_if_absent("Site A")
        record = store.first_touch()
        assert record.site == "Site A"
        assert record.timestamp == "2023-11-14T22:13:20.000Z"

    def test_absent_record(self, store):
        assert store.first_touch() is None


# ==============================================================================
# Adoption and reset
# ==============================================================================


class TestAdoptVisitorId:
    """Tests for adopt_visitor_id()."""

    def test_replaces_local_id(self, store, local_storage, events):
        store.get_or_create_visitor_id()
        store.adopt_visitor_id("VID-inbound-1", "adobe_mc")

        assert local_storage.get(VISITOR_ID_KEY) == "VID-inbound-1"
        assert store.get_or_create_visitor_id() == "VID-inbound-1"
        assert "Stored visitor ID from adobe_mc" in events.messages(LogCategory.CROSSDOMAIN)

    def test_empty_id_rejected(self, store, local_storage):
        store.get_or_create_visitor_id()
        before = local_storage.get(VISITOR_ID_KEY)

        with pytest.raises(ValueError):
            store.adopt_visitor_id("", "URL")

        assert local_storage.get(VISITOR_ID_KEY) == before

    def test_identity_models(self, store):
        assert store.visitor_identity() is None
        assert store.session_identity() is None

        store.adopt_visitor_id("VID-inbound-1", "URL")
        store.get_or_create_session_id()

        assert store.visitor_identity() == VisitorIdentity(id="VID-inbound-1")
        assert store.session_identity().id.startswith("SID-")


class TestReset:
    """Tests for reset()."""

    def test_new_visitor_id_after_reset(self, store):
        """get_or_create after reset generates a different id."""
        before = store.get_or_create_visitor_id()
        store.reset()
        after = store.get_or_create_visitor_id()
        assert after != before

    def test_clears_all_keys(self, store, local_storage, session_storage):
        store.get_or_create_visitor_id()
        store.get_or_create_session_id()
        store.record_first_touch_if_absent("Site A")

        store.reset()

        assert store.visitor_id is None
        assert store.session_id is None
        assert store.first_touch() is None
        assert session_storage.get(SESSION_ID_KEY) is None

    def test_does_not_regenerate(self, store, local_storage):
        store.get_or_create_visitor_id()
        store.reset()
        assert local_storage.get(VISITOR_ID_KEY) is None

    def test_clears_tracking_log(self, local_storage, session_storage):
        tracking_log = TrackingLog(local_storage)
        store = IdentityStore(local_storage, session_storage, tracking_log=tracking_log)
        tracking_log.append(TrackingLogEntry(category=LogCategory.SYSTEM, message="hello"))
        store.reset()

        assert len(tracking_log) == 0
        assert tracking_log.entries() == []


# ==============================================================================
# Unavailable storage
# ==============================================================================


class TestUnavailableStorage:
    """Tests for the in-memory fallback when storage is unavailable."""

    def test_ids_are_served_from_memory(self, events):
        """Disabled storage does not raise; ids stay stable for the page."""
        store = IdentityStore(
            InMemoryStorage(available=False), InMemoryStorage(available=False), log=events
        )

        visitor_id = store.get_or_create_visitor_id()
        session_id = store.get_or_create_session_id()

        assert store.degraded is True
        assert store.get_or_create_visitor_id() == visitor_id
        assert store.get_or_create_session_id() == session_id

    def test_logs_one_error_per_scope(self, events):
        store = IdentityStore(
            InMemoryStorage(available=False), InMemoryStorage(), log=events
        )
        store.get_or_create_visitor_id()
        store.get_or_create_visitor_id()
        store.record_first_touch_if_absent("Site A")

        errors = events.messages(LogCategory.ERROR)
        assert errors == ["Storage unavailable, falling back to in-memory identity"]
        assert store.get_or_create_session_id().startswith("SID-")

    def test_quota_exceeded_degrades(self, events):
        """A full storage behaves like an unavailable one."""
        store = IdentityStore(InMemoryStorage(quota_chars=5), InMemoryStorage(), log=events)

        visitor_id = store.get_or_create_visitor_id()

        assert store.degraded is True
        assert store.visitor_id == visitor_id
