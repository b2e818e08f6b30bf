# ==============================================================================
# Event Tracker
# ==============================================================================
"""
Builds page-view and custom-event beacons and owns the tracking log.

Every beacon carries the tracker's timestamp, visitor id and session id plus
the resolved site context. Callers may add fields and override the site
defaults, but never the timestamp or the identity fields.

Beacons are not sent anywhere; they are logged and handed to sinks.
"""

import logging
import time
from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from xdomain.base.sinks import TrackingSink
from xdomain.core.identity import IdentityStore
from xdomain.core.models import (
    BeaconPayload,
    BeaconType,
    LogCategory,
    SiteProfile,
    TrackerSnapshot,
    TrackingLogEntry,
)
from xdomain.core.tracking_log import TrackingLog

logger = logging.getLogger(__name__)

# Number of log entries included in sink snapshots
SNAPSHOT_LOG_ENTRIES = 20

# Fields the tracker always sets itself
AUTHORITATIVE_FIELDS = frozenset(
    {"type", "timestamp", "visitorId", "visitor_id", "sessionId", "session_id"}
)


class EventTracker:
    """
    Creates beacons and tracking log entries for one page.

    Args:
        tracking_log: Bounded log of the current origin
        identity: Source of the current visitor and session ids
        site: Resolved profile of the current site
        referrer: Referrer of the current page
        sinks: Initial sinks
        clock: Returns current epoch seconds
    """

    def __init__(
        self,
        tracking_log: TrackingLog,
        identity: IdentityStore,
        site: SiteProfile,
        referrer: str = "",
        sinks: list[TrackingSink] | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self._tracking_log = tracking_log
        self._identity = identity
        self._site = site
        self._referrer = referrer
        self._sinks: list[TrackingSink] = list(sinks or [])
        self._clock = clock

    @property
    def tracking_log(self) -> TrackingLog:
        return self._tracking_log

    @property
    def sinks(self) -> list[TrackingSink]:
        return list(self._sinks)

    def add_sink(self, sink: TrackingSink) -> None:
        if sink not in self._sinks:
            self._sinks.append(sink)

    def remove_sink(self, sink: TrackingSink) -> None:
        if sink in self._sinks:
            self._sinks.remove(sink)

    # ==========================================================================
    # Beacons
    # ==========================================================================

    def track_page_view(self, fields: dict[str, Any] | None = None) -> BeaconPayload:
        """
        Track a page view.

        Args:
            fields: Extra beacon fields (e.g. pageName, pageUrl)

        Returns:
            The created beacon
        """
        payload = self._build(BeaconType.PAGE_VIEW, {"referrer": self._referrer}, fields)
        self.log(LogCategory.PAGEVIEW, "Page view tracked", payload.to_record())
        self._send(payload)
        return payload

    def track_event(self, fields: dict[str, Any] | None = None) -> BeaconPayload:
        """
        Track a custom event.

        Args:
            fields: Extra beacon fields; eventType names the event in the log

        Returns:
            The created beacon
        """
        fields = fields or {}
        payload = self._build(BeaconType.EVENT, {}, fields)
        event_type = fields.get("eventType", fields.get("event_type"))
        self.log(LogCategory.EVENT, f"Event tracked: {event_type}", payload.to_record())
        self._send(payload)
        return payload

    def _build(
        self,
        beacon_type: BeaconType,
        defaults: dict[str, Any],
        fields: dict[str, Any] | None,
    ) -> BeaconPayload:
        record: dict[str, Any] = {
            "site": self._site.name or None,
            "domain": self._site.domain or None,
            **defaults,
        }
        for key, value in (fields or {}).items():
            if key in AUTHORITATIVE_FIELDS:
                logger.debug("Ignoring caller-supplied %s on %s beacon", key, beacon_type.value)
                continue
            record[key] = value
        record.update(
            {
                "type": beacon_type,
                "timestamp": self._now_iso(),
                "visitorId": self._identity.visitor_id,
                "sessionId": self._identity.session_id,
            }
        )
        return BeaconPayload.model_validate(record)

    # ==========================================================================
    # Log and sinks
    # ==========================================================================

    def log(
        self, category: LogCategory, message: str, data: dict | None = None
    ) -> TrackingLogEntry:
        """
        Append a tracking log entry and refresh the sinks.

        Args:
            category: Log category
            message: Human-readable message
            data: Structured details

        Returns:
            The created entry
        """
        entry = TrackingLogEntry(
            timestamp=self._now_iso(),
            category=category,
            message=message,
            data=data or {},
        )
        self._tracking_log.append(entry)

        level = logging.WARNING if category == LogCategory.ERROR else logging.INFO
        logger.log(level, "[Tracking %s] %s %s", category.value, message, entry.data)

        self._update_sinks()
        return entry

    def snapshot(self) -> TrackerSnapshot:
        """Current state as seen by sinks."""
        first_touch = self._identity.first_touch()
        return TrackerSnapshot(
            visitor_id=self._identity.visitor_id,
            session_id=self._identity.session_id,
            first_touch_site=first_touch.site if first_touch else None,
            site_context=self._site,
            recent_log=self._tracking_log.recent(SNAPSHOT_LOG_ENTRIES),
        )

    def refresh(self) -> None:
        """Push the current snapshot to every sink."""
        self._update_sinks()

    def _update_sinks(self) -> None:
        if not self._sinks:
            return
        snapshot = self.snapshot()
        for sink in list(self._sinks):
            try:
                sink.update(snapshot)
            except Exception:
                logger.exception("Tracking sink %r failed on update", sink)

    def _send(self, payload: BeaconPayload) -> None:
        for sink in list(self._sinks):
            try:
                sink.add_entry(payload)
            except Exception:
                logger.exception("Tracking sink %r failed on add_entry", sink)

    def _now_iso(self) -> str:
        return (
            datetime.fromtimestamp(self._clock(), timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
