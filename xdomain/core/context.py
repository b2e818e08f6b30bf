# ==============================================================================
# Tracking Context
# ==============================================================================
"""
Per-page tracking instance.

One TrackingContext is constructed when a page loads and is handed to the
decorator, tracker and sinks. It wires the components together and runs the
initialization sequence:

    resolve site -> consume inbound identity from the URL -> visitor id
    -> session id -> first touch -> decorate links -> listen for clicks

Page views are tracked by the caller after init(), as a page would.
"""

import random
import time
from collections.abc import Callable
from typing import Any

from xdomain.base.sinks import TrackingSink
from xdomain.base.storage import KeyValueStorage
from xdomain.core.codec import COMPOSITE_PARAM, decode_inbound
from xdomain.core.decorator import LinkDecorator
from xdomain.core.identity import IdentityStore
from xdomain.core.models import (
    BeaconPayload,
    LogCategory,
    SiteProfile,
    TagLoaderState,
    TrackerSnapshot,
    TrackingLogEntry,
)
from xdomain.core.page import Page
from xdomain.core.sites import SiteResolver, get_site_resolver
from xdomain.core.tracker import EventTracker
from xdomain.core.tracking_log import DEFAULT_MAX_ENTRIES, TrackingLog


class TrackingContext:
    """
    Tracking state and components bound to one loaded page.

    Args:
        page: The loaded page
        local_storage: Long-lived storage of the page's origin
        session_storage: Session-scoped storage of the page's origin
        resolver: Site resolver (default: built from settings)
        tag_state: Flags set by the external tag loader
        sinks: Initial sinks
        clock: Returns current epoch seconds
        rng: Random source for generated ids
        log_max_entries: Cap on persisted log entries
    """

    def __init__(
        self,
        page: Page,
        local_storage: KeyValueStorage,
        session_storage: KeyValueStorage,
        resolver: SiteResolver | None = None,
        tag_state: TagLoaderState | None = None,
        sinks: list[TrackingSink] | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
        log_max_entries: int = DEFAULT_MAX_ENTRIES,
    ):
        if resolver is None:
            resolver = get_site_resolver()

        self.page = page
        self.site: SiteProfile = resolver.resolve_or_default(page.host)
        self.tag_state = tag_state or TagLoaderState()
        self.initialized = False

        self.tracking_log = TrackingLog(local_storage, max_entries=log_max_entries)
        self.identity = IdentityStore(
            local_storage,
            session_storage,
            tracking_log=self.tracking_log,
            log=self._log,
            clock=clock,
            rng=rng,
        )
        self.tracker = EventTracker(
            self.tracking_log,
            self.identity,
            self.site,
            referrer=page.referrer,
            sinks=sinks,
            clock=clock,
        )
        self.decorator = LinkDecorator(
            self.identity,
            self.site,
            page.origin,
            log=self._log,
            clock_ms=lambda: int(clock() * 1000),
        )

    # ==========================================================================
    # Lifecycle
    # ==========================================================================

    def init(self) -> "TrackingContext":
        """Run the page initialization sequence (once)."""
        if self.initialized:
            return self

        self._log(
            LogCategory.SYSTEM,
            "Tracking Core initializing...",
            {
                "tagsConfigured": self.tag_state.configured,
                "tagsLoaded": self.tag_state.loaded,
                "tagsLoadError": self.tag_state.load_error,
            },
        )

        self.consume_inbound(self.page.url)
        self.identity.get_or_create_visitor_id()
        self.identity.get_or_create_session_id()
        self.identity.record_first_touch_if_absent(self.site.name or self.page.host)
        self.decorator.decorate_all(self.page)
        self.decorator.attach(self.page)

        self.initialized = True
        self._log(
            LogCategory.SYSTEM,
            "Tracking Core initialized",
            {
                "visitorId": self.identity.visitor_id,
                "sessionId": self.identity.session_id,
                "currentSite": self.site.name or None,
                "crossDomainEnabled": self.site.cross_domain_enabled,
            },
        )
        return self

    def consume_inbound(self, url: str) -> bool:
        """
        Adopt identity carried by url, if any.

        Returns:
            True if the local visitor id was replaced
        """
        inbound = decode_inbound(url)
        if inbound.composite:
            self._log(
                LogCategory.CROSSDOMAIN,
                f"Received {COMPOSITE_PARAM} parameter",
                {COMPOSITE_PARAM: inbound.composite},
            )
        if inbound.skipped:
            self._log(
                LogCategory.CROSSDOMAIN,
                f"Skipped malformed {COMPOSITE_PARAM} segments",
                {"segments": inbound.skipped},
            )
        if not inbound.has_visitor_id:
            return False

        source = COMPOSITE_PARAM if inbound.composite else "URL"
        self.identity.adopt_visitor_id(inbound.visitor_id, source)
        return True

    def reset(self) -> None:
        """
        Clear stored identity and the tracking log.

        The context is left uninitialized; call init() to resume tracking.
        """
        self.identity.reset()
        self.decorator.detach(self.page)
        self.initialized = False
        self._log(LogCategory.SYSTEM, "Tracking data reset")

    # ==========================================================================
    # Tracking
    # ==========================================================================

    def track_page_view(self, fields: dict[str, Any] | None = None) -> BeaconPayload:
        fields = {
            "pageName": self.page.title or self.page.path,
            "pageUrl": self.page.url,
            **(fields or {}),
        }
        return self.tracker.track_page_view(fields)

    def track_event(self, fields: dict[str, Any] | None = None) -> BeaconPayload:
        return self.tracker.track_event(fields)

    # ==========================================================================
    # Accessors
    # ==========================================================================

    @property
    def visitor_id(self) -> str | None:
        return self.identity.visitor_id

    @property
    def session_id(self) -> str | None:
        return self.identity.session_id

    @property
    def first_touch_site(self) -> str | None:
        record = self.identity.first_touch()
        return record.site if record else None

    def snapshot(self) -> TrackerSnapshot:
        return self.tracker.snapshot()

    def log_entries(self) -> list[TrackingLogEntry]:
        """Persisted tracking log of this origin."""
        return self.tracking_log.entries()

    def add_sink(self, sink: TrackingSink) -> None:
        self.tracker.add_sink(sink)
        self.tracker.refresh()

    def _log(self, category: LogCategory, message: str, data: dict | None = None) -> None:
        self.tracker.log(category, message, data)
