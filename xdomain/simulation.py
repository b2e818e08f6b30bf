# ==============================================================================
# Browser Simulator
# ==============================================================================
"""
Drives multi-site browsing journeys against the tracking core.

The simulator plays the browser: it keeps storage isolated per origin (one
long-lived scope per origin, one session scope per origin and tab), builds
each site's page from configuration, runs the page initialization and a page
view on every visit, and follows links by dispatching click events.

Site pages link to every other configured site. A link carries the
cross-domain marker class when the source site has cross-domain tracking
enabled and the target host is in the cross-domain domain set.
"""

import logging
import random
import time
import uuid
from collections.abc import Callable
from urllib.parse import urlsplit

from xdomain.base.sinks import TrackingSink
from xdomain.base.storage import KeyValueStorage
from xdomain.core.context import TrackingContext
from xdomain.core.decorator import CROSS_DOMAIN_LINK_CLASS, TARGET_DOMAIN_ATTRIBUTE
from xdomain.core.models import SiteProfile, TagLoaderState
from xdomain.core.page import Anchor, Page
from xdomain.core.sites import SiteResolver
from xdomain.infrastructure.storage import create_storage_pair
from xdomain.utils.config import Settings, get_settings

logger = logging.getLogger(__name__)

StorageFactory = Callable[[str, str], tuple[KeyValueStorage, KeyValueStorage]]


def build_site_page(
    url: str,
    site: SiteProfile | None,
    profiles: list[SiteProfile],
    referrer: str = "",
) -> Page:
    """
    Build the page a site serves at url.

    Args:
        url: Absolute URL being loaded
        site: Profile of the site serving url (None for unknown hosts)
        profiles: All configured profiles (link targets)
        referrer: Referrer of the visit

    Returns:
        Page with one link per other site plus an internal link
    """
    scheme = urlsplit(url).scheme or "http"
    anchors: list[Anchor] = []
    if site is not None:
        anchors.append(Anchor(href="/about", text=f"About {site.name}"))
        for target in profiles:
            if target.name == site.name or not target.domain:
                continue
            classes = set()
            if site.cross_domain_enabled and target.domain in site.cross_domain_domains:
                classes.add(CROSS_DOMAIN_LINK_CLASS)
            anchors.append(
                Anchor(
                    href=f"{scheme}://{target.domain}/",
                    classes=classes,
                    attributes={TARGET_DOMAIN_ATTRIBUTE: target.domain},
                    text=f"Go to {target.name}",
                )
            )
    title = f"{site.name} - Home" if site is not None else ""
    return Page(url, anchors=anchors, referrer=referrer, title=title)


class BrowserSimulator:
    """
    A single browser profile with one tab.

    Args:
        settings: Application settings (default: cached settings)
        storage_factory: Creates (local, session) storages for (origin, session_token)
        sinks: Sinks attached to every page's tracking context
        tag_state: Tag loader flags reported to every page
        clock: Returns current epoch seconds
        rng: Random source for generated ids
    """

    def __init__(
        self,
        settings: Settings | None = None,
        storage_factory: StorageFactory | None = None,
        sinks: list[TrackingSink] | None = None,
        tag_state: TagLoaderState | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ):
        self.settings = settings or get_settings()
        self.resolver = SiteResolver.from_settings(self.settings.analytics)
        self._storage_factory = storage_factory or (
            lambda origin, token: create_storage_pair(origin, token, self.settings.storage)
        )
        self._sinks = list(sinks or [])
        self._tag_state = tag_state or TagLoaderState(configured=self.settings.tags.is_configured)
        self._clock = clock
        self._rng = rng
        self._local: dict[str, KeyValueStorage] = {}
        self._session: dict[str, KeyValueStorage] = {}
        self.session_token = uuid.uuid4().hex
        self.history: list[TrackingContext] = []

    @property
    def current(self) -> TrackingContext | None:
        return self.history[-1] if self.history else None

    def storages(self, origin: str) -> tuple[KeyValueStorage, KeyValueStorage]:
        """Long-lived and session storages of origin, created on first use."""
        if origin not in self._local or origin not in self._session:
            local, session = self._storage_factory(origin, self.session_token)
            self._local.setdefault(origin, local)
            self._session.setdefault(origin, session)
        return self._local[origin], self._session[origin]

    def site_url(self, site_name: str, path: str = "/") -> str:
        """URL of a configured site by name."""
        for profile in self.resolver.profiles:
            if profile.name == site_name:
                return f"http://{profile.domain}{path}"
        raise KeyError(f"Unknown site: {site_name!r}")

    def visit(self, url: str, referrer: str = "", track_page_view: bool = True) -> TrackingContext:
        """
        Load url in the tab.

        Args:
            url: Absolute URL to load
            referrer: Referrer of the visit
            track_page_view: Track a page view after initialization

        Returns:
            The initialized tracking context of the loaded page
        """
        host = urlsplit(url).netloc
        site = self.resolver.resolve_current_site(host)
        page = build_site_page(url, site, self.resolver.profiles, referrer=referrer)
        local, session = self.storages(page.origin)

        context = TrackingContext(
            page,
            local,
            session,
            resolver=self.resolver,
            tag_state=self._tag_state,
            sinks=self._sinks,
            clock=self._clock,
            rng=self._rng,
            log_max_entries=self.settings.storage.log_max_entries,
        )
        context.init()
        if track_page_view:
            context.track_page_view()
        self.history.append(context)
        return context

    def click(self, context: TrackingContext, anchor: Anchor) -> TrackingContext:
        """Click anchor on the page of context and load the target."""
        href = context.page.click(anchor)
        if not href:
            raise ValueError("Clicked anchor has no href")
        target = context.decorator.resolve(href)
        return self.visit(target, referrer=context.page.url)

    def follow(self, context: TrackingContext, target: str) -> TrackingContext:
        """
        Click the link of context's page pointing at target.

        Args:
            context: Current page context
            target: Target site name or host

        Raises:
            LookupError: If the page has no link to target
        """
        for profile in self.resolver.profiles:
            if profile.name == target:
                target = profile.domain
                break
        for anchor in context.page.anchors:
            if anchor.get_attribute(TARGET_DOMAIN_ATTRIBUTE) == target:
                return self.click(context, anchor)
        raise LookupError(f"No link to {target!r} on {context.page.url}")

    def close_tab(self) -> None:
        """End the browsing session: session-scoped storage is discarded."""
        for storage in self._session.values():
            storage.clear()
        self._session.clear()
        self.session_token = uuid.uuid4().hex
        logger.debug("Tab closed, new session token %s", self.session_token)


def run_journey(simulator: BrowserSimulator, site_names: list[str]) -> list[TrackingContext]:
    """
    Visit the first site, then follow links through the remaining ones.

    Args:
        simulator: Browser to drive
        site_names: Site names in visiting order

    Returns:
        Tracking context of every page visited, in order
    """
    if not site_names:
        return []
    context = simulator.visit(simulator.site_url(site_names[0]))
    visited = [context]
    for name in site_names[1:]:
        context = simulator.follow(context, name)
        visited.append(context)
    return visited
