# ==============================================================================
# Link Decorator
# ==============================================================================
"""
Rewrites outbound cross-domain links so they carry the current identity.

Links are decorated twice:
- once at page initialization (decorate_all), covering links present at load
- again on every click (handle_click), covering links added after load and
  identities that changed since load

Decoration reads the visitor id at call time and never caches it in the link.
Only the tracking query keys are rewritten; with unchanged identity and clock
a second decoration produces the same href.
"""

import logging
from collections.abc import Callable
from urllib.parse import urljoin, urlsplit

from xdomain.core.codec import current_epoch_ms, encode_outbound
from xdomain.core.identity import IdentityStore, LogCallback
from xdomain.core.models import LogCategory, SiteProfile
from xdomain.core.page import Anchor, ClickEvent, Page, url_host
from xdomain.utils.config import PLACEHOLDER_ORG_ID

logger = logging.getLogger(__name__)

CROSS_DOMAIN_LINK_CLASS = "cross-domain-link"
TARGET_DOMAIN_ATTRIBUTE = "data-target-domain"

_DECORATABLE_SCHEMES = ("http", "https")


class LinkDecorator:
    """
    Decorates marker-class anchors of one page.

    Args:
        identity: Source of the current visitor id
        site: Resolved profile of the current site
        origin: Origin relative hrefs are resolved against
        log: Callback receiving (category, message, data) log events
        clock_ms: Returns current epoch milliseconds
        marker_class: CSS class marking eligible links
    """

    def __init__(
        self,
        identity: IdentityStore,
        site: SiteProfile,
        origin: str,
        log: LogCallback | None = None,
        clock_ms: Callable[[], int] = current_epoch_ms,
        marker_class: str = CROSS_DOMAIN_LINK_CLASS,
    ):
        self._identity = identity
        self._site = site
        self._origin = origin
        self._log = log
        self._clock_ms = clock_ms
        self.marker_class = marker_class

    @property
    def org_id(self) -> str:
        """Configured organization id, or the placeholder."""
        return self._site.org_id or PLACEHOLDER_ORG_ID

    @property
    def enabled(self) -> bool:
        return self._site.cross_domain_enabled

    def resolve(self, href: str) -> str:
        """
        Resolve href against the page origin.

        Raises:
            ValueError: If href cannot be parsed as a URL
        """
        return urljoin(self._origin + "/", href)

    def is_eligible(self, anchor: Anchor) -> bool:
        """
        Whether anchor should be decorated on load and on click.

        Eligible anchors carry the marker class and, when a cross-domain
        domain set is configured, point at a host inside it.
        """
        if not anchor.has_class(self.marker_class):
            return False
        domains = self._site.cross_domain_domains
        if not domains or not anchor.href:
            return True
        try:
            host = url_host(urlsplit(self.resolve(anchor.href)))
        except ValueError:
            # Let decorate_one report the malformed href
            return True
        return host in domains

    def decorate_all(self, page: Page) -> int:
        """
        Decorate every eligible anchor on page.

        Returns:
            Number of anchors decorated
        """
        if not self.enabled:
            self._emit(
                LogCategory.CROSSDOMAIN,
                "Cross-domain tracking disabled for this site",
                {"site": self._site.name or None, "domain": self._site.domain},
            )
            return 0

        candidates = [a for a in page.find_by_class(self.marker_class) if self.is_eligible(a)]
        decorated = sum(1 for anchor in candidates if self.decorate_one(anchor))
        self._emit(LogCategory.CROSSDOMAIN, f"Decorated {decorated} cross-domain links", {})
        return decorated

    def decorate_one(self, anchor: Anchor) -> bool:
        """
        Rewrite anchor's href to carry the current identity.

        Malformed hrefs are logged in the error category and left untouched.

        Returns:
            True if the href was rewritten
        """
        href = anchor.get_attribute("href")
        if not href:
            return False

        visitor_id = self._identity.visitor_id
        if not visitor_id:
            logger.debug("No visitor id yet, leaving %s undecorated", href)
            return False

        try:
            url = self.resolve(href)
            if urlsplit(url).scheme not in _DECORATABLE_SCHEMES:
                return False
            decorated = encode_outbound(url, visitor_id, self.org_id, self._clock_ms())
        except ValueError as e:
            self._emit(
                LogCategory.ERROR, "Failed to decorate link", {"href": href, "error": str(e)}
            )
            return False

        anchor.set_attribute("href", decorated)
        return True

    def handle_click(self, event: ClickEvent) -> None:
        """Re-decorate a clicked cross-domain link with the latest identity."""
        anchor = event.anchor
        if not self.enabled or not self.is_eligible(anchor):
            return
        self.decorate_one(anchor)
        self._emit(
            LogCategory.CROSSDOMAIN,
            "Cross-domain link clicked",
            {
                "targetDomain": anchor.get_attribute(TARGET_DOMAIN_ATTRIBUTE, "unknown"),
                "href": anchor.get_attribute("href"),
                "visitorId": self._identity.visitor_id,
            },
        )

    def attach(self, page: Page) -> None:
        """Subscribe to click events of page."""
        page.add_click_listener(self.handle_click)

    def detach(self, page: Page) -> None:
        page.remove_click_listener(self.handle_click)

    def _emit(self, category: LogCategory, message: str, data: dict) -> None:
        if self._log is not None:
            self._log(category, message, data)
