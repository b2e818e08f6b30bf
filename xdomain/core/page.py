# ==============================================================================
# Page Model
# ==============================================================================
"""
Minimal document model for link decoration.

A Page stands in for the browser document: it knows its own URL, referrer
and anchors, and dispatches click events to subscribed listeners. Listeners
run synchronously, in subscription order, before the navigation target is
read from the anchor.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from urllib.parse import SplitResult, urlsplit


@dataclass(eq=False)
class Anchor:
    """
    A link element.

    Attributes:
        href: Raw href attribute (None when the attribute is absent)
        classes: CSS classes on the element
        attributes: Other attributes (e.g. data-target-domain)
        text: Link text
    """

    href: str | None
    classes: set[str] = field(default_factory=set)
    attributes: dict[str, str] = field(default_factory=dict)
    text: str = ""

    def has_class(self, class_name: str) -> bool:
        return class_name in self.classes

    def get_attribute(self, name: str, default: str | None = None) -> str | None:
        if name == "href":
            return self.href if self.href is not None else default
        return self.attributes.get(name, default)

    def set_attribute(self, name: str, value: str) -> None:
        if name == "href":
            self.href = value
        else:
            self.attributes[name] = value


def url_host(parts: SplitResult) -> str:
    """Host and port of a split URL, lowercased, without userinfo."""
    return parts.netloc.rpartition("@")[2].lower()


@dataclass(frozen=True)
class ClickEvent:
    """A click on an anchor of a page."""

    page: "Page"
    anchor: Anchor


ClickListener = Callable[[ClickEvent], None]


class Page:
    """
    A loaded page: URL, referrer, anchors and click listeners.

    Args:
        url: Absolute URL the page was loaded from
        anchors: Link elements on the page
        referrer: URL of the previous page ("" when none)
        title: Page title
    """

    def __init__(
        self,
        url: str,
        anchors: list[Anchor] | None = None,
        referrer: str = "",
        title: str = "",
    ):
        parts = urlsplit(url)
        if not parts.scheme or not parts.netloc:
            raise ValueError(f"Page URL must be absolute: {url!r}")
        self.url = url
        self.anchors = list(anchors or [])
        self.referrer = referrer
        self.title = title
        self._listeners: list[ClickListener] = []

    @property
    def host(self) -> str:
        """Host including port, as in window.location.host (no userinfo)."""
        return url_host(urlsplit(self.url))

    @property
    def origin(self) -> str:
        parts = urlsplit(self.url)
        return f"{parts.scheme}://{url_host(parts)}"

    @property
    def path(self) -> str:
        return urlsplit(self.url).path or "/"

    def find_by_class(self, class_name: str) -> list[Anchor]:
        """Anchors carrying class_name, in document order."""
        return [a for a in self.anchors if a.has_class(class_name)]

    def add_anchor(self, anchor: Anchor) -> Anchor:
        """Insert an anchor after load (not covered by load-time decoration)."""
        self.anchors.append(anchor)
        return anchor

    def add_click_listener(self, listener: ClickListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_click_listener(self, listener: ClickListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def click(self, anchor: Anchor) -> str | None:
        """
        Dispatch a click and return the href the browser would follow.

        Args:
            anchor: Anchor being clicked (must belong to this page)

        Returns:
            The anchor's href after all listeners ran
        """
        event = ClickEvent(page=self, anchor=anchor)
        for listener in list(self._listeners):
            listener(event)
        return anchor.href
