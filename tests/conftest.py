# ==============================================================================
# Shared Test Fixtures
# ==============================================================================
"""
Pytest fixtures shared across all test modules.

Provides:
- fakeredis-backed client and ValkeyStorage instances
- In-memory storage pairs, a fixed clock and a seeded random source
- Site resolver built from the default site family
- Tracking contexts wired to a RecordingSink
"""

import random

import fakeredis
import pytest

from xdomain.core.context import TrackingContext
from xdomain.core.decorator import CROSS_DOMAIN_LINK_CLASS, TARGET_DOMAIN_ATTRIBUTE
from xdomain.core.page import Anchor, Page
from xdomain.core.sites import SiteResolver
from xdomain.infrastructure.sinks import RecordingSink
from xdomain.infrastructure.storage import InMemoryStorage, ValkeyStorage
from xdomain.utils.config import AnalyticsSettings

# 2023-11-14T22:13:20Z
FIXED_EPOCH = 1_700_000_000.0

SITE_A = "http://site-a.local:3001"
SITE_B = "http://site-b.local:3002"
SITE_C = "http://site-c.local:3003"


class FakeClock:
    """Manually advanced clock returning epoch seconds."""

    def __init__(self, now: float = FIXED_EPOCH):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def fake_redis():
    """A clean fakeredis instance for each test.

    Uses decode_responses=True to match the real Valkey client behavior.
    """
    server = fakeredis.FakeServer()
    client = fakeredis.FakeRedis(server=server, decode_responses=True)
    yield client
    client.flushall()
    client.close()


@pytest.fixture()
def valkey_storage(fake_redis):
    """A long-lived-scope ValkeyStorage backed by fakeredis."""
    return ValkeyStorage("xdomain:http://site-a.local:3001:local", client=fake_redis)


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def rng():
    return random.Random(1234)


@pytest.fixture()
def local_storage():
    return InMemoryStorage()


@pytest.fixture()
def session_storage():
    return InMemoryStorage()


@pytest.fixture()
def resolver():
    """Resolver over the default three-site family (A and B share identity)."""
    return SiteResolver.from_settings(AnalyticsSettings())


@pytest.fixture()
def sink():
    return RecordingSink()


def make_page(url: str = SITE_A + "/", referrer: str = "") -> Page:
    """Page with a cross-domain link to Site B, a plain link to Site C and an internal link."""
    return Page(
        url,
        anchors=[
            Anchor(
                href=SITE_B + "/?foo=bar",
                classes={CROSS_DOMAIN_LINK_CLASS},
                attributes={TARGET_DOMAIN_ATTRIBUTE: "site-b.local:3002"},
            ),
            Anchor(href=SITE_C + "/", attributes={TARGET_DOMAIN_ATTRIBUTE: "site-c.local:3003"}),
            Anchor(href="/about"),
        ],
        referrer=referrer,
        title="Site A - Home",
    )


@pytest.fixture()
def page_factory():
    """Builds Site-family pages; see make_page."""
    return make_page


@pytest.fixture()
def page():
    return make_page()


@pytest.fixture()
def context(page, local_storage, session_storage, resolver, sink, clock, rng):
    """An uninitialized TrackingContext for Site A."""
    return TrackingContext(
        page,
        local_storage,
        session_storage,
        resolver=resolver,
        sinks=[sink],
        clock=clock,
        rng=rng,
    )
