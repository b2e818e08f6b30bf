# ==============================================================================
# Core Domain Logic
# ==============================================================================
"""
Cross-domain identity propagation.

This module contains:
- Domain models (identities, site profiles, log entries, beacons)
- Site resolution, identity storage, parameter codec
- Link decoration, event tracking and the per-page tracking context

Everything here depends only on the storage and sink ports in xdomain.base.
"""

from xdomain.core.models import (
    BeaconPayload,
    BeaconType,
    FirstTouchRecord,
    InboundIdentity,
    LogCategory,
    SessionIdentity,
    SiteProfile,
    TagLoaderState,
    TrackerSnapshot,
    TrackingLogEntry,
    VisitorIdentity,
)
from xdomain.core.codec import (
    build_composite,
    decode_inbound,
    encode_outbound,
    parse_composite,
)
from xdomain.core.context import TrackingContext
from xdomain.core.decorator import CROSS_DOMAIN_LINK_CLASS, LinkDecorator
from xdomain.core.identity import IdentityStore, generate_id
from xdomain.core.page import Anchor, ClickEvent, Page
from xdomain.core.sites import SiteResolver, resolve_current_site
from xdomain.core.tracker import EventTracker
from xdomain.core.tracking_log import TrackingLog

__all__ = [
    # Models
    "BeaconPayload",
    "BeaconType",
    "FirstTouchRecord",
    "InboundIdentity",
    "LogCategory",
    "SessionIdentity",
    "SiteProfile",
    "TagLoaderState",
    "TrackerSnapshot",
    "TrackingLogEntry",
    "VisitorIdentity",
    # Codec
    "build_composite",
    "decode_inbound",
    "encode_outbound",
    "parse_composite",
    # Components
    "CROSS_DOMAIN_LINK_CLASS",
    "EventTracker",
    "IdentityStore",
    "LinkDecorator",
    "SiteResolver",
    "TrackingContext",
    "TrackingLog",
    "generate_id",
    "resolve_current_site",
    # Page
    "Anchor",
    "ClickEvent",
    "Page",
]
