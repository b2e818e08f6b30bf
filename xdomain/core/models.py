# ==============================================================================
# Cross-Domain Tracking Domain Models
# ==============================================================================
"""
Pydantic models for identities, site profiles, log entries and beacons.

These models are used for:
- Validating configuration-derived site profiles
- Serializing tracking log entries to per-origin storage
- Handing immutable beacon payloads to sinks

This module is part of the core domain layer and has no external dependencies
beyond Pydantic.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Type tags prefixed to generated identifiers
VISITOR_ID_PREFIX = "VID"
SESSION_ID_PREFIX = "SID"


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class LogCategory(str, Enum):
    """Categories of tracking log entries."""

    SYSTEM = "system"
    VISITOR = "visitor"
    SESSION = "session"
    PAGEVIEW = "pageview"
    EVENT = "event"
    CROSSDOMAIN = "crossdomain"
    ERROR = "error"


class BeaconType(str, Enum):
    """Kinds of tracked interactions."""

    PAGE_VIEW = "pageView"
    EVENT = "event"


class VisitorIdentity(BaseModel):
    """Long-lived pseudonymous identifier for a browsing profile."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Visitor identifier")


class SessionIdentity(BaseModel):
    """Identifier scoped to a single browsing session."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Session identifier")


class FirstTouchRecord(BaseModel):
    """
    First site of the family a visitor was observed on.

    Attributes:
        site: Site name (or host when the site is unconfigured)
        timestamp: ISO-8601 time the record was written
    """

    model_config = ConfigDict(frozen=True)

    site: str
    timestamp: str | None = None


class SiteProfile(BaseModel):
    """
    Static per-site tracking profile, resolved from configuration.

    Attributes:
        name: Site name (configuration key)
        domain: Host (with port) the site is served from
        cross_domain_enabled: Whether outbound links get decorated
        internal_filter_domain: Host treated as internal for link tracking
        org_id: Organization id carried in the composite parameter
        tracking_server: Collection server host
        tracking_server_secure: Collection server host for HTTPS
        cross_domain_domains: Hosts that participate in identity sharing
    """

    model_config = ConfigDict(frozen=True)

    name: str = ""
    domain: str = ""
    cross_domain_enabled: bool = False
    internal_filter_domain: str = ""
    org_id: str = ""
    tracking_server: str = ""
    tracking_server_secure: str = ""
    cross_domain_domains: frozenset[str] = Field(default_factory=frozenset)

    @property
    def is_configured(self) -> bool:
        """True when the profile came from configuration rather than a lookup miss."""
        return bool(self.name)

    @classmethod
    def unconfigured(cls, host: str = "") -> "SiteProfile":
        """Fallback profile for hosts with no configured site."""
        return cls(domain=host)


class TrackingLogEntry(BaseModel):
    """A single append-only tracking log record."""

    timestamp: str = Field(default_factory=utc_now_iso)
    category: LogCategory
    message: str
    data: dict[str, Any] = Field(default_factory=dict)

    def to_record(self) -> dict:
        """Serialize entry for JSON storage."""
        return self.model_dump(mode="json")

    @classmethod
    def from_record(cls, data: dict) -> "TrackingLogEntry":
        """Deserialize entry from JSON storage."""
        return cls.model_validate(data)


class BeaconPayload(BaseModel):
    """
    Immutable record of a tracked interaction.

    Caller-supplied fields beyond the standard ones are kept as extras and
    serialized alongside them.
    """

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    type: BeaconType
    timestamp: str
    visitor_id: str | None = Field(None, alias="visitorId")
    session_id: str | None = Field(None, alias="sessionId")
    site: str | None = None
    domain: str | None = None

    def to_record(self) -> dict:
        """Serialize payload with camelCase identity keys."""
        return self.model_dump(mode="json", by_alias=True)


class InboundIdentity(BaseModel):
    """
    Identity fields recovered from an inbound URL.

    Attributes:
        visitor_id: Visitor id after precedence rules were applied
        org_id: Organization id from the composite parameter
        analytics_id: Analytics id from the individual parameter
        timestamp: Timestamp (epoch ms) from the composite or individual parameter
        composite: Raw composite parameter value, if present
        skipped: Malformed composite segments that were ignored
    """

    visitor_id: str | None = None
    org_id: str | None = None
    analytics_id: str | None = None
    timestamp: int | None = None
    composite: str | None = None
    skipped: list[str] = Field(default_factory=list)

    @property
    def has_visitor_id(self) -> bool:
        return bool(self.visitor_id)


class TagLoaderState(BaseModel):
    """
    Load state of the externally injected analytics tag.

    The core only reads these flags; the tag loader sets them.
    """

    configured: bool = False
    loaded: bool = False
    load_error: bool = False

    @field_validator("loaded", "load_error", mode="before")
    @classmethod
    def _none_is_false(cls, value):
        return bool(value)


class TrackerSnapshot(BaseModel):
    """State pushed to sinks after every state-affecting operation."""

    visitor_id: str | None = None
    session_id: str | None = None
    first_touch_site: str | None = None
    site_context: SiteProfile | None = None
    recent_log: list[TrackingLogEntry] = Field(default_factory=list)
