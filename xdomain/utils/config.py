# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv. Every field has a documented default; empty
strings mean "not configured" and never cause an error.

Complex fields (site mapping, domain lists) are read as JSON, e.g.:
    XDOMAIN_ANALYTICS_CROSS_DOMAIN_DOMAINS='["a.example:443","b.example:443"]'
"""

from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()

# Organization id written when none is configured
PLACEHOLDER_ORG_ID = "test-org@AdobeOrg"


class SiteSettings(BaseModel):
    """Per-site settings (one entry of AnalyticsSettings.sites)."""

    domain: str = Field(default="", description="Host (with port) the site is served from")
    cross_domain_enabled: bool = Field(
        default=False, description="Decorate outbound cross-domain links"
    )
    link_internal_filters: str = Field(
        default="", description="Host treated as internal for link tracking"
    )


def _default_sites() -> dict[str, SiteSettings]:
    return {
        "Site A": SiteSettings(
            domain="site-a.local:3001",
            cross_domain_enabled=True,
            link_internal_filters="site-a.local:3001",
        ),
        "Site B": SiteSettings(
            domain="site-b.local:3002",
            cross_domain_enabled=True,
            link_internal_filters="site-b.local:3002",
        ),
        "Site C": SiteSettings(
            domain="site-c.local:3003",
            cross_domain_enabled=False,
            link_internal_filters="site-c.local:3003",
        ),
    }


class AnalyticsSettings(BaseSettings):
    """Site family and cross-domain settings."""

    model_config = SettingsConfigDict(env_prefix="XDOMAIN_ANALYTICS_")

    sites: dict[str, SiteSettings] = Field(
        default_factory=_default_sites, description="Site name -> site settings"
    )
    org_id: str = Field(default="", description="Marketing cloud organization id")
    tracking_server: str = Field(default="", description="Collection server host")
    tracking_server_secure: str = Field(
        default="", description="Collection server host for HTTPS"
    )
    cross_domain_domains: list[str] = Field(
        default_factory=lambda: ["site-a.local:3001", "site-b.local:3002"],
        description="Hosts that share visitor identity via link decoration",
    )

    @property
    def effective_org_id(self) -> str:
        """Organization id, or the placeholder when unconfigured."""
        return self.org_id or PLACEHOLDER_ORG_ID


class TagSettings(BaseSettings):
    """Analytics tag (tag manager script) settings.

    Script injection itself is performed outside the tracking core; the core
    only reports whether a URL is configured and reads the loader flags.
    """

    model_config = SettingsConfigDict(env_prefix="XDOMAIN_TAGS_")

    url: str = Field(default="", description="Production tag script URL")
    url_dev: str = Field(default="", description="Development tag script URL")
    url_staging: str = Field(default="", description="Staging tag script URL")
    async_load: bool = Field(default=True, description="Load the tag script asynchronously")
    enable_debug_without_tags: bool = Field(
        default=True, description="Track into the debug log when no tag URL is configured"
    )

    @property
    def is_configured(self) -> bool:
        """Check if a tag URL is configured."""
        return bool(self.url)


class StorageSettings(BaseSettings):
    """Per-origin storage settings."""

    model_config = SettingsConfigDict(env_prefix="XDOMAIN_STORAGE_")

    backend: Literal["memory", "valkey"] = Field(
        default="memory", description="Storage backend (memory, valkey)"
    )
    log_max_entries: int = Field(
        default=100, ge=1, description="Persisted tracking log cap (oldest evicted)"
    )
    session_ttl_minutes: int = Field(
        default=30, ge=1, description="Lifetime of session-scoped keys in Valkey"
    )


class ValkeySettings(BaseSettings):
    """Valkey (Redis-compatible) connection settings for durable storage."""

    model_config = SettingsConfigDict(env_prefix="VALKEY_")

    host: str = Field(default="localhost", description="Valkey host")
    port: int = Field(default=6379, description="Valkey port")
    password: Optional[str] = Field(default=None, description="Valkey password")
    db: int = Field(default=0, description="Valkey database number")
    ssl: bool = Field(default=False, description="Use SSL/TLS connection")

    @property
    def url(self) -> str:
        """Build Valkey connection URL."""
        scheme = "rediss" if self.ssl else "redis"
        if self.password:
            return f"{scheme}://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"{scheme}://{self.host}:{self.port}/{self.db}"


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_prefix="XDOMAIN_",
        extra="ignore",
    )

    # Nested settings
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)
    tags: TagSettings = Field(default_factory=TagSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    valkey: ValkeySettings = Field(default_factory=ValkeySettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
