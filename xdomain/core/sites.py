# ==============================================================================
# Site Resolver
# ==============================================================================
"""
Maps the current origin's host to a named site profile.

Profiles are built once from configuration. A host that matches no profile is
a lookup miss, not a failure: callers fall back to an unconfigured profile
with cross-domain features disabled.
"""

import logging

from xdomain.core.models import SiteProfile
from xdomain.utils.config import AnalyticsSettings, get_settings

logger = logging.getLogger(__name__)


class SiteResolver:
    """
    Exact-host lookup over configured site profiles.

    Profiles are checked in configuration order; the first profile whose
    domain equals the host wins.
    """

    def __init__(self, profiles: list[SiteProfile]):
        self._profiles = list(profiles)

    @classmethod
    def from_settings(cls, settings: AnalyticsSettings) -> "SiteResolver":
        """
        Build profiles from analytics settings.

        Global fields (org id, tracking servers, cross-domain domain set) are
        copied onto every profile.
        """
        domains = frozenset(d for d in settings.cross_domain_domains if d)
        profiles = [
            SiteProfile(
                name=name,
                domain=site.domain,
                cross_domain_enabled=site.cross_domain_enabled,
                internal_filter_domain=site.link_internal_filters,
                org_id=settings.org_id,
                tracking_server=settings.tracking_server,
                tracking_server_secure=settings.tracking_server_secure,
                cross_domain_domains=domains,
            )
            for name, site in settings.sites.items()
        ]
        return cls(profiles)

    @property
    def profiles(self) -> list[SiteProfile]:
        return list(self._profiles)

    def resolve_current_site(self, host: str | None) -> SiteProfile | None:
        """
        Find the profile served from host.

        Args:
            host: Host of the current origin, including any port

        Returns:
            Matching SiteProfile, or None when no profile matches
        """
        if not host:
            return None
        for profile in self._profiles:
            if profile.domain and profile.domain == host:
                return profile
        logger.debug("No site profile configured for host %s", host)
        return None

    def resolve_or_default(self, host: str | None) -> SiteProfile:
        """Resolve host, falling back to an unconfigured profile."""
        return self.resolve_current_site(host) or SiteProfile.unconfigured(host or "")


# ==============================================================================
# Module-level convenience functions
# ==============================================================================


def get_site_resolver() -> SiteResolver:
    """Build a SiteResolver from the cached application settings."""
    return SiteResolver.from_settings(get_settings().analytics)


def resolve_current_site(host: str | None) -> SiteProfile | None:
    """Resolve host against the configured site profiles."""
    return get_site_resolver().resolve_current_site(host)
