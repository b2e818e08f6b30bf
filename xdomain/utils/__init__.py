# ==============================================================================
# Cross-Domain Tracking Utilities
# ==============================================================================
"""
Shared utilities: configuration and retry helpers.
"""

from xdomain.utils.config import (
    PLACEHOLDER_ORG_ID,
    AnalyticsSettings,
    Settings,
    SiteSettings,
    StorageSettings,
    TagSettings,
    ValkeySettings,
    get_settings,
)
from xdomain.utils.retry import REDIS_RETRY_EXCEPTIONS, retry_light

__all__ = [
    # Config
    "PLACEHOLDER_ORG_ID",
    "AnalyticsSettings",
    "Settings",
    "SiteSettings",
    "StorageSettings",
    "TagSettings",
    "ValkeySettings",
    "get_settings",
    # Retry
    "REDIS_RETRY_EXCEPTIONS",
    "retry_light",
]
