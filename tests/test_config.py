# ==============================================================================
# Tests for Application Configuration
# ==============================================================================
"""
Unit tests for pydantic-settings configuration.

Tests cover:
- Defaults describing the demo site family
- Environment overrides, including JSON-encoded complex fields
- Org id placeholder and tag configuration flags
"""

import pytest
from pydantic import ValidationError

from xdomain.core.sites import SiteResolver
from xdomain.utils.config import (
    PLACEHOLDER_ORG_ID,
    AnalyticsSettings,
    Settings,
    StorageSettings,
    TagSettings,
    ValkeySettings,
)


class TestDefaults:
    """Tests for default settings."""

    def test_site_family(self):
        settings = AnalyticsSettings()
        assert settings.sites["Site A"].domain == "site-a.local:3001"
        assert settings.sites["Site C"].cross_domain_enabled is False
        assert settings.cross_domain_domains == ["site-a.local:3001", "site-b.local:3002"]

    def test_placeholder_org_id(self):
        assert AnalyticsSettings().effective_org_id == PLACEHOLDER_ORG_ID

    def test_tags_not_configured(self):
        assert TagSettings().is_configured is False

    def test_storage(self):
        settings = StorageSettings()
        assert settings.backend == "memory"
        assert settings.log_max_entries == 100

    def test_nested(self):
        settings = Settings()
        assert settings.storage.session_ttl_minutes == 30
        assert settings.log_level == "INFO"


class TestEnvironmentOverrides:
    """Tests for environment variable overrides."""

    def test_org_id(self, monkeypatch):
        monkeypatch.setenv("XDOMAIN_ANALYTICS_ORG_ID", "acme@AdobeOrg")
        assert AnalyticsSettings().effective_org_id == "acme@AdobeOrg"

    def test_sites_and_domains_from_json(self, monkeypatch):
        monkeypatch.setenv(
            "XDOMAIN_ANALYTICS_SITES",
            '{"Shop": {"domain": "shop.example", "cross_domain_enabled": true}}',
        )
        monkeypatch.setenv(
            "XDOMAIN_ANALYTICS_CROSS_DOMAIN_DOMAINS", '["shop.example", "blog.example"]'
        )

        resolver = SiteResolver.from_settings(AnalyticsSettings())

        shop = resolver.resolve_current_site("shop.example")
        assert shop.name == "Shop"
        assert shop.cross_domain_enabled is True
        assert shop.cross_domain_domains == frozenset({"shop.example", "blog.example"})
        assert resolver.resolve_current_site("site-a.local:3001") is None

    def test_storage_backend(self, monkeypatch):
        monkeypatch.setenv("XDOMAIN_STORAGE_BACKEND", "valkey")
        assert StorageSettings().backend == "valkey"

    def test_invalid_backend_rejected(self, monkeypatch):
        monkeypatch.setenv("XDOMAIN_STORAGE_BACKEND", "cookies")
        with pytest.raises(ValidationError):
            StorageSettings()

    def test_tags_url(self, monkeypatch):
        monkeypatch.setenv("XDOMAIN_TAGS_URL", "https://assets.example/launch.min.js")
        assert TagSettings().is_configured is True


class TestValkeyUrl:
    """Tests for ValkeySettings.url."""

    def test_plain(self):
        assert ValkeySettings(host="cache", port=6380, db=2).url == "redis://cache:6380/2"

    def test_ssl_with_password(self):
        settings = ValkeySettings(host="cache", password="secret", ssl=True)
        assert settings.url == "rediss://:secret@cache:6379/0"
