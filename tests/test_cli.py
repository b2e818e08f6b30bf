# ==============================================================================
# Tests for CLI Commands
# ==============================================================================
"""
Tests for the xdomain CLI commands.

Commands run against the real app via typer.testing.CliRunner. Commands that
read stored state get Valkey storage backed by fakeredis by patching the
storage helper used by the CLI.
"""

import json

import pytest
from typer.testing import CliRunner

from xdomain.app import app
from xdomain.core.identity import IdentityStore
from xdomain.core.models import LogCategory, TrackingLogEntry
from xdomain.core.tracking_log import TrackingLog
from xdomain.infrastructure.storage import create_storage_pair
from xdomain.utils.config import Settings, StorageSettings

runner = CliRunner()

SITE_A_ORIGIN = "http://site-a.local:3001"


@pytest.fixture()
def valkey_pair(monkeypatch, fake_redis):
    """Route CLI storage through fakeredis; returns a factory for seeding state."""

    def factory(origin, token):
        return create_storage_pair(
            origin, token, StorageSettings(backend="valkey"), client=fake_redis
        )

    monkeypatch.setattr("xdomain.cli.shared.create_storage_pair", factory)
    return factory


# ==============================================================================
# sites
# ==============================================================================


class TestSitesCommands:
    """Tests for `xdomain sites`."""

    def test_list_json(self):
        result = runner.invoke(app, ["sites", "list", "--json"])
        assert result.exit_code == 0
        sites = json.loads(result.output)
        assert [s["name"] for s in sites] == ["Site A", "Site B", "Site C"]
        assert sites[0]["cross_domain_domains"] == ["site-a.local:3001", "site-b.local:3002"]

    def test_resolve_known_host(self):
        result = runner.invoke(app, ["sites", "resolve", "site-b.local:3002"])
        assert result.exit_code == 0
        assert "Site B" in result.output

    def test_resolve_unknown_host(self):
        result = runner.invoke(app, ["sites", "resolve", "nowhere.example"])
        assert result.exit_code == 1
        assert "No site configured" in result.output


# ==============================================================================
# link
# ==============================================================================


class TestLinkCommands:
    """Tests for `xdomain link`."""

    def test_decorate(self):
        result = runner.invoke(
            app,
            [
                "link",
                "decorate",
                "http://site-b.local:3002/page?foo=bar",
                "-v",
                "VID-abc-123",
                "-t",
                "42",
            ],
        )
        assert result.exit_code == 0
        assert result.output.strip() == (
            "http://site-b.local:3002/page?foo=bar"
            "&adobe_mc=MCMID%3DVID-abc-123%7CMCORGID%3Dtest-org%40AdobeOrg%7CTS%3D42"
            "&MCID=VID-abc-123&MCORGID=test-org%40AdobeOrg&TS=42"
        )

    def test_decorate_malformed_url(self):
        result = runner.invoke(app, ["link", "decorate", "http://[::1", "-v", "VID-1"])
        assert result.exit_code == 1
        assert "Cannot decorate" in result.output

    def test_decode_json(self):
        url = "http://site-b.local:3002/?adobe_mc=MCID%3DVID-xyz%7CGARBAGE%7CMCORGID%3Dacme"
        result = runner.invoke(app, ["link", "decode", url, "--json"])
        assert result.exit_code == 0
        decoded = json.loads(result.output)
        assert decoded["visitor_id"] == "VID-xyz"
        assert decoded["skipped"] == ["GARBAGE"]

    def test_decode_without_identity(self):
        result = runner.invoke(app, ["link", "decode", "http://site-b.local:3002/"])
        assert result.exit_code == 0
        assert "No visitor ID" in result.output


# ==============================================================================
# simulate
# ==============================================================================


class TestSimulateCommand:
    """Tests for `xdomain simulate`."""

    def test_json_journey(self):
        result = runner.invoke(app, ["simulate", "Site A", "Site B", "Site C", "--json"])
        assert result.exit_code == 0
        report = json.loads(result.output)

        hops = report["hops"]
        assert [h["site"] for h in hops] == ["Site A", "Site B", "Site C"]
        assert hops[1]["visitorId"] == hops[0]["visitorId"]
        assert hops[2]["visitorId"] != hops[0]["visitorId"]
        assert [b["type"] for b in report["beacons"]] == ["pageView"] * 3

    def test_table_output(self):
        result = runner.invoke(app, ["simulate", "Site A", "Site B"])
        assert result.exit_code == 0
        assert "Visitor identity preserved across 2 page(s)" in result.output

    def test_unknown_site(self):
        result = runner.invoke(app, ["simulate", "Site Z"])
        assert result.exit_code == 1
        assert "Unknown site" in result.output


# ==============================================================================
# state / log
# ==============================================================================


class TestStateCommands:
    """Tests for `xdomain state` and `xdomain log`."""

    def seed(self, factory):
        local, session = factory(SITE_A_ORIGIN, "cli")
        tracking_log = TrackingLog(local)
        identity = IdentityStore(local, session, tracking_log=tracking_log)
        identity.adopt_visitor_id("VID-seeded-1", "test")
        identity.get_or_create_session_id()
        identity.record_first_touch_if_absent("Site A")
        tracking_log.append(TrackingLogEntry(category=LogCategory.SYSTEM, message="seeded entry"))
        return identity

    def test_show_json(self, valkey_pair):
        identity = self.seed(valkey_pair)
        result = runner.invoke(app, ["state", "show", "Site A", "--json"])

        assert result.exit_code == 0
        state = json.loads(result.output)
        assert state["visitorId"] == "VID-seeded-1"
        assert state["sessionId"] == identity.session_id
        assert state["firstTouch"]["site"] == "Site A"
        assert state["logEntries"] == 1

    def test_show_by_host(self, valkey_pair):
        self.seed(valkey_pair)
        result = runner.invoke(app, ["state", "show", "site-a.local:3001", "--json"])
        assert json.loads(result.output)["site"] == "Site A"

    def test_log_show_json(self, valkey_pair):
        self.seed(valkey_pair)
        result = runner.invoke(app, ["log", "show", "Site A", "--json"])
        assert result.exit_code == 0
        assert [e["message"] for e in json.loads(result.output)] == ["seeded entry"]

    def test_reset(self, valkey_pair):
        self.seed(valkey_pair)
        result = runner.invoke(app, ["state", "reset", "Site A", "-y"])
        assert result.exit_code == 0

        state = json.loads(runner.invoke(app, ["state", "show", "Site A", "--json"]).output)
        assert state["visitorId"] is None
        assert state["sessionId"] is None
        assert state["firstTouch"] is None
        assert state["logEntries"] == 0

    def test_reset_aborted_without_confirmation(self, valkey_pair):
        self.seed(valkey_pair)
        result = runner.invoke(app, ["state", "reset", "Site A"], input="n\n")
        assert result.exit_code == 1

        state = json.loads(runner.invoke(app, ["state", "show", "Site A", "--json"]).output)
        assert state["visitorId"] == "VID-seeded-1"

    def test_unknown_site(self):
        result = runner.invoke(app, ["state", "show", "Site Z"])
        assert result.exit_code == 1
        assert "Unknown site" in result.output

    def test_memory_backend_warns(self):
        result = runner.invoke(app, ["state", "show", "Site A"])
        assert result.exit_code == 0
        assert "state does not persist" in result.output


# ==============================================================================
# config
# ==============================================================================


class TestConfigCommand:
    """Tests for `xdomain config show`."""

    def test_json(self):
        result = runner.invoke(app, ["config", "show", "--json"])
        assert result.exit_code == 0
        config = json.loads(result.output)
        assert config["analytics"]["effective_org_id"] == "test-org@AdobeOrg"
        assert config["storage"]["backend"] == "memory"
        assert set(config["analytics"]["sites"]) == {"Site A", "Site B", "Site C"}

    def test_human_readable(self):
        result = runner.invoke(app, ["config", "show"])
        assert result.exit_code == 0
        assert "Configuration" in result.output
        assert "(placeholder)" in result.output

    def test_valkey_status(self, monkeypatch):
        settings = Settings(storage=StorageSettings(backend="valkey"))
        monkeypatch.setattr("xdomain.cli.config.get_settings", lambda: settings)
        monkeypatch.setattr("xdomain.cli.config.check_valkey_connection", lambda: False)

        result = runner.invoke(app, ["config", "show"])

        assert result.exit_code == 0
        assert "unreachable" in result.output
