# ==============================================================================
# Cross-Domain Tracking CLI
# ==============================================================================
"""
Command-line interface for cross-domain visitor identity tracking.

Usage:
    xdomain --help
    xdomain config show
    xdomain sites list
    xdomain sites resolve site-a.local:3001
    xdomain link decorate "http://site-b.local:3002/" -v VID-abc-123
    xdomain link decode "http://site-b.local:3002/?MCID=VID-abc-123"
    xdomain simulate "Site A" "Site B" "Site C"
    xdomain state show "Site A"
    xdomain state reset "Site A" -y
    xdomain log show "Site A"
"""

import logging
import os

import typer

# ==============================================================================
# App Configuration
# ==============================================================================
# Set consistent terminal width for help output formatting
if "COLUMNS" not in os.environ:
    os.environ["COLUMNS"] = "115"

logging.getLogger("redis").setLevel(logging.WARNING)

app = typer.Typer(
    name="xdomain",
    help="Cross-domain visitor identity tracking CLI",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

sites_app = typer.Typer(
    help="Site family operations",
    no_args_is_help=True,
)
app.add_typer(sites_app, name="sites")

# Register sites commands from cli.sites module
from xdomain.cli.sites import sites_list, sites_resolve

sites_app.command("list")(sites_list)
sites_app.command("resolve")(sites_resolve)

link_app = typer.Typer(
    help="Link decoration and decoding",
    no_args_is_help=True,
)
app.add_typer(link_app, name="link")

# Register link commands from cli.link module
from xdomain.cli.link import link_decode, link_decorate

link_app.command("decorate")(link_decorate)
link_app.command("decode")(link_decode)

state_app = typer.Typer(
    help="Stored identity operations",
    no_args_is_help=True,
)
app.add_typer(state_app, name="state")

log_app = typer.Typer(
    help="Tracking log operations",
    no_args_is_help=True,
)
app.add_typer(log_app, name="log")

# Register state and log commands from cli.state module
from xdomain.cli.state import log_show, state_reset, state_show

state_app.command("show")(state_show)
state_app.command("reset")(state_reset)
log_app.command("show")(log_show)

config_app = typer.Typer(
    help="Configuration management",
    no_args_is_help=True,
)
app.add_typer(config_app, name="config")

# Register config commands from cli.config module
from xdomain.cli.config import config_show

config_app.command("show")(config_show)

# Simulate command is imported from xdomain.cli.simulate
from xdomain.cli.simulate import simulate

app.command("simulate")(simulate)


# ==============================================================================
# Entry Point
# ==============================================================================


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
