# ==============================================================================
# Sites Commands
# ==============================================================================
"""
Site family commands for the cross-domain tracking CLI.

Lists the configured sites and resolves hosts to site profiles.
"""

import json
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from xdomain.cli.shared import C, I, get_resolver
from xdomain.core.models import SiteProfile


def _profile_record(profile: SiteProfile) -> dict:
    record = profile.model_dump(mode="json")
    record["cross_domain_domains"] = sorted(profile.cross_domain_domains)
    return record


# ==============================================================================
# Commands
# ==============================================================================


def sites_list(
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """List configured sites.

    Examples:
        xdomain sites list
        xdomain sites list --json
    """
    profiles = get_resolver().profiles

    if json_output:
        print(json.dumps([_profile_record(p) for p in profiles], indent=2))
        return

    if not profiles:
        print(f"\n  {C.BRIGHT_YELLOW}{I.WARN} No sites configured{C.RESET}\n")
        return

    table = Table(title="Configured Sites")
    table.add_column("Name", style="bold")
    table.add_column("Domain")
    table.add_column("Cross-Domain", justify="center")
    table.add_column("In Domain Set", justify="center")
    for profile in profiles:
        table.add_row(
            profile.name,
            profile.domain or "-",
            "[green]enabled[/green]" if profile.cross_domain_enabled else "[dim]disabled[/dim]",
            "yes" if profile.domain in profile.cross_domain_domains else "no",
        )
    Console().print(table)


def sites_resolve(
    host: Annotated[str, typer.Argument(help="Host including port, e.g. site-a.local:3001")],
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Resolve a host to its site profile.

    Exits with status 1 when no site is configured for the host.

    Examples:
        xdomain sites resolve site-a.local:3001
    """
    profile = get_resolver().resolve_current_site(host)

    if json_output:
        print(json.dumps(_profile_record(profile) if profile else None, indent=2))
        if profile is None:
            raise typer.Exit(1)
        return

    if profile is None:
        print(f"{C.BRIGHT_YELLOW}{I.WARN} No site configured for host {host}{C.RESET}")
        print(f"  {C.DIM}Cross-domain features are disabled on unconfigured hosts.{C.RESET}")
        raise typer.Exit(1)

    status = "enabled" if profile.cross_domain_enabled else "disabled"
    print(f"{C.GREEN}{I.CHECK}{C.RESET} {host} {I.ARROW} {C.BOLD}{profile.name}{C.RESET}")
    print(f"  Cross-domain:  {C.WHITE}{status}{C.RESET}")
    print(f"  Org ID:        {C.WHITE}{profile.org_id or '-'}{C.RESET}")
