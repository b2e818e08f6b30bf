# ==============================================================================
# Simulate Command
# ==============================================================================
"""
Journey simulation command for the cross-domain tracking CLI.

Walks a simulated browser through the configured sites, following the links
each page renders, and reports the identity observed on every hop.
"""

import json
from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from xdomain.base.storage import StorageUnavailableError
from xdomain.cli.shared import C, I, setup_logging
from xdomain.infrastructure.sinks import ConsoleSink, RecordingSink, log_table
from xdomain.simulation import BrowserSimulator, run_journey


def _hop_record(context) -> dict:
    return {
        "url": context.page.url,
        "site": context.site.name or None,
        "visitorId": context.visitor_id,
        "sessionId": context.session_id,
        "firstTouchSite": context.first_touch_site,
    }


# ==============================================================================
# Commands
# ==============================================================================


def simulate(
    sites: Annotated[
        Optional[list[str]],
        typer.Argument(help="Site names in visiting order (default: all configured sites)"),
    ] = None,
    show_beacons: Annotated[
        bool, typer.Option("--beacons", "-b", help="Print every beacon as it is created")
    ] = False,
    show_log: Annotated[
        bool, typer.Option("--log", "-l", help="Print the tracking log of the last page")
    ] = False,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
    verbose: Annotated[bool, typer.Option("--verbose", help="Enable debug logging")] = False,
) -> None:
    """Simulate a visitor browsing across the site family.

    Each hop clicks the link to the next site. Links between sites in the
    cross-domain domain set carry the visitor ID; other hops start a new
    visitor on the destination origin.

    Examples:
        xdomain simulate
        xdomain simulate "Site A" "Site B" "Site C" --beacons
        xdomain simulate --json
    """
    if verbose:
        setup_logging(verbose=True)

    recorder = RecordingSink()
    sinks = [recorder]
    if show_beacons and not json_output:
        sinks.append(ConsoleSink())

    simulator = BrowserSimulator(sinks=sinks)
    names = sites or [p.name for p in simulator.resolver.profiles]

    try:
        visited = run_journey(simulator, names)
    except KeyError as e:
        print(f"{C.RED}{I.CROSS} {e.args[0]}{C.RESET}")
        raise typer.Exit(1)
    except LookupError as e:
        print(f"{C.RED}{I.CROSS} {e}{C.RESET}")
        raise typer.Exit(1)
    except StorageUnavailableError as e:
        print(f"{C.RED}{I.CROSS} Storage unavailable: {e}{C.RESET}")
        raise typer.Exit(1)

    if json_output:
        print(
            json.dumps(
                {
                    "hops": [_hop_record(ctx) for ctx in visited],
                    "beacons": [b.to_record() for b in reversed(recorder.beacons)],
                },
                indent=2,
            )
        )
        return

    table = Table(title="Journey")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Site", style="bold")
    table.add_column("Visitor ID")
    table.add_column("Session ID")
    table.add_column("First Touch")
    previous = None
    for index, context in enumerate(visited, start=1):
        visitor_id = context.visitor_id or "-"
        if previous is not None and visitor_id != previous:
            visitor_id = f"[yellow]{visitor_id}[/yellow]"
        table.add_row(
            str(index),
            context.site.name or context.page.host,
            visitor_id,
            context.session_id or "-",
            context.first_touch_site or "-",
        )
        previous = context.visitor_id

    console = Console()
    console.print(table)
    if show_log and visited:
        console.print(log_table(visited[-1].log_entries(), title=f"Tracking Log ({names[-1]})"))

    distinct = {ctx.visitor_id for ctx in visited}
    if len(distinct) == 1:
        print(
            f"{C.GREEN}{I.CHECK} Visitor identity preserved across "
            f"{len(visited)} page(s){C.RESET}"
        )
    else:
        print(
            f"{C.BRIGHT_YELLOW}{I.WARN} {len(distinct)} distinct visitor IDs across "
            f"{len(visited)} page(s){C.RESET}"
        )
