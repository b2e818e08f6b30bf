# ==============================================================================
# State Commands
# ==============================================================================
"""
Stored identity and tracking log commands for the cross-domain tracking CLI.

Reads and clears the per-origin state written by tracking contexts. Useful
with the Valkey backend, where state outlives the process that wrote it.
"""

import json
from typing import Annotated

import typer
from rich.console import Console

from xdomain.cli.shared import (
    DEFAULT_SESSION_TOKEN,
    C,
    I,
    find_site,
    open_storages,
    site_origin,
    warn_if_ephemeral,
)
from xdomain.core.identity import IdentityStore
from xdomain.core.models import TrackerSnapshot
from xdomain.core.tracking_log import TrackingLog
from xdomain.infrastructure.sinks import log_table, snapshot_table
from xdomain.utils.config import get_settings

SiteArgument = Annotated[str, typer.Argument(help="Site name or host")]
SessionOption = Annotated[
    str, typer.Option("--session", "-s", help="Session token of the session scope")
]


def _open(site_name: str, session: str) -> tuple:
    site = find_site(site_name)
    local, session_storage = open_storages(site_origin(site), session)
    tracking_log = TrackingLog(local, max_entries=get_settings().storage.log_max_entries)
    identity = IdentityStore(local, session_storage, tracking_log=tracking_log)
    return site, identity, tracking_log


# ==============================================================================
# Commands
# ==============================================================================


def state_show(
    site_name: SiteArgument,
    session: SessionOption = DEFAULT_SESSION_TOKEN,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show the stored identity of a site's origin.

    Examples:
        xdomain state show "Site A"
        xdomain state show site-b.local:3002 --session 3f2a... --json
    """
    site, identity, tracking_log = _open(site_name, session)
    first_touch = identity.first_touch()

    if json_output:
        print(
            json.dumps(
                {
                    "site": site.name,
                    "origin": site_origin(site),
                    "visitorId": identity.visitor_id,
                    "sessionId": identity.session_id,
                    "firstTouch": first_touch.model_dump() if first_touch else None,
                    "logEntries": len(tracking_log.entries()),
                },
                indent=2,
            )
        )
        return

    warn_if_ephemeral()
    snapshot = TrackerSnapshot(
        visitor_id=identity.visitor_id,
        session_id=identity.session_id,
        first_touch_site=first_touch.site if first_touch else None,
        site_context=site,
    )
    Console().print(snapshot_table(snapshot, title=f"Stored State ({site.name})"))


def state_reset(
    site_name: SiteArgument,
    session: SessionOption = DEFAULT_SESSION_TOKEN,
    confirm: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation prompt")] = False,
) -> None:
    """Clear stored identity and the tracking log of a site's origin.

    Nothing is regenerated; the next page load creates new identifiers.

    Examples:
        xdomain state reset "Site A"       # With confirmation prompt
        xdomain state reset "Site A" -y    # Skip confirmation
    """
    site, identity, _ = _open(site_name, session)

    if not confirm:
        typer.confirm(
            f"Clear visitor ID, session ID, first touch and tracking log for {site.name}?",
            abort=True,
        )

    identity.reset()
    print(f"{C.GREEN}{I.CHECK} Tracking data reset for {site.name}{C.RESET}")


def log_show(
    site_name: SiteArgument,
    limit: Annotated[int, typer.Option("--limit", "-n", help="Number of entries to show")] = 20,
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show the persisted tracking log of a site's origin, oldest first.

    Examples:
        xdomain log show "Site A"
        xdomain log show "Site A" -n 100 --json
    """
    site, _, tracking_log = _open(site_name, DEFAULT_SESSION_TOKEN)
    entries = tracking_log.entries()[-limit:] if limit > 0 else []

    if json_output:
        print(json.dumps([e.to_record() for e in entries], indent=2))
        return

    warn_if_ephemeral()
    if not entries:
        print(f"\n  {C.BRIGHT_YELLOW}{I.WARN} No tracking log entries for {site.name}{C.RESET}\n")
        return
    Console().print(log_table(entries, title=f"Tracking Log ({site.name})"))
