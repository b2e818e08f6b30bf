# ==============================================================================
# Console Sink
# ==============================================================================
"""
Sink that renders beacons and tracker state to the terminal with rich.

Used by the CLI simulator as a text stand-in for the browser debug panel.
"""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from xdomain.base.sinks import TrackingSink
from xdomain.core.models import BeaconPayload, LogCategory, TrackerSnapshot

CATEGORY_STYLES = {
    LogCategory.SYSTEM: "dim",
    LogCategory.VISITOR: "cyan",
    LogCategory.SESSION: "blue",
    LogCategory.PAGEVIEW: "green",
    LogCategory.EVENT: "magenta",
    LogCategory.CROSSDOMAIN: "yellow",
    LogCategory.ERROR: "bold red",
}


def snapshot_table(snapshot: TrackerSnapshot, title: str = "Tracking State") -> Table:
    """Build a two-column table describing snapshot."""
    table = Table(title=title, show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")

    site = snapshot.site_context
    table.add_row("Visitor ID", snapshot.visitor_id or "-")
    table.add_row("Session ID", snapshot.session_id or "-")
    table.add_row("First Touch", snapshot.first_touch_site or "-")
    table.add_row("Site", (site.name if site else "") or "-")
    table.add_row("Domain", (site.domain if site else "") or "-")
    table.add_row(
        "Cross-Domain",
        "enabled" if site and site.cross_domain_enabled else "disabled",
    )
    return table


def log_table(entries, title: str = "Tracking Log") -> Table:
    """Build a table of tracking log entries, oldest first."""
    table = Table(title=title)
    table.add_column("Time", style="dim", no_wrap=True)
    table.add_column("Category", no_wrap=True)
    table.add_column("Message")
    for entry in entries:
        style = CATEGORY_STYLES.get(entry.category, "")
        table.add_row(
            entry.timestamp,
            f"[{style}]{entry.category.value}[/{style}]" if style else entry.category.value,
            escape(entry.message),
        )
    return table


class ConsoleSink(TrackingSink):
    """
    Prints each beacon as it is created.

    Args:
        console: Rich console to print to (default: stdout)
        show_updates: Also print a state table on every update
    """

    def __init__(self, console: Console | None = None, show_updates: bool = False):
        self.console = console or Console()
        self.show_updates = show_updates

    def update(self, snapshot: TrackerSnapshot) -> None:
        if self.show_updates:
            self.console.print(snapshot_table(snapshot))

    def add_entry(self, payload: BeaconPayload) -> None:
        record = payload.to_record()
        label = record.get("pageName") or record.get("eventType") or ""
        self.console.print(
            f"[green]beacon[/green] {payload.type.value:<8} "
            f"site={payload.site or '-'} visitor={payload.visitor_id} "
            f"session={payload.session_id} {label}"
        )
