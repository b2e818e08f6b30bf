# ==============================================================================
# Link Commands
# ==============================================================================
"""
Link commands for the cross-domain tracking CLI.

Decorates URLs with identity parameters and decodes identity from URLs,
using the same codec as page initialization.
"""

import json
from typing import Annotated, Optional

import typer

from xdomain.cli.shared import C, I
from xdomain.core.codec import decode_inbound, encode_outbound
from xdomain.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def link_decorate(
    url: Annotated[str, typer.Argument(help="Absolute target URL")],
    visitor_id: Annotated[str, typer.Option("--visitor-id", "-v", help="Visitor ID to carry")],
    org_id: Annotated[
        Optional[str], typer.Option("--org-id", help="Organization ID (default: configured)")
    ] = None,
    timestamp: Annotated[
        Optional[int], typer.Option("--timestamp", "-t", help="Epoch milliseconds (default: now)")
    ] = None,
    analytics_id: Annotated[
        Optional[str], typer.Option("--analytics-id", help="Optional analytics ID (MCAID)")
    ] = None,
) -> None:
    """Print URL decorated with identity parameters.

    Examples:
        xdomain link decorate "http://site-b.local:3002/?foo=bar" -v VID-abc-123
    """
    org_id = org_id or get_settings().analytics.effective_org_id
    try:
        decorated = encode_outbound(
            url, visitor_id, org_id, timestamp_ms=timestamp, analytics_id=analytics_id
        )
    except ValueError as e:
        print(f"{C.RED}{I.CROSS} Cannot decorate {url}: {e}{C.RESET}")
        raise typer.Exit(1)
    print(decorated)


def link_decode(
    url: Annotated[str, typer.Argument(help="URL (or query string) to decode")],
    json_output: Annotated[bool, typer.Option("--json", "-j", help="Output as JSON")] = False,
) -> None:
    """Show the identity carried by a URL.

    Examples:
        xdomain link decode "http://site-b.local:3002/?MCID=VID-abc-123"
        xdomain link decode "adobe_mc=MCMID%3DVID-abc%7CTS%3D1" --json
    """
    inbound = decode_inbound(url)

    if json_output:
        print(json.dumps(inbound.model_dump(mode="json"), indent=2))
        return

    if not inbound.has_visitor_id:
        print(f"{C.BRIGHT_YELLOW}{I.WARN} No visitor ID in URL{C.RESET}")
    else:
        print(f"{C.GREEN}{I.CHECK}{C.RESET} Visitor ID:   {C.BOLD}{inbound.visitor_id}{C.RESET}")
    print(f"  Org ID:       {C.WHITE}{inbound.org_id or '-'}{C.RESET}")
    print(f"  Analytics ID: {C.WHITE}{inbound.analytics_id or '-'}{C.RESET}")
    print(f"  Timestamp:    {C.WHITE}{inbound.timestamp or '-'}{C.RESET}")
    if inbound.skipped:
        print(f"  {C.DIM}Skipped segments: {', '.join(inbound.skipped)}{C.RESET}")
