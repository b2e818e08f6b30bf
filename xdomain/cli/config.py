# ==============================================================================
# Config Commands
# ==============================================================================
"""
Configuration commands for the cross-domain tracking CLI.
"""

import json
from typing import Annotated

import typer

from xdomain.cli.shared import C, I
from xdomain.infrastructure.storage import check_valkey_connection
from xdomain.utils.config import get_settings


# ==============================================================================
# Commands
# ==============================================================================


def config_show(
    json_output: Annotated[
        bool, typer.Option("--json", "-j", help="Output configuration as JSON")
    ] = False,
) -> None:
    """Display current configuration (includes secrets in JSON mode)."""
    settings = get_settings()
    analytics = settings.analytics

    if json_output:
        config = {
            "analytics": {
                "org_id": analytics.org_id,
                "effective_org_id": analytics.effective_org_id,
                "tracking_server": analytics.tracking_server,
                "tracking_server_secure": analytics.tracking_server_secure,
                "cross_domain_domains": analytics.cross_domain_domains,
                "sites": {
                    name: site.model_dump() for name, site in analytics.sites.items()
                },
            },
            "tags": {
                "url": settings.tags.url,
                "url_dev": settings.tags.url_dev,
                "url_staging": settings.tags.url_staging,
                "async_load": settings.tags.async_load,
                "enable_debug_without_tags": settings.tags.enable_debug_without_tags,
            },
            "storage": {
                "backend": settings.storage.backend,
                "log_max_entries": settings.storage.log_max_entries,
                "session_ttl_minutes": settings.storage.session_ttl_minutes,
            },
            "valkey": {
                "host": settings.valkey.host,
                "port": settings.valkey.port,
                "db": settings.valkey.db,
                "ssl_enabled": settings.valkey.ssl,
                "password": settings.valkey.password,
            },
            "debug": settings.debug,
            "log_level": settings.log_level,
        }
        print(json.dumps(config, indent=2))
        return

    # Human-readable output
    print()
    print(f"{C.BOLD}Configuration{C.RESET}")
    print()

    # Analytics
    print(f"{C.CYAN}Analytics{C.RESET}")
    org_label = analytics.org_id or f"{analytics.effective_org_id} (placeholder)"
    print(f"  Org ID:     {C.WHITE}{org_label}{C.RESET}")
    print(f"  Server:     {C.WHITE}{analytics.tracking_server or '-'}{C.RESET}")
    print(f"  Secure:     {C.WHITE}{analytics.tracking_server_secure or '-'}{C.RESET}")
    for i, domain in enumerate(analytics.cross_domain_domains or ["-"]):
        label = "  Domains:    " if i == 0 else "              "
        print(f"{label}{C.WHITE}{domain}{C.RESET}")
    print()

    # Sites
    print(f"{C.CYAN}Sites{C.RESET}")
    for name, site in analytics.sites.items():
        status = "cross-domain" if site.cross_domain_enabled else "cross-domain disabled"
        print(f"  {name:<11} {C.WHITE}{site.domain or '-'}{C.RESET} {C.DIM}({status}){C.RESET}")
    print()

    # Tags
    print(f"{C.CYAN}Tags{C.RESET}")
    tags_status = settings.tags.url if settings.tags.is_configured else "not configured"
    print(f"  URL:        {C.WHITE}{tags_status}{C.RESET}")
    print(f"  Async:      {C.WHITE}{settings.tags.async_load}{C.RESET}")
    print()

    # Storage
    print(f"{C.CYAN}Storage{C.RESET}")
    print(f"  Backend:    {C.WHITE}{settings.storage.backend}{C.RESET}")
    print(f"  Log cap:    {C.WHITE}{settings.storage.log_max_entries} entries{C.RESET}")
    print(f"  Session:    {C.WHITE}{settings.storage.session_ttl_minutes} minutes{C.RESET}")
    if settings.storage.backend == "valkey":
        valkey_ssl = "enabled" if settings.valkey.ssl else "disabled"
        print(f"  Valkey:     {C.WHITE}{settings.valkey.host}:{settings.valkey.port}{C.RESET}")
        print(f"  SSL:        {C.WHITE}{valkey_ssl}{C.RESET}")
        if check_valkey_connection():
            print(f"  Status:     {C.GREEN}{I.CHECK} reachable{C.RESET}")
        else:
            print(f"  Status:     {C.RED}{I.CROSS} unreachable{C.RESET}")
    print()
