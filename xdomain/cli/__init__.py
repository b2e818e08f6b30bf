# ==============================================================================
# CLI Commands Module
# ==============================================================================
"""
CLI commands for cross-domain tracking.

Commands are organized into separate modules for maintainability:
- shared.py: Common utilities, constants, and helpers
- sites.py: Site family listing and host resolution
- link.py: Link decoration and identity decoding
- simulate.py: Multi-site journey simulation
- state.py: Stored identity and tracking log
- config.py: Configuration display
"""

from xdomain.cli.shared import (
    # Constants
    DEFAULT_SESSION_TOKEN,
    # Classes
    Colors,
    Icons,
    # Aliases
    C,
    I,
    # Helpers
    find_site,
    get_resolver,
    open_storages,
    setup_logging,
    site_origin,
    warn_if_ephemeral,
)

__all__ = [
    # Constants
    "DEFAULT_SESSION_TOKEN",
    # Classes
    "Colors",
    "Icons",
    # Aliases
    "C",
    "I",
    # Helpers
    "find_site",
    "get_resolver",
    "open_storages",
    "setup_logging",
    "site_origin",
    "warn_if_ephemeral",
]
