# ==============================================================================
# Shared Utilities for CLI Commands
# ==============================================================================
"""
Shared utilities, constants, and helper functions used across CLI command modules.

This module provides:
- ANSI color codes and status icons
- Logging setup
- Site lookup and storage helpers
"""

import logging

import typer

from xdomain.base.storage import KeyValueStorage, StorageUnavailableError
from xdomain.core.models import SiteProfile
from xdomain.core.sites import SiteResolver, get_site_resolver
from xdomain.infrastructure.storage import create_storage_pair
from xdomain.utils.config import get_settings

# Session token used by CLI commands that inspect stored state
DEFAULT_SESSION_TOKEN = "cli"


# ==============================================================================
# ANSI Colors and Icons
# ==============================================================================


class Colors:
    """ANSI color codes for terminal output."""

    RESET = "\033[0m"
    BOLD = "\033[1m"
    DIM = "\033[2m"

    # Colors
    RED = "\033[31m"
    GREEN = "\033[32m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"

    # Bright colors
    BRIGHT_YELLOW = "\033[93m"


class Icons:
    """Status icons using Unicode symbols."""

    CHECK = "✓"
    CROSS = "✗"
    WARN = "!"
    ARROW = "→"
    LINK = "⇄"


# Module-level aliases for convenience
C, I = Colors, Icons


# ==============================================================================
# Logging
# ==============================================================================


def setup_logging(verbose: bool = False) -> None:
    """
    Configure root logging for a CLI command.

    Args:
        verbose: Log at DEBUG instead of the configured level
    """
    level = logging.DEBUG if verbose else getattr(
        logging, get_settings().log_level.upper(), logging.INFO
    )
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    # Suppress noisy third-party loggers
    logging.getLogger("redis").setLevel(logging.WARNING)


# ==============================================================================
# Site Helpers
# ==============================================================================


def get_resolver() -> SiteResolver:
    """Site resolver built from the current settings."""
    return get_site_resolver()


def find_site(name_or_host: str, resolver: SiteResolver | None = None) -> SiteProfile:
    """
    Look up a configured site by name or host.

    Raises:
        typer.Exit: If no site matches
    """
    resolver = resolver or get_resolver()
    for profile in resolver.profiles:
        if profile.name == name_or_host:
            return profile
    profile = resolver.resolve_current_site(name_or_host)
    if profile is None:
        known = ", ".join(p.name for p in resolver.profiles) or "none"
        print(f"{C.RED}{I.CROSS} Unknown site: {name_or_host}{C.RESET}")
        print(f"  {C.DIM}Configured sites: {known}{C.RESET}")
        raise typer.Exit(1)
    return profile


def site_origin(site: SiteProfile, scheme: str = "http") -> str:
    """Origin a site is served from."""
    return f"{scheme}://{site.domain}"


# ==============================================================================
# Storage Helpers
# ==============================================================================


def open_storages(
    origin: str, session_token: str = DEFAULT_SESSION_TOKEN
) -> tuple[KeyValueStorage, KeyValueStorage]:
    """
    Open the configured storage pair for origin.

    Raises:
        typer.Exit: If the backend is unknown or unreachable
    """
    try:
        return create_storage_pair(origin, session_token)
    except (ValueError, StorageUnavailableError) as e:
        print(f"{C.RED}{I.CROSS} Could not open storage: {e}{C.RESET}")
        raise typer.Exit(1)


def warn_if_ephemeral() -> bool:
    """
    Warn when the memory backend is selected.

    Returns:
        True if stored state does not survive between CLI runs
    """
    if get_settings().storage.backend != "memory":
        return False
    print(
        f"{C.BRIGHT_YELLOW}{I.WARN} Storage backend is 'memory': state does not persist "
        f"between runs{C.RESET}"
    )
    print(f"  {C.DIM}Set XDOMAIN_STORAGE_BACKEND=valkey to inspect stored state.{C.RESET}")
    return True
