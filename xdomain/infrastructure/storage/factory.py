# ==============================================================================
# Storage Factory
# ==============================================================================
"""
Factory function for the per-origin storage pair used by a tracking context.

The backend is selected by the XDOMAIN_STORAGE_BACKEND setting.
"""

import redis

from xdomain.base.storage import KeyValueStorage
from xdomain.utils.config import StorageSettings, get_settings


def create_storage_pair(
    origin: str,
    session_token: str,
    settings: StorageSettings | None = None,
    client: redis.Redis | None = None,
) -> tuple[KeyValueStorage, KeyValueStorage]:
    """
    Create the long-lived and session-scoped storages for origin.

    - "memory" (default): fresh in-memory storages (state dies with the process)
    - "valkey": namespaced Valkey storages; the session scope expires after
      session_ttl_minutes of inactivity

    Args:
        origin: Origin (scheme://host[:port]) the storages belong to
        session_token: Identifies the browsing session (tab)
        settings: Storage settings (default: from application settings)
        client: Redis client to share between storages (valkey backend only)

    Returns:
        Tuple of (local_storage, session_storage)

    Raises:
        ValueError: If an unknown backend is configured
    """
    settings = settings or get_settings().storage

    match settings.backend:
        case "memory":
            from xdomain.infrastructure.storage.memory import InMemoryStorage

            return InMemoryStorage(), InMemoryStorage()
        case "valkey":
            from xdomain.infrastructure.storage.valkey import (
                ValkeyStorage,
                get_valkey_client,
                local_namespace,
                session_namespace,
            )

            client = client or get_valkey_client()
            return (
                ValkeyStorage(local_namespace(origin), client=client),
                ValkeyStorage(
                    session_namespace(origin, session_token),
                    client=client,
                    ttl_seconds=settings.session_ttl_minutes * 60,
                ),
            )
        case _:
            raise ValueError(
                f"Unknown storage backend: '{settings.backend}'.\nValid options are: memory, valkey"
            )
