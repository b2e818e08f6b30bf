# ==============================================================================
# Storage Infrastructure
# ==============================================================================
"""
Storage implementations for the ports-and-adapters architecture.

Available implementations:
- InMemoryStorage: dict-backed, optional quota emulation
- ValkeyStorage: Valkey/Redis-backed, namespaced per origin and scope
"""

from xdomain.infrastructure.storage.factory import create_storage_pair
from xdomain.infrastructure.storage.memory import InMemoryStorage
from xdomain.infrastructure.storage.valkey import (
    ValkeyStorage,
    check_valkey_connection,
    get_valkey_client,
    local_namespace,
    session_namespace,
)

__all__ = [
    "InMemoryStorage",
    "ValkeyStorage",
    "check_valkey_connection",
    "create_storage_pair",
    "get_valkey_client",
    "local_namespace",
    "session_namespace",
]
