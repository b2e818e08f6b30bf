# ==============================================================================
# Infrastructure Adapters
# ==============================================================================
"""
Adapters for the ports in xdomain.base (ports-and-adapters architecture).

- storage/ - KeyValueStorage adapters (in-memory, Valkey/Redis)
- sinks/ - TrackingSink adapters (in-memory recorder, rich console)
"""

from xdomain.infrastructure.sinks import ConsoleSink, RecordingSink
from xdomain.infrastructure.storage import (
    InMemoryStorage,
    ValkeyStorage,
    check_valkey_connection,
    create_storage_pair,
)

__all__ = [
    # Sinks
    "ConsoleSink",
    "RecordingSink",
    # Storage
    "InMemoryStorage",
    "ValkeyStorage",
    "check_valkey_connection",
    "create_storage_pair",
]
