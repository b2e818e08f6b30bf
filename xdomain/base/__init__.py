# ==============================================================================
# Base Abstract Classes
# ==============================================================================
"""
Abstract base classes defining the ports of the ports-and-adapters architecture.

- KeyValueStorage: per-origin storage (long-lived and session scopes)
- TrackingSink: observers of tracker state and beacons
"""

from xdomain.base.sinks import TrackingSink
from xdomain.base.storage import (
    KeyValueStorage,
    StorageQuotaExceededError,
    StorageUnavailableError,
)

__all__ = [
    "KeyValueStorage",
    "StorageQuotaExceededError",
    "StorageUnavailableError",
    "TrackingSink",
]
