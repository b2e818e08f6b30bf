# ==============================================================================
# Key-Value Storage Abstract Base Class
# ==============================================================================
"""
Abstract interface for per-origin key/value storage.

Mirrors the browser storage model: string keys, string values, one instance
per origin and scope. Two scopes are used by the tracker:
- long-lived ("local"): survives across sessions
- session-lived ("session"): discarded when the tab/session ends

Implementations: in-memory and Valkey/Redis. Callers that must keep working
when storage fails (IdentityStore, TrackingLog) catch StorageUnavailableError
themselves.
"""

from abc import ABC, abstractmethod


class StorageUnavailableError(Exception):
    """Raised when the backing store cannot be read or written."""


class StorageQuotaExceededError(StorageUnavailableError):
    """Raised when a write would exceed the storage quota."""


class KeyValueStorage(ABC):
    """
    Per-origin string key/value storage.

    Reads of missing keys return None. Implementations raise
    StorageUnavailableError when the backend is unreachable or full.
    """

    @abstractmethod
    def get(self, key: str) -> str | None:
        """
        Get a stored value.

        Args:
            key: Storage key

        Returns:
            Stored string, or None if not found
        """
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Store a value, replacing any previous one.

        Args:
            key: Storage key
            value: String value
        """
        ...

    @abstractmethod
    def delete(self, key: str) -> bool:
        """
        Delete a key.

        Args:
            key: Storage key to delete

        Returns:
            True if key was deleted, False if not found
        """
        ...

    @abstractmethod
    def keys(self) -> list[str]:
        """
        List stored keys.

        Returns:
            Keys currently present in this scope
        """
        ...

    def clear(self) -> int:
        """
        Delete every key in this scope.

        Returns:
            Count of keys deleted
        """
        return sum(1 for key in self.keys() if self.delete(key))
