# ==============================================================================
# In-Memory Storage Implementation
# ==============================================================================
"""
In-memory implementation of the KeyValueStorage interface.

Used as the default backend and as the ephemeral fallback when durable
storage is unavailable. Can emulate a storage quota and disabled storage for
exercising the degraded paths.
"""

from xdomain.base.storage import (
    KeyValueStorage,
    StorageQuotaExceededError,
    StorageUnavailableError,
)


class InMemoryStorage(KeyValueStorage):
    """
    Dict-backed key/value storage.

    Args:
        quota_chars: Maximum total size (characters of keys plus values);
                     None for unlimited
        available: When False every operation raises StorageUnavailableError
    """

    def __init__(self, quota_chars: int | None = None, available: bool = True):
        self._data: dict[str, str] = {}
        self.quota_chars = quota_chars
        self.available = available

    def _check_available(self) -> None:
        if not self.available:
            raise StorageUnavailableError("storage is disabled")

    def _size_with(self, key: str, value: str) -> int:
        size = sum(len(k) + len(v) for k, v in self._data.items() if k != key)
        return size + len(key) + len(value)

    def get(self, key: str) -> str | None:
        self._check_available()
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._check_available()
        if self.quota_chars is not None and self._size_with(key, value) > self.quota_chars:
            raise StorageQuotaExceededError(f"quota of {self.quota_chars} characters exceeded")
        self._data[key] = value

    def delete(self, key: str) -> bool:
        self._check_available()
        return self._data.pop(key, None) is not None

    def keys(self) -> list[str]:
        self._check_available()
        return list(self._data)

    def __len__(self) -> int:
        return len(self._data)
