# ==============================================================================
# Valkey Storage Implementation
# ==============================================================================
"""
Valkey/Redis implementation of the KeyValueStorage interface.

Each storage instance owns one namespace:
    xdomain:{origin}:local:{key}               long-lived scope
    xdomain:{origin}:session:{token}:{key}     session scope (expires)

Session-scoped keys carry a TTL that is refreshed on every read and write,
so an idle session expires the way a closed tab would.

Transient connection errors are retried briefly. Every redis error that
remains, including server rejections such as OOM or READONLY, is surfaced as
StorageUnavailableError so callers can degrade. OOM maps to
StorageQuotaExceededError.
"""

import logging
import re

import redis
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError, ResponseError
from redis.exceptions import TimeoutError as RedisTimeoutError
from redis.retry import Retry

from xdomain.base.storage import (
    KeyValueStorage,
    StorageQuotaExceededError,
    StorageUnavailableError,
)
from xdomain.utils.config import get_settings
from xdomain.utils.retry import REDIS_RETRY_EXCEPTIONS, VALKEY_RETRIES, retry_light

logger = logging.getLogger(__name__)

KEY_PREFIX = "xdomain"

# Prefix of the error returned for writes once maxmemory is reached
OOM_ERROR_PREFIX = "OOM"


def get_valkey_client(url: str | None = None, socket_timeout: int = 5) -> redis.Redis:
    """
    Get a Valkey/Redis client connection.

    Configured with:
    - short socket timeouts (storage sits on the page-load path)
    - a couple of automatic retries with exponential backoff
    - health check interval to keep connections alive

    Args:
        url: Connection URL. If None, uses settings.
        socket_timeout: Socket timeout in seconds (default: 5)

    Returns:
        redis.Redis client instance
    """
    if url is None:
        url = get_settings().valkey.url

    retry = Retry(ExponentialBackoff(cap=2, base=0.1), retries=VALKEY_RETRIES)

    return redis.from_url(
        url,
        decode_responses=True,
        socket_timeout=socket_timeout,
        socket_connect_timeout=socket_timeout,
        retry=retry,
        retry_on_error=[RedisTimeoutError, RedisConnectionError],
        health_check_interval=30,
    )


def local_namespace(origin: str) -> str:
    """Namespace of the long-lived scope of origin."""
    return f"{KEY_PREFIX}:{origin}:local"


def session_namespace(origin: str, session_token: str) -> str:
    """Namespace of one session scope of origin."""
    return f"{KEY_PREFIX}:{origin}:session:{session_token}"


class ValkeyStorage(KeyValueStorage):
    """
    Valkey/Redis-backed key/value storage for one origin and scope.

    Args:
        namespace: Key prefix for this scope (see local_namespace/session_namespace)
        client: Redis client instance. If None, creates a new connection.
        ttl_seconds: Sliding expiry for every key; None for no expiry
    """

    def __init__(
        self,
        namespace: str,
        client: redis.Redis | None = None,
        ttl_seconds: int | None = None,
    ):
        self.namespace = namespace
        self.ttl_seconds = ttl_seconds
        self._client = client or get_valkey_client()

    @property
    def client(self) -> redis.Redis:
        """Get the underlying Redis client for advanced operations."""
        return self._client

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def _call(self, operation, *args):
        def _execute():
            return operation(*args)

        _execute.__name__ = getattr(operation, "__name__", "call")
        try:
            return retry_light(REDIS_RETRY_EXCEPTIONS, logger)(_execute)()
        except ResponseError as e:
            if str(e).startswith(OOM_ERROR_PREFIX):
                raise StorageQuotaExceededError(f"Valkey out of memory: {e}") from e
            raise StorageUnavailableError(f"Valkey rejected command: {e}") from e
        except RedisError as e:
            raise StorageUnavailableError(f"Valkey unavailable: {e}") from e

    def get(self, key: str) -> str | None:
        full_key = self._key(key)
        value = self._call(self._client.get, full_key)
        if value is not None and self.ttl_seconds is not None:
            self._call(self._client.expire, full_key, self.ttl_seconds)
        return value

    def set(self, key: str, value: str) -> None:
        full_key = self._key(key)
        if self.ttl_seconds is not None:
            self._call(self._client.setex, full_key, self.ttl_seconds, value)
        else:
            self._call(self._client.set, full_key, value)

    def delete(self, key: str) -> bool:
        return self._call(self._client.delete, self._key(key)) > 0

    def keys(self) -> list[str]:
        prefix = f"{self.namespace}:"
        pattern = re.sub(r"([*?\[\]\\])", r"\\\1", prefix) + "*"
        found = self._call(lambda: list(self._client.scan_iter(pattern)))
        return [k[len(prefix):] for k in found]

    def ping(self) -> bool:
        """
        Check if the store is reachable.

        Returns:
            True if ping succeeds, False otherwise
        """
        try:
            return bool(self._client.ping())
        except RedisError:
            return False

    def close(self) -> None:
        """Close the connection."""
        self._client.close()


def check_valkey_connection() -> bool:
    """
    Check if Valkey is reachable.

    Returns:
        True if Valkey responds to ping, False otherwise
    """
    try:
        client = get_valkey_client(socket_timeout=2)
        client.ping()
        client.close()
        return True
    except RedisError:
        return False
