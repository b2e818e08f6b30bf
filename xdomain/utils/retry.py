# ==============================================================================
# Retry Configuration
# ==============================================================================
"""
Retry policy for storage backends.

Identity storage sits on the page-load path, so only a light policy is
offered: a few quick attempts with exponential backoff, after which the error
reaches the caller and identity degrades to ephemeral storage.
"""

import logging

from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

STORAGE_RETRY_ATTEMPTS = 3
STORAGE_BACKOFF_MIN = 0.1  # seconds
STORAGE_BACKOFF_MAX = 1  # seconds

# Retries performed inside redis-py before tenacity sees the error
VALKEY_RETRIES = 2

REDIS_RETRY_EXCEPTIONS = (RedisConnectionError, RedisTimeoutError)


def _storage_retry_logger(logger: logging.Logger):
    def _before_sleep(retry_state: RetryCallState) -> None:
        error = retry_state.outcome.exception() if retry_state.outcome else None
        operation = getattr(retry_state.fn, "__name__", "storage call")
        logger.warning(
            "Storage %s failed (attempt %d of %d), backing off %.2fs: %s",
            operation,
            retry_state.attempt_number,
            STORAGE_RETRY_ATTEMPTS,
            retry_state.next_action.sleep if retry_state.next_action else 0.0,
            error,
        )

    return _before_sleep


def retry_light(exception_types: tuple[type[Exception], ...], logger: logging.Logger):
    """
    Build the light retry decorator for a storage call.

    The last error is re-raised unchanged once attempts run out.

    Args:
        exception_types: Exception types worth retrying
        logger: Logger receiving one warning per retry
    """
    return retry(
        stop=stop_after_attempt(STORAGE_RETRY_ATTEMPTS),
        wait=wait_exponential(
            multiplier=STORAGE_BACKOFF_MIN, min=STORAGE_BACKOFF_MIN, max=STORAGE_BACKOFF_MAX
        ),
        retry=retry_if_exception_type(exception_types),
        before_sleep=_storage_retry_logger(logger),
        reraise=True,
    )
