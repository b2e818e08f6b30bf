# ==============================================================================
# Identity Store
# ==============================================================================
"""
Get-or-create visitor and session identifiers on per-origin storage.

Storage layout:
- long-lived scope: visitor id, first-touch site, first-touch time
- session scope: session id

Identifiers look like VID-<base36 epoch ms>-<base36 random>. The timestamp
part only makes ids roughly sortable; the random part avoids collisions.
Neither is cryptographically strong, and neither needs to be.

If a storage scope becomes unavailable the store keeps serving identities
from ephemeral in-memory values for the rest of the session.
"""

import logging
import random
import string
import time
from collections.abc import Callable
from datetime import datetime, timezone

from xdomain.base.storage import KeyValueStorage, StorageUnavailableError
from xdomain.core.models import (
    SESSION_ID_PREFIX,
    VISITOR_ID_PREFIX,
    FirstTouchRecord,
    LogCategory,
    SessionIdentity,
    VisitorIdentity,
)
from xdomain.core.tracking_log import TrackingLog

logger = logging.getLogger(__name__)

# Storage keys
VISITOR_ID_KEY = "xdomain_visitor_id"
SESSION_ID_KEY = "xdomain_session_id"
FIRST_TOUCH_SITE_KEY = "xdomain_first_touch_site"
FIRST_TOUCH_TIME_KEY = "xdomain_first_touch_time"

LOCAL = "local"
SESSION = "session"

_BASE36_DIGITS = string.digits + string.ascii_lowercase

LogCallback = Callable[[LogCategory, str, dict], None]


def to_base36(value: int) -> str:
    """Render a non-negative integer in lowercase base 36."""
    if value < 0:
        raise ValueError("value must be non-negative")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def generate_id(
    prefix: str,
    now_ms: int | None = None,
    rng: random.Random | None = None,
) -> str:
    """
    Generate a type-tagged identifier.

    Args:
        prefix: Type tag (e.g. "VID", "SID")
        now_ms: Epoch milliseconds (default: current time)
        rng: Random source (default: module-level random)

    Returns:
        Identifier in the form <prefix>-<base36 timestamp>-<base36 random>
    """
    if now_ms is None:
        now_ms = time.time_ns() // 1_000_000
    suffix = to_base36((rng or random).getrandbits(64))
    return f"{prefix}-{to_base36(now_ms)}-{suffix}"


class IdentityStore:
    """
    Owns the visitor id, session id and first-touch record of one origin.

    All reads and writes of those keys go through this class.
    """

    def __init__(
        self,
        local_storage: KeyValueStorage,
        session_storage: KeyValueStorage,
        tracking_log: TrackingLog | None = None,
        log: LogCallback | None = None,
        clock: Callable[[], float] = time.time,
        rng: random.Random | None = None,
    ):
        """
        Initialize the identity store.

        Args:
            local_storage: Long-lived storage of the current origin
            session_storage: Session-scoped storage of the current origin
            tracking_log: Log cleared together with identity on reset
            log: Callback receiving (category, message, data) log events
            clock: Returns current epoch seconds
            rng: Random source for id suffixes
        """
        self._stores = {LOCAL: local_storage, SESSION: session_storage}
        self._tracking_log = tracking_log
        self._log = log
        self._clock = clock
        self._rng = rng
        self._ephemeral: dict[str, dict[str, str]] = {LOCAL: {}, SESSION: {}}
        self._degraded: set[str] = set()
        self._visitor_id: str | None = None
        self._session_id: str | None = None

    # ==========================================================================
    # Read accessors
    # ==========================================================================

    @property
    def visitor_id(self) -> str | None:
        """Current visitor id, falling back to storage if not loaded yet."""
        return self._visitor_id or self._get(LOCAL, VISITOR_ID_KEY)

    @property
    def session_id(self) -> str | None:
        """Current session id, falling back to storage if not loaded yet."""
        return self._session_id or self._get(SESSION, SESSION_ID_KEY)

    @property
    def degraded(self) -> bool:
        """True once any storage scope has fallen back to memory."""
        return bool(self._degraded)

    def visitor_identity(self) -> VisitorIdentity | None:
        visitor_id = self.visitor_id
        return VisitorIdentity(id=visitor_id) if visitor_id else None

    def session_identity(self) -> SessionIdentity | None:
        session_id = self.session_id
        return SessionIdentity(id=session_id) if session_id else None

    def first_touch(self) -> FirstTouchRecord | None:
        """Stored first-touch record, if any."""
        site = self._get(LOCAL, FIRST_TOUCH_SITE_KEY)
        if not site:
            return None
        return FirstTouchRecord(site=site, timestamp=self._get(LOCAL, FIRST_TOUCH_TIME_KEY))

    # ==========================================================================
    # Get-or-create
    # ==========================================================================

    def get_or_create_visitor_id(self) -> str:
        """Return the stored visitor id, generating and persisting one if absent."""
        visitor_id = self._get(LOCAL, VISITOR_ID_KEY)
        if not visitor_id:
            visitor_id = self._new_id(VISITOR_ID_PREFIX)
            self._set(LOCAL, VISITOR_ID_KEY, visitor_id)
            self._emit(LogCategory.VISITOR, "Generated new visitor ID", {"visitorId": visitor_id})
        else:
            self._emit(
                LogCategory.VISITOR, "Retrieved existing visitor ID", {"visitorId": visitor_id}
            )
        self._visitor_id = visitor_id
        return visitor_id

    def get_or_create_session_id(self) -> str:
        """Return the session id, generating one if the session scope has none."""
        session_id = self._get(SESSION, SESSION_ID_KEY)
        if not session_id:
            session_id = self._new_id(SESSION_ID_PREFIX)
            self._set(SESSION, SESSION_ID_KEY, session_id)
            self._emit(LogCategory.SESSION, "Generated new session ID", {"sessionId": session_id})
        else:
            self._emit(
                LogCategory.SESSION, "Retrieved existing session ID", {"sessionId": session_id}
            )
        self._session_id = session_id
        return session_id

    def record_first_touch_if_absent(self, site_name: str) -> bool:
        """
        Record the first-touch site unless one is already stored.

        Args:
            site_name: Site name (or host for unconfigured sites)

        Returns:
            True if a record was written
        """
        if self._get(LOCAL, FIRST_TOUCH_SITE_KEY):
            return False
        timestamp = (
            datetime.fromtimestamp(self._clock(), timezone.utc)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )
        self._set(LOCAL, FIRST_TOUCH_SITE_KEY, site_name)
        self._set(LOCAL, FIRST_TOUCH_TIME_KEY, timestamp)
        self._emit(LogCategory.VISITOR, "Recorded first touch site", {"firstTouchSite": site_name})
        return True

    def adopt_visitor_id(self, visitor_id: str, source: str) -> None:
        """
        Replace the local visitor id with one received from another origin.

        Args:
            visitor_id: Inbound visitor id
            source: Where the id came from (for the log message)

        Raises:
            ValueError: If visitor_id is empty
        """
        visitor_id = VisitorIdentity(id=visitor_id).id
        self._set(LOCAL, VISITOR_ID_KEY, visitor_id)
        self._visitor_id = visitor_id
        self._emit(
            LogCategory.CROSSDOMAIN, f"Stored visitor ID from {source}", {"visitorId": visitor_id}
        )

    def reset(self) -> None:
        """
        Forget visitor id, first touch, session id and the tracking log.

        Nothing is regenerated; call get_or_create_* again to continue.
        """
        for key in (VISITOR_ID_KEY, FIRST_TOUCH_SITE_KEY, FIRST_TOUCH_TIME_KEY):
            self._delete(LOCAL, key)
        self._delete(SESSION, SESSION_ID_KEY)
        if self._tracking_log is not None:
            self._tracking_log.clear()
        self._visitor_id = None
        self._session_id = None

    # ==========================================================================
    # Storage helpers
    # ==========================================================================

    def _new_id(self, prefix: str) -> str:
        return generate_id(prefix, now_ms=int(self._clock() * 1000), rng=self._rng)

    def _get(self, scope: str, key: str) -> str | None:
        if scope in self._degraded:
            return self._ephemeral[scope].get(key)
        try:
            return self._stores[scope].get(key)
        except StorageUnavailableError as e:
            self._degrade(scope, e)
            return self._ephemeral[scope].get(key)

    def _set(self, scope: str, key: str, value: str) -> None:
        if scope not in self._degraded:
            try:
                self._stores[scope].set(key, value)
                return
            except StorageUnavailableError as e:
                self._degrade(scope, e)
        self._ephemeral[scope][key] = value

    def _delete(self, scope: str, key: str) -> None:
        self._ephemeral[scope].pop(key, None)
        if scope in self._degraded:
            return
        try:
            self._stores[scope].delete(key)
        except StorageUnavailableError as e:
            self._degrade(scope, e)

    def _degrade(self, scope: str, error: Exception) -> None:
        if scope in self._degraded:
            return
        self._degraded.add(scope)
        logger.warning("%s storage unavailable, using in-memory identity: %s", scope, error)
        self._emit(
            LogCategory.ERROR,
            "Storage unavailable, falling back to in-memory identity",
            {"scope": scope, "error": str(error)},
        )

    def _emit(self, category: LogCategory, message: str, data: dict) -> None:
        if self._log is not None:
            self._log(category, message, data)
