"""
Allowance store for Verse Gate.

Holds the two mechanisms that keep a user who passed the gate from being
gated again:

- temporary allowances: identifier -> expiry timestamp, granted on
  "continue" for ALLOWANCE_SECONDS. They cover the gap between the tap and
  the OS actually bringing the app to the foreground.
- the active session: the single identifier the user is currently inside.
  It has no expiry and is cleared when the foreground moves elsewhere.
"""

import logging
import time
from typing import Callable, Dict, Optional

import config
from storage.prefs_store import PrefsStore

logger = logging.getLogger(__name__)


def _allowance_key(identifier: str) -> str:
    return f"{config.KEY_TEMP_ALLOWANCE_PREFIX}{identifier}"


def _as_timestamp(value) -> Optional[float]:
    """Stored expiry as a float, or None when missing or malformed."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _is_live(value, now: float) -> bool:
    expires_at = _as_timestamp(value)
    return expires_at is not None and now < expires_at


class AllowanceStore:
    """
    Durable temporary allowances plus the process-wide active session.

    Expiry is checked at read time; an allowance found expired is deleted
    on discovery so the store does not grow without bound.
    """

    def __init__(
        self,
        store: PrefsStore,
        clock: Callable[[], float] = time.time,
        duration_seconds: float = config.ALLOWANCE_SECONDS,
    ) -> None:
        self.store = store
        self.clock = clock
        self.duration_seconds = duration_seconds

    # ------------------------------------------------------------------
    # Temporary allowances
    # ------------------------------------------------------------------

    def grant(self, identifier: str) -> Optional[float]:
        """
        Grant (or overwrite) a temporary allowance for identifier.

        Returns:
            The expiry timestamp, or None if the write did not persist.
        """
        expires_at = self.clock() + self.duration_seconds
        if not self.store.set(_allowance_key(identifier), expires_at):
            return None
        logger.info(f"Granted {self.duration_seconds:.0f}s allowance for {identifier}")
        return expires_at

    def get_expiry(self, identifier: str) -> Optional[float]:
        """Raw stored expiry for identifier (no expiry check, no cleanup)."""
        return _as_timestamp(self.store.get(_allowance_key(identifier)))

    def has_allowance(self, identifier: str, now: Optional[float] = None) -> bool:
        """
        Check whether identifier currently holds a live allowance.

        Expired or malformed entries are removed as a side effect.
        """
        key = _allowance_key(identifier)
        raw = self.store.get(key)
        if raw is None:
            return False
        now = self.clock() if now is None else now
        if _is_live(raw, now):
            return True
        if self.store.remove_if(key, lambda current: not _is_live(current, now)):
            logger.debug(f"Removed expired allowance for {identifier}")
        return False

    def remove_if_expired(self, identifier: str, now: Optional[float] = None) -> bool:
        """
        Delete identifier's allowance only if it is (still) expired.

        A fresh grant written concurrently is left alone.
        """
        now = self.clock() if now is None else now
        removed = self.store.remove_if(
            _allowance_key(identifier),
            lambda current: not _is_live(current, now),
        )
        if removed:
            logger.debug(f"Removed expired allowance for {identifier}")
        return removed

    def revoke(self, identifier: str) -> bool:
        """Delete an allowance regardless of expiry."""
        return self.store.remove(_allowance_key(identifier))

    def purge_expired(self, now: Optional[float] = None) -> int:
        """
        Remove every expired or malformed allowance.

        Returns:
            Number of entries removed.
        """
        now = self.clock() if now is None else now
        removed = 0
        for key in self.store.keys(config.KEY_TEMP_ALLOWANCE_PREFIX):
            if self.store.remove_if(key, lambda current: not _is_live(current, now)):
                removed += 1
        if removed:
            logger.debug(f"Purged {removed} expired allowance(s)")
        return removed

    def snapshot(self) -> Dict[str, float]:
        """All stored allowances as identifier -> expiry (expired included)."""
        result: Dict[str, float] = {}
        prefix = config.KEY_TEMP_ALLOWANCE_PREFIX
        for key in self.store.keys(prefix):
            expires_at = _as_timestamp(self.store.get(key))
            if expires_at is not None:
                result[key[len(prefix):]] = expires_at
        return result

    # ------------------------------------------------------------------
    # Active session
    # ------------------------------------------------------------------

    def get_active_session(self) -> Optional[str]:
        """Identifier of the app the user is currently inside, if any."""
        value = self.store.get(config.KEY_ACTIVE_SESSION)
        if value is None:
            return None
        if not isinstance(value, str) or not value:
            logger.warning(f"Ignoring malformed active session value: {value!r}")
            return None
        return value

    def set_active_session(self, identifier: str) -> bool:
        """Make identifier the single active session (replaces any other)."""
        saved = self.store.set(config.KEY_ACTIVE_SESSION, identifier)
        if saved:
            logger.info(f"Active session started for {identifier}")
        return saved

    def clear_active_session(self, only_if: Optional[str] = None) -> bool:
        """
        Clear the active session.

        Args:
            only_if: When given, clear only if the session belongs to this identifier.

        Returns:
            True if a session was cleared.
        """
        cleared = []

        def _matches(current) -> bool:
            if only_if is not None and current != only_if:
                return False
            cleared.append(current)
            return True

        if not self.store.remove_if(config.KEY_ACTIVE_SESSION, _matches):
            return False
        logger.info(f"Cleared active session for {cleared[0]}")
        return True
