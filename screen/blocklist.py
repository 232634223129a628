"""
Block list management for the foreground gate.

The block list is a durable set of application identifiers stored under a
single key. All mutations go through one atomic read-modify-write so the
monitor never sees a partially edited list.
"""

import logging
from typing import Iterable, Optional, Set

import config
from storage.prefs_store import PrefsStore

logger = logging.getLogger(__name__)


def _normalise(identifier: str) -> str:
    return identifier.strip()


def _coerce_set(value) -> Set[str]:
    """Turn a stored value into a set of identifiers (malformed -> empty)."""
    if value is None:
        return set()
    if not isinstance(value, (list, tuple, set)):
        logger.warning(f"Ignoring malformed block list value: {value!r}")
        return set()
    return {item for item in value if isinstance(item, str) and item}


class BlocklistManager:
    """
    Manages the persisted set of blocked application identifiers.

    The gate's own identifier is never reported as blocked, even if a
    settings screen stored it by mistake.
    """

    def __init__(self, store: PrefsStore, self_id: Optional[str] = None):
        """
        Initialize the block list manager.

        Args:
            store: Shared prefs store
            self_id: Identifier of our own UI (default: config.SELF_APP_ID)
        """
        self.store = store
        self.self_id = self_id if self_id is not None else config.SELF_APP_ID

    def get_blocked_apps(self) -> Set[str]:
        """
        Get the current block list.

        Returns:
            Set of blocked identifiers, excluding our own identifier.
        """
        blocked = _coerce_set(self.store.get(config.KEY_BLOCKED_APPS))
        blocked.discard(self.self_id)
        return blocked

    def set_blocked_apps(self, identifiers: Iterable[str]) -> bool:
        """
        Replace the whole block list.

        Args:
            identifiers: Identifiers to block

        Returns:
            True if saved successfully, False otherwise
        """
        apps = sorted({_normalise(i) for i in identifiers if i and _normalise(i)})
        saved = self.store.set(config.KEY_BLOCKED_APPS, apps)
        if saved:
            logger.info(f"Block list replaced ({len(apps)} apps)")
        return saved

    def add_blocked_app(self, identifier: str) -> bool:
        """
        Add an application to the block list.

        Args:
            identifier: Application identifier (e.g., "Discord", "steam")

        Returns:
            True if the app is blocked after the call, False if the write failed
            or the identifier is empty
        """
        identifier = _normalise(identifier)
        if not identifier:
            return False
        if identifier == self.self_id:
            logger.warning(f"Refusing to block our own app: {identifier}")
            return False

        def _add(current):
            apps = _coerce_set(current)
            apps.add(identifier)
            return sorted(apps)

        if self.store.update(config.KEY_BLOCKED_APPS, _add, default=[]) is None:
            return False
        logger.info(f"Added blocked app: {identifier}")
        return True

    def remove_blocked_app(self, identifier: str) -> bool:
        """
        Remove an application from the block list.

        Args:
            identifier: Application identifier to unblock

        Returns:
            True if the write succeeded (also when it was not blocked)
        """
        identifier = _normalise(identifier)

        def _remove(current):
            apps = _coerce_set(current)
            apps.discard(identifier)
            return sorted(apps)

        if self.store.update(config.KEY_BLOCKED_APPS, _remove, default=[]) is None:
            return False
        logger.info(f"Removed blocked app: {identifier}")
        return True

    def is_blocked(self, identifier: Optional[str]) -> bool:
        """Check a single identifier against the block list (no allowance logic)."""
        if not identifier:
            return False
        return identifier in self.get_blocked_apps()
