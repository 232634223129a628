"""
Daily open counter for Verse Gate.

Counts how many times each blocked app was gated per calendar day. The
count is keyed by (identifier, ISO date), so a new day starts at zero
simply because the key changes; old days are never rewritten.

Counts only ever grow: one increment per gate presentation, never per
monitor tick.
"""

import logging
from datetime import date
from typing import Callable, Dict, Optional

import config
from storage.prefs_store import PrefsStore

logger = logging.getLogger(__name__)


def _count_key(identifier: str, day: date) -> str:
    return f"{config.KEY_APP_COUNT_PREFIX}{identifier}_{day.isoformat()}"


def _as_count(value) -> int:
    """Stored count as a non-negative int (malformed -> 0)."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        return 0
    return value


class UsageCounterStore:
    """
    Durable per-day open counts.

    The day is taken from an injectable callable so tests can cross
    midnight without waiting for it.
    """

    def __init__(self, store: PrefsStore, today: Callable[[], date] = date.today):
        """Initialize the counter on top of the shared prefs store."""
        self.store = store
        self.today = today

    def increment(self, identifier: str, day: Optional[date] = None) -> int:
        """
        Record one gate presentation for identifier (thread-safe).

        Args:
            identifier: Gated application identifier
            day: Calendar day to count against (default: today)

        Returns:
            The count after the increment, or the unchanged count if the
            write did not persist.
        """
        day = day or self.today()
        key = _count_key(identifier, day)
        new_count = self.store.update(key, lambda current: _as_count(current) + 1, default=0)
        if new_count is None:
            logger.error(f"Could not record open of {identifier} for {day.isoformat()}")
            return self.get_count(identifier, day)
        logger.debug(f"{identifier} opened {new_count} time(s) on {day.isoformat()}")
        return new_count

    def get_count(self, identifier: str, day: Optional[date] = None) -> int:
        """Get the open count for identifier on day (default: today)."""
        day = day or self.today()
        return _as_count(self.store.get(_count_key(identifier, day)))

    def get_counts_for_day(self, day: Optional[date] = None) -> Dict[str, int]:
        """
        Get every app's count for one day.

        Returns:
            Mapping identifier -> count for the day (apps with no opens omitted).
        """
        day = day or self.today()
        suffix = f"_{day.isoformat()}"
        prefix = config.KEY_APP_COUNT_PREFIX
        counts: Dict[str, int] = {}
        for key in self.store.keys(prefix):
            if not key.endswith(suffix):
                continue
            identifier = key[len(prefix):-len(suffix)]
            count = _as_count(self.store.get(key))
            if identifier and count:
                counts[identifier] = count
        return counts


def format_open_count(app_name: str, count: int) -> str:
    """Display line shown on the gate, e.g. "You've opened Discord 2 times today"."""
    times_text = "time" if count == 1 else "times"
    return f"You've opened {app_name} {count} {times_text} today"
