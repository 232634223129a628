"""
Bundled verse collections shown on the gate.

Each translation is a static list of (text, reference) pairs in its own
module. Swapping translations is a settings change only.
"""

import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import config
from verses import kjv, web

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Verse:
    """One verse: its text and its reference (e.g. "Psalm 23:1")."""
    text: str
    reference: str

    def format(self) -> str:
        """Text as rendered on the gate."""
        return f"\"{self.text}\"\n\n— {self.reference}"


_BUNDLED: Dict[str, Sequence[Tuple[str, str]]] = {
    "KJV": kjv.VERSES,
    "WEB": web.VERSES,
}


class VerseCollection:
    """
    Random verse selection per translation.

    Unknown translations fall back to config.DEFAULT_TRANSLATION.
    """

    def __init__(
        self,
        collections: Optional[Dict[str, Sequence[Tuple[str, str]]]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        source = collections if collections is not None else _BUNDLED
        self._verses: Dict[str, List[Verse]] = {
            name.upper(): [Verse(text, reference) for text, reference in pairs]
            for name, pairs in source.items()
        }
        self._rng = rng or random.Random()

    @property
    def translations(self) -> List[str]:
        return sorted(self._verses)

    def get_verses(self, translation: str) -> List[Verse]:
        """All verses for a translation (default translation if unknown)."""
        key = (translation or "").upper()
        if key not in self._verses or not self._verses[key]:
            if key:
                logger.warning(f"No verses bundled for '{translation}', using {config.DEFAULT_TRANSLATION}")
            key = config.DEFAULT_TRANSLATION
        return list(self._verses.get(key, []))

    def select_random(self, translation: str) -> Verse:
        """
        Pick one verse pseudo-randomly.

        Raises:
            LookupError: If neither the requested nor the default translation has verses.
        """
        verses = self.get_verses(translation)
        if not verses:
            raise LookupError(f"No verses available for '{translation}'")
        return self._rng.choice(verses)


__all__ = ["Verse", "VerseCollection"]
