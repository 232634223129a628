"""User-configurable gate settings (countdown length and verse translation)."""

import logging

import config
from storage.prefs_store import PrefsStore

logger = logging.getLogger(__name__)


class GateSettings:
    """
    Read/write access to the gate's durable settings.

    Values are read fresh on every call so a change made in another
    process applies to the next gate session. A session already on screen
    keeps the countdown it started with.
    """

    def __init__(self, store: PrefsStore) -> None:
        self.store = store

    def get_countdown_seconds(self) -> int:
        """
        Get the configured countdown length.

        Returns:
            Positive number of seconds; the default for missing or malformed values.
        """
        value = self.store.get(config.KEY_COUNTDOWN_TIME)
        if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
            if value is not None:
                logger.warning(f"Ignoring malformed countdown_time: {value!r}")
            return config.DEFAULT_COUNTDOWN_SECONDS
        return value

    def set_countdown_seconds(self, seconds: int) -> bool:
        """
        Set the countdown length used by new gate sessions.

        Raises:
            ValueError: If seconds is not a positive integer.
        """
        if isinstance(seconds, bool) or not isinstance(seconds, int) or seconds <= 0:
            raise ValueError("Countdown must be a positive number of seconds")
        if seconds not in config.COUNTDOWN_OPTIONS:
            logger.info(f"Countdown {seconds}s is outside the usual options {config.COUNTDOWN_OPTIONS}")
        saved = self.store.set(config.KEY_COUNTDOWN_TIME, seconds)
        if saved:
            logger.info(f"Countdown set to {seconds}s")
        return saved

    def get_translation(self) -> str:
        """Get the configured verse translation (falls back to the default)."""
        value = self.store.get(config.KEY_BIBLE_VERSION)
        if not isinstance(value, str) or value not in config.TRANSLATIONS:
            if value is not None:
                logger.warning(f"Unknown translation {value!r}, using {config.DEFAULT_TRANSLATION}")
            return config.DEFAULT_TRANSLATION
        return value

    def set_translation(self, translation: str) -> bool:
        """
        Set the verse translation used by new gate sessions.

        Raises:
            ValueError: If the translation is not bundled.
        """
        translation = translation.strip().upper()
        if translation not in config.TRANSLATIONS:
            raise ValueError(
                f"Unknown translation '{translation}'. "
                f"Choose one of: {', '.join(config.TRANSLATIONS)}"
            )
        saved = self.store.set(config.KEY_BIBLE_VERSION, translation)
        if saved:
            logger.info(f"Translation set to {translation}")
        return saved
