"""
GateSession - state machine behind one gate interstitial.

COUNTING -> UNLOCKED is driven only by a one-second tick; nothing the user
does can shorten it. In UNLOCKED the user picks one of two terminal
actions:

    abandon()          clear any active session for this app, go home
    continue_to_app()  grant a temporary allowance, start the active
                       session, ask the OS to bring the app forward

The session has no UI dependency. The hosting surface supplies a scheduler
(Tk `after` in the gate window, threading.Timer by default) and listens
through callbacks:

    on_tick(remaining_seconds: int)
    on_unlock()
    on_finish(outcome: Optional[GateOutcome])   # None when torn down externally
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Optional, Protocol

import config
from storage.settings import GateSettings
from tracking.allowances import AllowanceStore
from tracking.daily_stats import UsageCounterStore, format_open_count
from verses import Verse, VerseCollection

logger = logging.getLogger(__name__)


class GatePhase(str, Enum):
    COUNTING = "counting"
    UNLOCKED = "unlocked"


class GateOutcome(str, Enum):
    CONTINUE = "continue"
    ABANDON = "abandon"


class CancelHandle(Protocol):
    def cancel(self) -> None:
        ...


class Scheduler(Protocol):
    """Runs a callback once after a delay; the handle cancels it."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> CancelHandle:
        ...


class LauncherProtocol(Protocol):
    def can_launch(self, identifier: str) -> bool:
        ...

    def launch(self, identifier: str) -> bool:
        ...

    def go_home(self) -> bool:
        ...

    def display_name(self, identifier: str) -> Optional[str]:
        ...


class TimerScheduler:
    """Scheduler backed by daemon threading.Timer objects."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class GateSession:
    """
    One gate interstitial for one identifier.

    Use GateSession.open() to create a session the normal way: it records
    the open in today's counter, picks a verse and snapshots the configured
    countdown, so later settings changes never affect a session on screen.
    """

    def __init__(
        self,
        identifier: str,
        countdown_seconds: int,
        verse: Verse,
        daily_count: int,
        allowances: AllowanceStore,
        launcher: LauncherProtocol,
        scheduler: Optional[Scheduler] = None,
        display_name: Optional[str] = None,
        tick_seconds: float = config.GATE_TICK_SECONDS,
    ) -> None:
        self.identifier = identifier
        self.countdown_seconds = countdown_seconds
        self.remaining_seconds = countdown_seconds
        self.verse = verse
        self.daily_count = daily_count
        self.display_name = display_name or config.UNKNOWN_APP_NAME
        self.phase = GatePhase.COUNTING
        self.outcome: Optional[GateOutcome] = None
        self.is_finished = False

        self.allowances = allowances
        self.launcher = launcher
        self.scheduler: Scheduler = scheduler or TimerScheduler()
        self.tick_seconds = tick_seconds

        self._lock = threading.RLock()
        self._pending: Optional[CancelHandle] = None
        self._started = False

        # ---- Callbacks (set by the presenter) ----
        self.on_tick: Optional[Callable[[int], None]] = None
        self.on_unlock: Optional[Callable[[], None]] = None
        self.on_finish: Optional[Callable[[Optional[GateOutcome]], None]] = None

    @classmethod
    def open(
        cls,
        identifier: str,
        settings: GateSettings,
        counter: UsageCounterStore,
        verses: VerseCollection,
        allowances: AllowanceStore,
        launcher: LauncherProtocol,
        scheduler: Optional[Scheduler] = None,
    ) -> "GateSession":
        """
        Create a session for a fresh gate presentation.

        Increments today's open count exactly once.
        """
        countdown = settings.get_countdown_seconds()
        verse = verses.select_random(settings.get_translation())
        daily_count = counter.increment(identifier)

        display_name = None
        try:
            display_name = launcher.display_name(identifier)
        except Exception as e:
            logger.debug(f"Could not resolve display name for {identifier}: {e}")

        logger.info(f"Gate opened for {identifier} (countdown {countdown}s, opens today: {daily_count})")
        return cls(
            identifier=identifier,
            countdown_seconds=countdown,
            verse=verse,
            daily_count=daily_count,
            allowances=allowances,
            launcher=launcher,
            scheduler=scheduler,
            display_name=display_name,
        )

    # ------------------------------------------------------------------
    # Display helpers
    # ------------------------------------------------------------------

    @property
    def count_text(self) -> str:
        return format_open_count(self.display_name, self.daily_count)

    @property
    def abandon_label(self) -> str:
        return f"I don't wanna use {self.display_name}"

    @property
    def continue_label(self) -> str:
        return f"Continue to {self.display_name}"

    @property
    def is_unlocked(self) -> bool:
        return self.phase == GatePhase.UNLOCKED

    # ------------------------------------------------------------------
    # Countdown
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the countdown. Calling it twice has no effect."""
        with self._lock:
            if self._started or self.is_finished:
                return
            self._started = True
            if self.remaining_seconds <= 0:
                self._unlock()
                return
            self._schedule_tick()

    def _schedule_tick(self) -> None:
        self._pending = self.scheduler.call_later(self.tick_seconds, self._tick)

    def _tick(self) -> None:
        with self._lock:
            if self.is_finished or self.phase != GatePhase.COUNTING:
                return
            self._pending = None
            self.remaining_seconds = max(0, self.remaining_seconds - 1)
            remaining = self.remaining_seconds
            if remaining > 0:
                self._schedule_tick()
        self._notify(self.on_tick, remaining)
        if remaining == 0:
            with self._lock:
                if self.is_finished:
                    return
                self._unlock()

    def _unlock(self) -> None:
        self.phase = GatePhase.UNLOCKED
        logger.debug(f"Gate for {self.identifier} unlocked")
        self._notify(self.on_unlock)

    def _cancel_pending(self) -> None:
        if self._pending is not None:
            try:
                self._pending.cancel()
            except Exception as e:
                logger.debug(f"Could not cancel pending tick: {e}")
            self._pending = None

    # ------------------------------------------------------------------
    # Terminal actions
    # ------------------------------------------------------------------

    def abandon(self) -> Optional[GateOutcome]:
        """
        Leave the app: clear its active session and return to the home surface.

        Returns:
            GateOutcome.ABANDON, or None if the gate is still counting or already finished.
        """
        with self._lock:
            if not self._can_act("abandon"):
                return None
            self._finish(GateOutcome.ABANDON)
        self._go_home()
        self._notify(self.on_finish, GateOutcome.ABANDON)
        return GateOutcome.ABANDON

    def continue_to_app(self) -> Optional[GateOutcome]:
        """
        Let the user in: allowance + active session, then launch the app.

        An app the launcher cannot resolve (e.g. uninstalled) is handled as
        an abandon, with nothing written.

        Returns:
            The outcome, or None if the gate is still counting or already finished.
        """
        with self._lock:
            if not self._can_act("continue"):
                return None

            if not self._launchable():
                logger.warning(f"Cannot launch {self.identifier}; treating continue as abandon")
                self._finish(GateOutcome.ABANDON)
                outcome = GateOutcome.ABANDON
            else:
                if self.allowances.grant(self.identifier) is None:
                    logger.error(f"Allowance for {self.identifier} did not persist")
                if not self.allowances.set_active_session(self.identifier):
                    logger.error(f"Active session for {self.identifier} did not persist")
                self._finish(GateOutcome.CONTINUE)
                outcome = GateOutcome.CONTINUE

        if outcome == GateOutcome.CONTINUE:
            self._launch()
        else:
            self._go_home()
        self._notify(self.on_finish, outcome)
        return outcome

    def teardown(self) -> None:
        """Hosting surface went away: cancel the countdown, no outcome, no writes."""
        with self._lock:
            if self.is_finished:
                return
            self._cancel_pending()
            self.is_finished = True
            logger.info(f"Gate for {self.identifier} torn down without a choice")
        self._notify(self.on_finish, None)

    def _can_act(self, action: str) -> bool:
        if self.is_finished:
            logger.debug(f"Ignoring {action}: gate for {self.identifier} already finished")
            return False
        if self.phase != GatePhase.UNLOCKED:
            logger.warning(f"Ignoring {action}: gate for {self.identifier} is still counting down")
            return False
        return True

    def _finish(self, outcome: GateOutcome) -> None:
        self._cancel_pending()
        self.outcome = outcome
        self.is_finished = True
        logger.info(f"Gate for {self.identifier} finished: {outcome.value}")

    def _launchable(self) -> bool:
        try:
            return bool(self.launcher.can_launch(self.identifier))
        except Exception as e:
            logger.error(f"Launcher check failed for {self.identifier}: {e}")
            return False

    def _launch(self) -> None:
        try:
            if not self.launcher.launch(self.identifier):
                logger.warning(f"OS did not launch {self.identifier}")
        except Exception as e:
            logger.error(f"Failed to launch {self.identifier}: {e}")

    def _go_home(self) -> None:
        # Abandon clears only a session that belongs to this app
        self.allowances.clear_active_session(only_if=self.identifier)
        try:
            self.launcher.go_home()
        except Exception as e:
            logger.error(f"Failed to return home: {e}")

    @staticmethod
    def _notify(callback: Optional[Callable[..., Any]], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.debug(f"Gate session callback error: {e}")
