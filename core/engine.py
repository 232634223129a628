"""
GateEngine - headless orchestration for Verse Gate.

Owns the durable stores, the foreground monitor thread and the hand-off of
new gate sessions to the presenter. This module has ZERO UI dependencies:
the gate window (or any other presenter) is injected and receives sessions
through present(session).

Callbacks:
    on_status_change(status: str, text: str)
    on_gate_opened(identifier: str, daily_count: int)
    on_error(error_type: str, message: str)
"""

import logging
import time
from typing import Callable, Dict, Optional

import config
from core.gate_session import GateSession, LauncherProtocol
from core.monitor import ForegroundEventSource, ForegroundMonitor, GatePresenter
from screen.blocklist import BlocklistManager
from screen.launcher import AppLauncher
from screen.window_detector import WindowEventSource
from storage.prefs_store import JsonPrefsStore, PrefsStore
from storage.settings import GateSettings
from tracking.allowances import AllowanceStore
from tracking.daily_stats import UsageCounterStore
from verses import VerseCollection

logger = logging.getLogger(__name__)


class GateEngine:
    """
    Core gate service.

    Handles:
    - Monitor lifecycle (start, stop, restart)
    - Opening a gate session and handing it to the presenter
    - Block list and settings administration
    - Status reporting (polled by the CLI or a UI)
    """

    # ------------------------------------------------------------------
    # Initialisation
    # ------------------------------------------------------------------

    def __init__(
        self,
        store: Optional[PrefsStore] = None,
        presenter: Optional[GatePresenter] = None,
        event_source: Optional[ForegroundEventSource] = None,
        launcher: Optional[LauncherProtocol] = None,
        verses: Optional[VerseCollection] = None,
        self_id: str = config.SELF_APP_ID,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialise the engine; nothing runs until start()."""
        self.store: PrefsStore = store if store is not None else JsonPrefsStore(config.PREFS_FILE)
        self.presenter = presenter
        self.event_source = event_source
        self.launcher = launcher or AppLauncher()
        self.verses = verses or VerseCollection()
        self.self_id = self_id
        self.clock = clock

        self.blocklist = BlocklistManager(self.store, self_id=self_id)
        self.allowances = AllowanceStore(self.store, clock=clock)
        self.counter = UsageCounterStore(self.store)
        self.settings = GateSettings(self.store)

        self.monitor: Optional[ForegroundMonitor] = None
        self.current_status: str = "idle"
        self.current_session: Optional[GateSession] = None

        # ---- Callbacks (set by the hosting app) ----
        self.on_status_change: Optional[Callable[[str, str], None]] = None
        self.on_gate_opened: Optional[Callable[[str, int], None]] = None
        self.on_error: Optional[Callable[[str, str], None]] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def set_presenter(self, presenter: GatePresenter) -> None:
        """Set the presenter that shows gate sessions."""
        self.presenter = presenter
        if self.monitor:
            self.monitor.presenter = presenter
        logger.info("Presenter updated on engine")

    @property
    def is_running(self) -> bool:
        return self.monitor is not None and self.monitor.is_running

    def start(self) -> Dict:
        """
        Start the foreground monitor.

        Returns:
            {"success": bool, "error": str | None, "error_type": str | None}
            error_type values: "already_running", "no_presenter", "screen_permission"
        """
        if self.is_running:
            return {"success": False, "error": "Monitor already running", "error_type": "already_running"}

        if self.presenter is None:
            return {"success": False, "error": "No gate presenter configured", "error_type": "no_presenter"}

        if self.event_source is None:
            self.event_source = WindowEventSource()

        detector = getattr(self.event_source, "detector", None)
        if detector is not None and not detector.check_permission():
            instructions = detector.get_permission_instructions()
            logger.warning("Foreground monitoring permission check failed")
            self._notify_error("screen_permission", instructions)
            return {"success": False, "error": instructions, "error_type": "screen_permission"}

        # Leftovers from a previous run are dropped; live ones are kept
        self.allowances.purge_expired()

        self.monitor = ForegroundMonitor(
            event_source=self.event_source,
            blocklist=self.blocklist,
            allowances=self.allowances,
            presenter=self.presenter,
            open_gate=self.open_gate,
            self_id=self.self_id,
            clock=self.clock,
        )
        self.monitor.start()
        self._notify_status_change("watching", "Watching")
        return {"success": True, "error": None, "error_type": None}

    def stop(self) -> Dict:
        """
        Stop the foreground monitor.

        Returns:
            {"success": bool}
        """
        if self.monitor is None:
            return {"success": False}
        self.monitor.stop()
        self.monitor = None
        self._notify_status_change("idle", "Stopped")
        return {"success": True}

    def restart(self) -> Dict:
        """Stop and start again; all monitor state is rebuilt from the store."""
        self.stop()
        return self.start()

    def cleanup(self) -> None:
        """Clean up resources. Call before app quit."""
        if self.monitor is not None:
            self.stop()
        logger.info("Engine cleanup complete")

    def open_gate(self, identifier: str) -> Optional[GateSession]:
        """
        Create a gate session for identifier and hand it to the presenter.

        Called by the monitor thread. Increments today's open count.

        Returns:
            The new session, or None if no gate could be shown.
        """
        if self.presenter is None:
            logger.warning(f"No presenter, cannot gate {identifier}")
            return None

        try:
            session = GateSession.open(
                identifier,
                settings=self.settings,
                counter=self.counter,
                verses=self.verses,
                allowances=self.allowances,
                launcher=self.launcher,
                scheduler=getattr(self.presenter, "scheduler", None),
            )
        except LookupError as e:
            logger.error(f"Cannot build gate for {identifier}: {e}")
            self._notify_error("no_verses", str(e))
            return None

        self.current_session = session
        self.presenter.present(session)
        self._notify_status_change("gating", f"Gate: {session.display_name}")
        if self.on_gate_opened:
            try:
                self.on_gate_opened(identifier, session.daily_count)
            except Exception as e:
                logger.debug(f"on_gate_opened callback error: {e}")
        return session

    def get_status(self) -> Dict:
        """
        Get current engine status.

        Returns:
            dict with keys: is_running, status, current_app, last_gated_app,
            active_session, is_presenting, blocked_apps, today_counts,
            countdown_seconds, translation.
        """
        is_presenting = False
        if self.presenter is not None:
            try:
                is_presenting = bool(self.presenter.is_presenting())
            except Exception as e:
                logger.debug(f"is_presenting check failed: {e}")

        return {
            "is_running": self.is_running,
            "status": self.current_status,
            "current_app": self.monitor.current_id if self.monitor else None,
            "last_gated_app": self.monitor.last_gated_id if self.monitor else None,
            "active_session": self.allowances.get_active_session(),
            "is_presenting": is_presenting,
            "blocked_apps": sorted(self.blocklist.get_blocked_apps()),
            "today_counts": self.counter.get_counts_for_day(),
            "countdown_seconds": self.settings.get_countdown_seconds(),
            "translation": self.settings.get_translation(),
        }

    # ------------------------------------------------------------------
    # Administration
    # ------------------------------------------------------------------

    def block_app(self, identifier: str) -> Dict:
        """Add identifier to the block list."""
        if identifier.strip() == self.self_id:
            return {"success": False, "error": "Verse Gate cannot block itself"}
        if not self.blocklist.add_blocked_app(identifier):
            return {"success": False, "error": f"Could not block {identifier}"}
        return {"success": True, "error": None}

    def unblock_app(self, identifier: str) -> Dict:
        """Remove identifier from the block list."""
        if not self.blocklist.remove_blocked_app(identifier):
            return {"success": False, "error": f"Could not unblock {identifier}"}
        return {"success": True, "error": None}

    def set_countdown(self, seconds: int) -> Dict:
        """Set the countdown used by new gate sessions."""
        try:
            saved = self.settings.set_countdown_seconds(seconds)
        except ValueError as e:
            return {"success": False, "error": str(e)}
        return {"success": saved, "error": None if saved else "Could not save countdown"}

    def set_translation(self, translation: str) -> Dict:
        """Set the verse translation used by new gate sessions."""
        try:
            saved = self.settings.set_translation(translation)
        except ValueError as e:
            return {"success": False, "error": str(e)}
        return {"success": saved, "error": None if saved else "Could not save translation"}

    # ------------------------------------------------------------------
    # Callback helpers
    # ------------------------------------------------------------------

    def _notify_status_change(self, status: str, text: str) -> None:
        """Thread-safe status change notification."""
        self.current_status = status
        if self.on_status_change:
            try:
                self.on_status_change(status, text)
            except Exception as e:
                logger.debug(f"on_status_change callback error: {e}")

    def _notify_error(self, error_type: str, message: str) -> None:
        """Notify of an error via callback."""
        if self.on_error:
            try:
                self.on_error(error_type, message)
            except Exception as e:
                logger.debug(f"on_error callback error: {e}")
