"""
ForegroundMonitor - background loop that watches the frontmost app and
triggers the gate.

Each tick polls the event source over a trailing window, takes the event
with the latest timestamp as the current foreground, evaluates the access
policy against a fresh read of the stores and applies its side effects.
The gate is edge-triggered: it opens once per arrival of a blocked app and
never while another gate is on screen.

The monitor keeps no state that matters across restarts besides the
last-gated identifier; everything else is re-read from storage every tick.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Protocol

import config
from core.policy import Decision, decide

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ForegroundEvent:
    """An app moved to the foreground at timestamp (seconds since the epoch)."""
    identifier: str
    timestamp: float


class ForegroundEventSource(Protocol):
    def poll(self, window_start: float, window_end: float) -> Iterable[ForegroundEvent]:
        """Events with window_start <= timestamp <= window_end, in any order."""
        ...


class GatePresenter(Protocol):
    def present(self, session) -> None:
        ...

    def is_presenting(self) -> bool:
        ...


def latest_event(events: Iterable[ForegroundEvent]) -> Optional[ForegroundEvent]:
    """Event with the greatest timestamp; list order carries no meaning."""
    latest = None
    for event in events:
        if latest is None or event.timestamp >= latest.timestamp:
            latest = event
    return latest


class ForegroundMonitor:
    """
    Polling loop over a foreground-event source.

    open_gate(identifier) is called when a gate must be shown; the engine
    supplies it and hands the new session to the presenter.
    """

    def __init__(
        self,
        event_source: ForegroundEventSource,
        blocklist,
        allowances,
        presenter: GatePresenter,
        open_gate: Callable[[str], object],
        self_id: str = config.SELF_APP_ID,
        clock: Callable[[], float] = time.time,
        poll_interval: float = config.POLL_INTERVAL_SECONDS,
        event_window: float = config.EVENT_WINDOW_SECONDS,
    ) -> None:
        self.event_source = event_source
        self.blocklist = blocklist
        self.allowances = allowances
        self.presenter = presenter
        self.open_gate = open_gate
        self.self_id = self_id
        self.clock = clock
        self.poll_interval = poll_interval
        # The window must cover at least one polling interval or switches are lost
        self.event_window = max(event_window, poll_interval)

        self.last_gated_id: Optional[str] = None
        self.current_id: Optional[str] = None
        self.gates_opened: int = 0

        self.should_stop: threading.Event = threading.Event()
        self.thread: Optional[threading.Thread] = None

    # ------------------------------------------------------------------
    # One iteration
    # ------------------------------------------------------------------

    def run_once(self) -> Optional[Decision]:
        """
        Run a single monitor iteration.

        Returns:
            The policy decision, or None when the window held no events.
        """
        now = self.clock()
        events = list(self.event_source.poll(now - self.event_window, now))
        event = latest_event(events)
        if event is None:
            return None

        current_id = event.identifier
        if current_id != self.current_id:
            logger.debug(f"Foreground is now {current_id}")
            self.current_id = current_id

        active_session = self.allowances.get_active_session()
        decision = decide(
            current_id,
            self.self_id,
            self.blocklist.get_blocked_apps(),
            self.allowances.snapshot(),
            active_session,
            now,
        )

        if decision.clear_active_session and active_session:
            if self.allowances.clear_active_session(only_if=active_session):
                logger.info(f"Active session for {active_session} ended ({current_id} in foreground)")
        if decision.expired_allowance:
            self.allowances.remove_if_expired(current_id, now)

        if not decision.is_gate:
            if self.last_gated_id is not None:
                logger.debug(f"Edge tracking reset ({decision.reason})")
            self.last_gated_id = None
            return decision

        if current_id == self.last_gated_id:
            return decision

        if self.presenter.is_presenting():
            # Left unset so the gate fires once the current one closes
            logger.debug(f"Gate already on screen, not gating {current_id} yet")
            return decision

        self.last_gated_id = current_id
        self.gates_opened += 1
        logger.info(f"Blocked app in foreground: {current_id}")
        try:
            self.open_gate(current_id)
        except Exception as e:
            logger.error(f"Failed to open gate for {current_id}: {e}")
        return decision

    # ------------------------------------------------------------------
    # Thread management
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """
        Start the monitor thread.

        Returns:
            False if it is already running.
        """
        if self.is_running:
            return False
        self.should_stop.clear()
        self.last_gated_id = None
        self.current_id = None
        self.thread = threading.Thread(target=self._loop, name="foreground-monitor", daemon=True)
        self.thread.start()
        logger.info("Foreground monitor started")
        return True

    def stop(self, timeout: float = 2.0) -> None:
        """Signal the loop to stop and wait for the thread."""
        self.should_stop.set()
        if self.thread and self.thread.is_alive() and self.thread is not threading.current_thread():
            self.thread.join(timeout=timeout)
            if self.thread.is_alive():
                logger.warning("Monitor thread did not stop within timeout")
        self.thread = None
        logger.info("Foreground monitor stopped")

    @property
    def is_running(self) -> bool:
        return self.thread is not None and self.thread.is_alive()

    def _loop(self) -> None:
        while not self.should_stop.is_set():
            try:
                self.run_once()
            except Exception as e:
                logger.error(f"Monitor tick failed: {e}")
            self.should_stop.wait(self.poll_interval)
