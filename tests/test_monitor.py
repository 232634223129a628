"""
Tests for core/monitor.py - edge-triggered gating, event ordering, error
handling and the two end-to-end flows (continue, then abandon and re-gate).
"""

import random
import sys
import time
import unittest
from datetime import date
from pathlib import Path

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import config
from core.gate_session import GateOutcome, GateSession
from core.monitor import ForegroundEvent, ForegroundMonitor, latest_event
from core.policy import Verdict
from fakes import FakeClock, FakeEventSource, FakeLauncher, FakePresenter
from screen.blocklist import BlocklistManager
from storage.prefs_store import MemoryPrefsStore
from storage.settings import GateSettings
from tracking.allowances import AllowanceStore
from tracking.daily_stats import UsageCounterStore
from verses import VerseCollection

SELF = "VerseGate"
HOME = "Finder"


class MonitorTestCase(unittest.TestCase):
    """Wires a monitor to in-memory stores, a scripted source and a fake presenter."""

    def setUp(self):
        self.clock = FakeClock()
        self.store = MemoryPrefsStore()
        self.blocklist = BlocklistManager(self.store, self_id=SELF)
        self.allowances = AllowanceStore(self.store, clock=self.clock)
        self.counter = UsageCounterStore(self.store, today=lambda: date(2026, 3, 14))
        self.settings = GateSettings(self.store)
        self.verses = VerseCollection(rng=random.Random(1))
        self.launcher = FakeLauncher(installed={"Discord", "Steam", HOME})
        self.source = FakeEventSource()
        self.presenter = FakePresenter()
        self.opened = []

        self.monitor = ForegroundMonitor(
            event_source=self.source,
            blocklist=self.blocklist,
            allowances=self.allowances,
            presenter=self.presenter,
            open_gate=self.open_gate,
            self_id=SELF,
            clock=self.clock,
            poll_interval=0.01,
            event_window=2.0,
        )
        self.blocklist.add_blocked_app("Discord")

    def open_gate(self, identifier: str) -> GateSession:
        """Same hand-off the engine performs."""
        self.opened.append(identifier)
        session = GateSession.open(
            identifier,
            settings=self.settings,
            counter=self.counter,
            verses=self.verses,
            allowances=self.allowances,
            launcher=self.launcher,
            scheduler=self.presenter.scheduler,
        )
        self.presenter.present(session)
        return session

    def switch_to(self, identifier: str) -> None:
        self.clock.advance(0.5)
        self.source.switch_to(identifier, self.clock.now)

    def tick(self, times: int = 1):
        decision = None
        for _ in range(times):
            self.clock.advance(0.01)
            decision = self.monitor.run_once()
        return decision

    def unlock_current(self) -> GateSession:
        session = self.presenter.sessions[-1]
        session.start()
        self.presenter.scheduler.fire_all()
        self.assertTrue(session.is_unlocked)
        return session


class TestLatestEvent(unittest.TestCase):

    def test_max_timestamp_wins_regardless_of_order(self):
        events = [
            ForegroundEvent("Discord", 10.0),
            ForegroundEvent("Steam", 12.0),
            ForegroundEvent("Notes", 11.0),
        ]
        self.assertEqual(latest_event(events).identifier, "Steam")
        self.assertIsNone(latest_event([]))


class TestMonitorGating(MonitorTestCase):

    def test_non_blocked_app_is_allowed(self):
        self.switch_to("Notes")
        decision = self.tick()
        self.assertEqual(decision.verdict, Verdict.ALLOW)
        self.assertEqual(self.presenter.sessions, [])

    def test_blocked_app_is_gated_once(self):
        """Edge-triggered: staying on the app does not re-present."""
        self.switch_to("Discord")
        decision = self.tick()
        self.assertEqual(decision.verdict, Verdict.GATE)
        self.assertEqual(self.opened, ["Discord"])
        self.assertEqual(self.monitor.last_gated_id, "Discord")

        self.presenter.presenting = False
        self.tick(20)
        self.assertEqual(self.opened, ["Discord"])

    def test_not_presented_while_gate_on_screen(self):
        self.blocklist.add_blocked_app("Steam")
        self.switch_to("Discord")
        self.tick()
        self.switch_to("Steam")
        self.tick(5)
        self.assertEqual(self.opened, ["Discord"])
        self.assertEqual(self.monitor.last_gated_id, "Discord")

        # Once the first gate closes, the pending switch is gated
        self.presenter.presenting = False
        self.tick()
        self.assertEqual(self.opened, ["Discord", "Steam"])

    def test_no_events_makes_no_decision(self):
        self.switch_to("Discord")
        self.tick()
        self.clock.advance(5)
        self.assertIsNone(self.monitor.run_once())
        self.assertEqual(self.monitor.last_gated_id, "Discord")

    def test_unordered_events_use_latest_timestamp(self):
        now = self.clock.now
        self.source.events = [
            ForegroundEvent("Notes", now + 0.3),
            ForegroundEvent("Discord", now + 0.1),
        ]
        self.clock.advance(0.5)
        decision = self.monitor.run_once()
        self.assertEqual(decision.verdict, Verdict.ALLOW)
        self.assertEqual(self.opened, [])

    def test_returning_to_self_resets_edge(self):
        self.switch_to("Discord")
        self.tick()
        self.switch_to(SELF)
        decision = self.tick()
        self.assertTrue(decision.is_self)
        self.assertIsNone(self.monitor.last_gated_id)

    def test_live_allowance_suppresses_gate(self):
        self.allowances.grant("Discord")
        self.switch_to("Discord")
        self.tick()
        self.assertEqual(self.opened, [])

    def test_expired_allowance_is_removed_and_gated(self):
        self.allowances.grant("Discord")
        self.clock.advance(config.ALLOWANCE_SECONDS + 1)
        self.switch_to("Discord")
        self.tick()
        self.assertEqual(self.opened, ["Discord"])
        self.assertIsNone(self.allowances.get_expiry("Discord"))

    def test_switching_away_ends_active_session(self):
        self.allowances.set_active_session("Discord")
        self.switch_to("Discord")
        self.tick()
        self.assertEqual(self.opened, [])

        self.switch_to("Notes")
        self.tick()
        self.assertIsNone(self.allowances.get_active_session())

    def test_source_error_skips_tick(self):
        self.source.error = OSError("detector unavailable")
        with self.assertRaises(OSError):
            self.monitor.run_once()
        self.source.error = None
        self.switch_to("Discord")
        self.tick()
        self.assertEqual(self.opened, ["Discord"])

    def test_malformed_translation_still_opens_gate(self):
        self.store.set(config.KEY_BIBLE_VERSION, {"v": "KJV"})
        self.switch_to("Discord")
        self.tick()
        self.assertEqual(len(self.presenter.sessions), 1)
        self.assertIn(
            self.presenter.sessions[0].verse,
            self.verses.get_verses(config.DEFAULT_TRANSLATION),
        )

    def test_open_gate_failure_is_logged_not_raised(self):
        def _broken(identifier):
            raise RuntimeError("no display")

        self.monitor.open_gate = _broken
        self.switch_to("Discord")
        with self.assertLogs("core.monitor", level="ERROR"):
            decision = self.tick()
        self.assertTrue(decision.is_gate)


class TestEndToEndFlows(MonitorTestCase):

    def test_continue_flow(self):
        """Gate, wait, continue: the app stays usable and is not re-gated."""
        self.switch_to("Discord")
        self.tick()
        session = self.unlock_current()
        self.assertEqual(session.daily_count, 1)

        # Our own window is frontmost while the gate is shown
        self.switch_to(SELF)
        self.tick()

        self.assertEqual(session.continue_to_app(), GateOutcome.CONTINUE)
        self.assertEqual(self.launcher.launched, ["Discord"])
        self.switch_to("Discord")
        self.tick(10)
        self.assertEqual(self.opened, ["Discord"])
        self.assertEqual(self.allowances.get_active_session(), "Discord")

        # Past the allowance the active session still holds
        self.clock.advance(config.ALLOWANCE_SECONDS + 5)
        self.source.switch_to("Discord", self.clock.now)
        self.tick()
        self.assertEqual(self.opened, ["Discord"])

    def test_abandon_then_regate_counts_twice(self):
        self.switch_to("Discord")
        self.tick()
        session = self.unlock_current()
        self.assertEqual(session.abandon(), GateOutcome.ABANDON)
        self.assertEqual(self.launcher.home_calls, 1)

        self.switch_to(HOME)
        self.tick()
        self.assertIsNone(self.monitor.last_gated_id)

        self.switch_to("Discord")
        self.tick()
        self.assertEqual(self.opened, ["Discord", "Discord"])
        self.assertEqual(self.presenter.sessions[-1].daily_count, 2)
        self.assertEqual(
            self.presenter.sessions[-1].count_text,
            "You've opened Discord 2 times today",
        )

    def test_continue_then_switch_to_other_blocked_app(self):
        self.blocklist.add_blocked_app("Steam")
        self.switch_to("Discord")
        self.tick()
        self.unlock_current().continue_to_app()
        self.switch_to("Discord")
        self.tick()

        self.switch_to("Steam")
        self.tick()
        self.assertEqual(self.opened, ["Discord", "Steam"])
        self.assertIsNone(self.allowances.get_active_session())

        # Close Steam's gate; once Discord's allowance lapses it is gated again
        self.unlock_current().abandon()
        self.clock.advance(config.ALLOWANCE_SECONDS + 1)
        self.switch_to("Discord")
        self.tick()
        self.assertEqual(self.opened, ["Discord", "Steam", "Discord"])
        self.assertEqual(self.presenter.sessions[-1].daily_count, 2)


class TestMonitorThread(MonitorTestCase):

    def test_loop_runs_and_stops(self):
        monitor = ForegroundMonitor(
            event_source=self.source,
            blocklist=self.blocklist,
            allowances=self.allowances,
            presenter=self.presenter,
            open_gate=self.open_gate,
            self_id=SELF,
            poll_interval=0.01,
        )
        self.source.switch_to("Discord", time.time())
        self.assertTrue(monitor.start())
        self.assertFalse(monitor.start())

        deadline = time.time() + 2.0
        while not self.opened and time.time() < deadline:
            time.sleep(0.01)
        monitor.stop()

        self.assertEqual(self.opened, ["Discord"])
        self.assertFalse(monitor.is_running)

    def test_loop_survives_errors(self):
        self.source.error = RuntimeError("boom")
        monitor = ForegroundMonitor(
            event_source=self.source,
            blocklist=self.blocklist,
            allowances=self.allowances,
            presenter=self.presenter,
            open_gate=self.open_gate,
            self_id=SELF,
            poll_interval=0.01,
        )
        monitor.start()
        deadline = time.time() + 2.0
        while self.source.polls < 3 and time.time() < deadline:
            time.sleep(0.01)
        self.assertTrue(monitor.is_running)
        monitor.stop()
        self.assertGreaterEqual(self.source.polls, 3)


if __name__ == "__main__":
    unittest.main()
