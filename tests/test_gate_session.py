"""
Tests for core/gate_session.py - countdown, display text and the two
terminal actions, driven by a manual scheduler (no real waiting).
"""

import random
import sys
import unittest
from datetime import date
from pathlib import Path

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import config
from core.gate_session import GateOutcome, GatePhase, GateSession
from fakes import FakeClock, FakeLauncher, FlakyStore, ManualScheduler
from storage.prefs_store import MemoryPrefsStore
from storage.settings import GateSettings
from tracking.allowances import AllowanceStore
from tracking.daily_stats import UsageCounterStore
from verses import VerseCollection


class GateSessionTestCase(unittest.TestCase):
    """Shared wiring: in-memory stores, fake launcher, manual scheduler."""

    def setUp(self):
        self.store = MemoryPrefsStore()
        self.clock = FakeClock()
        self.allowances = AllowanceStore(self.store, clock=self.clock)
        self.counter = UsageCounterStore(self.store, today=lambda: date(2026, 3, 14))
        self.settings = GateSettings(self.store)
        self.verses = VerseCollection(rng=random.Random(7))
        self.launcher = FakeLauncher(installed={"Discord"})
        self.scheduler = ManualScheduler()

    def open_session(self, identifier="Discord") -> GateSession:
        return GateSession.open(
            identifier,
            settings=self.settings,
            counter=self.counter,
            verses=self.verses,
            allowances=self.allowances,
            launcher=self.launcher,
            scheduler=self.scheduler,
        )

    def unlock(self, session: GateSession) -> None:
        session.start()
        self.scheduler.fire_all()
        self.assertEqual(session.phase, GatePhase.UNLOCKED)


class TestGateSessionCreation(GateSessionTestCase):

    def test_open_increments_daily_count_once(self):
        session = self.open_session()
        self.assertEqual(session.daily_count, 1)
        self.assertEqual(self.counter.get_count("Discord"), 1)

        # Ticks and actions never touch the counter again
        self.unlock(session)
        session.continue_to_app()
        self.assertEqual(self.counter.get_count("Discord"), 1)

        self.assertEqual(self.open_session().daily_count, 2)

    def test_countdown_is_snapshotted(self):
        self.settings.set_countdown_seconds(3)
        session = self.open_session()
        self.settings.set_countdown_seconds(10)
        self.assertEqual(session.countdown_seconds, 3)
        session.start()
        self.assertEqual(self.scheduler.fire_all(), 3)
        self.assertTrue(session.is_unlocked)

    def test_verse_comes_from_configured_translation(self):
        self.settings.set_translation("WEB")
        session = self.open_session()
        self.assertIn(session.verse, self.verses.get_verses("WEB"))

    def test_display_text(self):
        session = self.open_session()
        self.assertEqual(session.count_text, "You've opened Discord 1 time today")
        self.assertEqual(session.abandon_label, "I don't wanna use Discord")
        self.assertEqual(session.continue_label, "Continue to Discord")

    def test_unknown_app_uses_fallback_name(self):
        session = self.open_session("Uninstalled")
        self.assertEqual(session.display_name, config.UNKNOWN_APP_NAME)
        self.assertEqual(session.count_text, "You've opened this app 1 time today")


class TestGateSessionCountdown(GateSessionTestCase):

    def test_ticks_down_then_unlocks(self):
        session = self.open_session()
        ticks, unlocked = [], []
        session.on_tick = ticks.append
        session.on_unlock = lambda: unlocked.append(True)

        session.start()
        self.assertEqual(session.phase, GatePhase.COUNTING)
        self.assertEqual(self.scheduler.pending[0].delay, config.GATE_TICK_SECONDS)

        self.scheduler.fire_all()
        self.assertEqual(ticks, [4, 3, 2, 1, 0])
        self.assertEqual(unlocked, [True])
        self.assertEqual(session.remaining_seconds, 0)

    def test_start_twice_schedules_once(self):
        session = self.open_session()
        session.start()
        session.start()
        self.assertEqual(len(self.scheduler.active), 1)

    def test_actions_ignored_while_counting(self):
        session = self.open_session()
        session.start()
        self.scheduler.fire_next()

        self.assertIsNone(session.continue_to_app())
        self.assertIsNone(session.abandon())
        self.assertFalse(session.is_finished)
        self.assertIsNone(self.allowances.get_expiry("Discord"))
        self.assertEqual(self.launcher.launched, [])

    def test_teardown_cancels_pending_tick(self):
        session = self.open_session()
        outcomes = []
        session.on_finish = outcomes.append
        session.start()

        session.teardown()
        self.assertEqual(self.scheduler.active, [])
        self.assertTrue(session.is_finished)
        self.assertEqual(outcomes, [None])
        self.assertIsNone(self.allowances.get_active_session())

    def test_failing_callback_does_not_break_countdown(self):
        session = self.open_session()

        def _boom(remaining):
            raise RuntimeError("widget gone")

        session.on_tick = _boom
        self.unlock(session)


class TestGateSessionActions(GateSessionTestCase):

    def test_continue_grants_allowance_and_session_then_launches(self):
        session = self.open_session()
        outcomes = []
        session.on_finish = outcomes.append
        self.unlock(session)

        self.assertEqual(session.continue_to_app(), GateOutcome.CONTINUE)
        self.assertEqual(
            self.allowances.get_expiry("Discord"),
            self.clock.now + config.ALLOWANCE_SECONDS,
        )
        self.assertEqual(self.allowances.get_active_session(), "Discord")
        self.assertEqual(self.launcher.launched, ["Discord"])
        self.assertEqual(outcomes, [GateOutcome.CONTINUE])

    def test_second_action_is_ignored(self):
        session = self.open_session()
        self.unlock(session)
        session.continue_to_app()
        self.assertIsNone(session.abandon())
        self.assertEqual(self.launcher.home_calls, 0)

    def test_abandon_clears_own_session_and_goes_home(self):
        self.allowances.set_active_session("Discord")
        session = self.open_session()
        self.unlock(session)

        self.assertEqual(session.abandon(), GateOutcome.ABANDON)
        self.assertIsNone(self.allowances.get_active_session())
        self.assertIsNone(self.allowances.get_expiry("Discord"))
        self.assertEqual(self.launcher.home_calls, 1)
        self.assertEqual(self.launcher.launched, [])

    def test_abandon_keeps_other_apps_session(self):
        self.allowances.set_active_session("Steam")
        session = self.open_session()
        self.unlock(session)
        session.abandon()
        self.assertEqual(self.allowances.get_active_session(), "Steam")

    def test_continue_to_unlaunchable_app_acts_as_abandon(self):
        session = self.open_session("Uninstalled")
        self.unlock(session)

        self.assertEqual(session.continue_to_app(), GateOutcome.ABANDON)
        self.assertIsNone(self.allowances.get_expiry("Uninstalled"))
        self.assertIsNone(self.allowances.get_active_session())
        self.assertEqual(self.launcher.launched, [])
        self.assertEqual(self.launcher.home_calls, 1)

    def test_continue_still_launches_when_writes_fail(self):
        store = FlakyStore()
        allowances = AllowanceStore(store, clock=self.clock)
        session = GateSession(
            "Discord",
            countdown_seconds=0,
            verse=self.verses.select_random("KJV"),
            daily_count=1,
            allowances=allowances,
            launcher=self.launcher,
            scheduler=self.scheduler,
        )
        session.start()
        self.assertTrue(session.is_unlocked)

        store.fail_writes = True
        self.assertEqual(session.continue_to_app(), GateOutcome.CONTINUE)
        self.assertEqual(self.launcher.launched, ["Discord"])
        self.assertIsNone(allowances.get_active_session())


if __name__ == "__main__":
    unittest.main()
