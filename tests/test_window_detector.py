"""
Tests for screen/window_detector.py and screen/launcher.py with the
platform tools mocked out.
"""

import subprocess
import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

# Ensure project root is on the path
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

from fakes import FakeClock
from screen.launcher import AppLauncher, applescript_quote
from screen.window_detector import WindowDetector, WindowEventSource, WindowInfo


def _completed(stdout="", returncode=0, stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestWindowDetectorMacOS(unittest.TestCase):

    def setUp(self):
        self.detector = WindowDetector()
        self.detector.platform = "darwin"

    @patch("screen.window_detector.subprocess.run")
    def test_parses_app_and_title(self, mock_run):
        mock_run.return_value = _completed("Discord|||#general\n")
        info = self.detector.get_active_window()
        self.assertEqual(info, WindowInfo(app_name="Discord", window_title="#general"))

    @patch("screen.window_detector.subprocess.run")
    def test_permission_failure_returns_none(self, mock_run):
        mock_run.return_value = _completed(returncode=1, stderr="not allowed assistive access")
        self.assertIsNone(self.detector.get_active_window())
        self.assertFalse(self.detector.check_permission())

    @patch("screen.window_detector.subprocess.run")
    def test_timeout_returns_none(self, mock_run):
        mock_run.side_effect = subprocess.TimeoutExpired(cmd="osascript", timeout=2)
        self.assertIsNone(self.detector.get_active_window())


class TestWindowDetectorLinux(unittest.TestCase):

    def setUp(self):
        self.detector = WindowDetector()
        self.detector.platform = "linux"

    @patch("screen.window_detector.Path.read_text", return_value="firefox\n")
    @patch("screen.window_detector.subprocess.run")
    def test_reads_process_name(self, mock_run, mock_read):
        mock_run.side_effect = [
            _completed("4194307\n"),
            _completed("1234\n"),
            _completed("Mozilla Firefox\n"),
        ]
        info = self.detector.get_active_window()
        self.assertEqual(info.app_name, "firefox")
        self.assertEqual(info.window_title, "Mozilla Firefox")

    @patch("screen.window_detector.subprocess.run", side_effect=FileNotFoundError("xdotool"))
    def test_missing_xdotool(self, mock_run):
        self.assertIsNone(self.detector.get_active_window())

    def test_unsupported_platform(self):
        self.detector.platform = "sunos5"
        self.assertIsNone(self.detector.get_active_window())


class TestWindowEventSource(unittest.TestCase):

    def setUp(self):
        self.clock = FakeClock(100.0)
        self.detector = MagicMock()
        self.source = WindowEventSource(self.detector, clock=self.clock, history_seconds=10.0)

    def _frontmost(self, app_name):
        self.detector.get_active_window.return_value = WindowInfo(app_name) if app_name else None

    def test_records_only_switches(self):
        self._frontmost("Discord")
        self.source.poll(90.0, 100.0)
        self.clock.advance(1)
        events = self.source.poll(90.0, 101.0)
        self.assertEqual([(e.identifier, e.timestamp) for e in events], [("Discord", 100.0)])

        self._frontmost("Notes")
        self.clock.advance(1)
        events = self.source.poll(90.0, 102.0)
        self.assertEqual([e.identifier for e in events], ["Discord", "Notes"])

    def test_window_filters_events(self):
        self._frontmost("Discord")
        self.source.sample()
        self.clock.advance(5)
        self._frontmost("Notes")
        events = self.source.poll(103.0, 105.0)
        self.assertEqual([e.identifier for e in events], ["Notes"])

    def test_detection_failure_records_nothing(self):
        self._frontmost(None)
        self.assertEqual(self.source.poll(0.0, 200.0), [])

    def test_old_events_are_trimmed(self):
        self._frontmost("Discord")
        self.source.sample()
        self.clock.advance(30)
        self._frontmost("Notes")
        self.source.sample()
        self.assertEqual([e.identifier for e in self.source.poll(0.0, 200.0)], ["Notes"])


class TestAppLauncher(unittest.TestCase):

    @patch("screen.launcher.shutil.which", return_value="/usr/bin/firefox")
    @patch("screen.launcher.subprocess.Popen")
    def test_linux_launch(self, mock_popen, mock_which):
        launcher = AppLauncher()
        launcher.platform = "linux"
        self.assertTrue(launcher.can_launch("firefox"))
        self.assertEqual(launcher.display_name("firefox"), "firefox")
        self.assertTrue(launcher.launch("firefox"))
        self.assertEqual(mock_popen.call_args[0][0], ["/usr/bin/firefox"])

    @patch("screen.launcher.shutil.which", return_value=None)
    def test_linux_unknown_app(self, mock_which):
        launcher = AppLauncher()
        launcher.platform = "linux"
        self.assertFalse(launcher.can_launch("ghost"))
        self.assertIsNone(launcher.display_name("ghost"))
        self.assertFalse(launcher.launch("ghost"))
        self.assertFalse(launcher.can_launch(""))

    @patch("screen.launcher.subprocess.run")
    def test_macos_resolves_with_osascript(self, mock_run):
        launcher = AppLauncher()
        launcher.platform = "darwin"
        mock_run.return_value = _completed("com.hnc.Discord\n")
        self.assertTrue(launcher.can_launch("Discord"))

        mock_run.return_value = _completed(returncode=1, stderr="Can't get application")
        self.assertFalse(launcher.can_launch("Ghost"))

    @patch("screen.launcher.subprocess.run")
    def test_macos_open_and_home(self, mock_run):
        launcher = AppLauncher()
        launcher.platform = "darwin"
        mock_run.return_value = _completed()
        self.assertTrue(launcher.launch("Discord"))
        self.assertEqual(mock_run.call_args[0][0], ["open", "-a", "Discord"])
        self.assertTrue(launcher.go_home())
        self.assertEqual(mock_run.call_args[0][0][0], "osascript")

    def test_applescript_quote_escapes(self):
        self.assertEqual(applescript_quote("Discord"), '"Discord"')
        self.assertEqual(applescript_quote('Say "hi"'), '"Say \\"hi\\""')
        self.assertEqual(applescript_quote("a\\b"), '"a\\\\b"')

    @patch("screen.launcher.subprocess.run")
    def test_macos_quotes_app_names(self, mock_run):
        launcher = AppLauncher()
        launcher.platform = "darwin"
        mock_run.return_value = _completed("com.example.app\n")
        launcher.can_launch('My "Quoted" App')
        script = mock_run.call_args[0][0][2]
        self.assertEqual(script, 'id of application "My \\"Quoted\\" App"')


if __name__ == "__main__":
    unittest.main()
