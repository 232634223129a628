"""
Foreground application detection for the gate monitor.

Provides cross-platform detection of the frontmost application and turns
successive samples into app-switch events the monitor can poll.

Uses platform-native APIs:
- macOS: AppleScript via subprocess
- Windows: ctypes (user32 / kernel32)
- Linux (X11): xdotool via subprocess and /proc
"""

import logging
import subprocess
import sys
import threading
import time
from collections import deque
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Deque, List, Optional

import config
from core.monitor import ForegroundEvent

logger = logging.getLogger(__name__)


@dataclass
class WindowInfo:
    """Information about the currently active window."""
    app_name: str
    window_title: str = ""


class WindowDetector:
    """
    Cross-platform detector for the frontmost application.

    app_name is the identifier used throughout the gate: the application
    name on macOS, the process image name without ".exe" on Windows and the
    process name on Linux.
    """

    def __init__(self, timeout: float = config.WINDOW_DETECTION_TIMEOUT):
        """Initialize the window detector for the current platform."""
        self.platform = sys.platform
        self.timeout = timeout
        self._permission_checked = False
        self._has_permission = False

    def get_active_window(self) -> Optional[WindowInfo]:
        """
        Get information about the currently active window.

        Returns:
            WindowInfo, or None if detection fails.
        """
        try:
            if self.platform == "darwin":
                return self._get_active_window_macos()
            elif self.platform == "win32":
                return self._get_active_window_windows()
            elif self.platform.startswith("linux"):
                return self._get_active_window_linux()
            else:
                logger.warning(f"Unsupported platform: {self.platform}")
                return None
        except PermissionError as e:
            logger.warning(f"Permission denied getting active window: {e}")
            self._has_permission = False
            return None
        except subprocess.TimeoutExpired as e:
            logger.warning(f"Timeout getting active window: {e}")
            return None
        except OSError as e:
            logger.error(f"OS error getting active window: {e}")
            return None

    def _get_active_window_macos(self) -> Optional[WindowInfo]:
        """
        Get active window info on macOS using AppleScript.

        Returns:
            WindowInfo or None if detection fails.
        """
        script = '''
        tell application "System Events"
            set frontApp to first application process whose frontmost is true
            set appName to name of frontApp
            try
                set windowTitle to name of front window of frontApp
            on error
                set windowTitle to ""
            end try
            return appName & "|||" & windowTitle
        end tell
        '''

        result = subprocess.run(
            ["osascript", "-e", script],
            capture_output=True,
            text=True,
            timeout=self.timeout
        )

        if result.returncode != 0:
            logger.warning(f"AppleScript failed with code {result.returncode}: {result.stderr.strip()}")
            stderr_lower = result.stderr.lower()
            if "not allowed" in stderr_lower or "assistive" in stderr_lower or "-10827" in stderr_lower:
                logger.warning("Accessibility permission required for foreground monitoring")
            self._has_permission = False
            return None

        self._has_permission = True
        output = result.stdout.strip()

        if "|||" in output:
            app_name, window_title = output.split("|||", 1)
        else:
            app_name, window_title = output, ""

        if not app_name:
            return None
        return WindowInfo(app_name=app_name, window_title=window_title)

    def _get_active_window_windows(self) -> Optional[WindowInfo]:
        """
        Get active window info on Windows using ctypes.

        Returns:
            WindowInfo or None if detection fails.
        """
        import ctypes
        from ctypes import wintypes

        user32 = ctypes.windll.user32
        hwnd = user32.GetForegroundWindow()
        if not hwnd:
            return None

        length = user32.GetWindowTextLengthW(hwnd)
        buffer = ctypes.create_unicode_buffer(length + 1)
        user32.GetWindowTextW(hwnd, buffer, length + 1)
        window_title = buffer.value

        pid = wintypes.DWORD()
        user32.GetWindowThreadProcessId(hwnd, ctypes.byref(pid))

        app_name = self._get_process_name_windows(pid.value)
        if not app_name:
            return None

        self._has_permission = True
        return WindowInfo(app_name=app_name, window_title=window_title)

    def _get_process_name_windows(self, pid: int) -> Optional[str]:
        """
        Get process image name (without .exe) from PID on Windows.

        Returns:
            Process name or None
        """
        import ctypes
        from ctypes import wintypes

        PROCESS_QUERY_LIMITED_INFORMATION = 0x1000

        kernel32 = ctypes.windll.kernel32
        handle = kernel32.OpenProcess(PROCESS_QUERY_LIMITED_INFORMATION, False, pid)
        if not handle:
            return None

        try:
            buffer = ctypes.create_unicode_buffer(260)
            size = wintypes.DWORD(260)
            if kernel32.QueryFullProcessImageNameW(handle, 0, buffer, ctypes.byref(size)):
                name = buffer.value.split("\\")[-1]
                return name[:-4] if name.lower().endswith(".exe") else name
        finally:
            kernel32.CloseHandle(handle)
        return None

    def _get_active_window_linux(self) -> Optional[WindowInfo]:
        """
        Get active window info on X11 using xdotool and /proc.

        Returns:
            WindowInfo or None if detection fails.
        """
        try:
            window_id = subprocess.run(
                ["xdotool", "getactivewindow"],
                capture_output=True, text=True, timeout=self.timeout
            ).stdout.strip()
        except FileNotFoundError:
            logger.warning("xdotool not installed - foreground monitoring unavailable")
            return None

        if not window_id:
            return None

        pid = subprocess.run(
            ["xdotool", "getwindowpid", window_id],
            capture_output=True, text=True, timeout=self.timeout
        ).stdout.strip()
        title = subprocess.run(
            ["xdotool", "getwindowname", window_id],
            capture_output=True, text=True, timeout=self.timeout
        ).stdout.strip()

        if not pid.isdigit():
            return None

        comm = Path("/proc") / pid / "comm"
        try:
            app_name = comm.read_text().strip()
        except OSError:
            return None

        self._has_permission = True
        return WindowInfo(app_name=app_name, window_title=title)

    def check_permission(self) -> bool:
        """
        Check if the app can read the foreground window.

        Returns:
            True if permissions are granted, False otherwise.
        """
        if self._permission_checked:
            return self._has_permission

        window_info = self.get_active_window()
        self._permission_checked = True

        if window_info:
            logger.debug(f"Permission check passed, got window: {window_info.app_name}")
        else:
            logger.warning("Permission check failed - could not get active window")

        return self._has_permission

    def get_permission_instructions(self) -> str:
        """
        Get instructions for enabling foreground monitoring.

        Returns:
            Platform-specific instructions string.
        """
        if self.platform == "darwin":
            return (
                "Foreground monitoring requires TWO permissions:\n\n"
                "1. ACCESSIBILITY permission:\n"
                "   • System Settings → Privacy & Security → Accessibility\n\n"
                "2. AUTOMATION permission (System Events):\n"
                "   • System Settings → Privacy & Security → Automation\n\n"
                "After enabling, restart Verse Gate."
            )
        elif self.platform == "win32":
            return (
                "Foreground monitoring should work automatically on Windows.\n"
                "If you're having issues, try running as Administrator."
            )
        elif self.platform.startswith("linux"):
            return "Install xdotool and run Verse Gate inside an X11 session."
        else:
            return f"Foreground monitoring is not supported on {self.platform}"


class WindowEventSource:
    """
    Foreground-event source built on a WindowDetector.

    Each poll samples the frontmost app and records an event whenever it
    differs from the previous sample. Events are kept for a bounded
    history and returned for any requested time window.
    """

    def __init__(
        self,
        detector: Optional[WindowDetector] = None,
        clock: Callable[[], float] = time.time,
        history_seconds: float = config.EVENT_WINDOW_SECONDS * 5,
        max_events: int = 256,
    ) -> None:
        self.detector = detector or WindowDetector()
        self.clock = clock
        self.history_seconds = history_seconds
        self._events: Deque[ForegroundEvent] = deque(maxlen=max_events)
        self._last_app: Optional[str] = None
        self._lock = threading.Lock()

    def sample(self) -> Optional[str]:
        """
        Sample the frontmost app once, recording a switch event if it changed.

        Returns:
            The sampled identifier, or None when detection failed.
        """
        info = self.detector.get_active_window()
        if info is None or not info.app_name:
            return None
        now = self.clock()
        with self._lock:
            if info.app_name != self._last_app:
                self._events.append(ForegroundEvent(info.app_name, now))
                logger.debug(f"Foreground switched to {info.app_name}")
                self._last_app = info.app_name
            self._trim(now)
        return info.app_name

    def poll(self, window_start: float, window_end: float) -> List[ForegroundEvent]:
        """
        Return switch-to-foreground events with window_start <= timestamp <= window_end.

        Sampling happens as part of the poll, so a switch is visible from
        the first poll after it occurred.
        """
        self.sample()
        with self._lock:
            return [e for e in self._events if window_start <= e.timestamp <= window_end]

    def _trim(self, now: float) -> None:
        cutoff = now - self.history_seconds
        while self._events and self._events[0].timestamp < cutoff:
            self._events.popleft()
