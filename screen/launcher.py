"""
Desktop app launcher used when the gate resolves.

Brings a gated app to the foreground after "continue" and returns the user
to the home surface after "abandon". Uses platform-native tools:
- macOS: `open -a` / AppleScript via subprocess
- Windows: the App Paths registry and shell start
- Linux: the executable on PATH, `xdotool` for the desktop
"""

import logging
import os
import shutil
import subprocess
import sys
from typing import List, Optional

import config

logger = logging.getLogger(__name__)


def applescript_quote(text: str) -> str:
    """Quote text as an AppleScript string literal."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


class AppLauncher:
    """
    Cross-platform launcher keyed by the same identifiers the window
    detector reports.
    """

    def __init__(self, timeout: float = config.WINDOW_DETECTION_TIMEOUT):
        self.platform = sys.platform
        self.timeout = timeout

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def can_launch(self, identifier: str) -> bool:
        """
        Check whether identifier resolves to something the OS can start.

        Returns:
            True if the app appears to be installed.
        """
        if not identifier:
            return False
        try:
            if self.platform == "darwin":
                return self._resolve_macos(identifier) is not None
            if self.platform == "win32":
                return self._resolve_windows(identifier) is not None
            return shutil.which(identifier) is not None
        except (OSError, subprocess.SubprocessError) as e:
            logger.warning(f"Could not resolve {identifier}: {e}")
            return False

    def display_name(self, identifier: str) -> Optional[str]:
        """Human-readable name for identifier, or None if it is not installed."""
        if not self.can_launch(identifier):
            return None
        if self.platform == "win32" and identifier.lower().endswith(".exe"):
            return identifier[:-4]
        return identifier

    def _resolve_macos(self, identifier: str) -> Optional[str]:
        result = subprocess.run(
            ["osascript", "-e", f"id of application {applescript_quote(identifier)}"],
            capture_output=True,
            text=True,
            timeout=self.timeout
        )
        if result.returncode != 0:
            logger.debug(f"No macOS application named {identifier}: {result.stderr.strip()}")
            return None
        return result.stdout.strip() or None

    def _resolve_windows(self, identifier: str) -> Optional[str]:
        exe = identifier if identifier.lower().endswith(".exe") else f"{identifier}.exe"
        found = shutil.which(exe)
        if found:
            return found
        try:
            import winreg
            key_path = rf"SOFTWARE\Microsoft\Windows\CurrentVersion\App Paths\{exe}"
            for hive in (winreg.HKEY_CURRENT_USER, winreg.HKEY_LOCAL_MACHINE):
                try:
                    with winreg.OpenKey(hive, key_path) as key:
                        value, _ = winreg.QueryValueEx(key, None)
                        if value:
                            return value
                except OSError:
                    continue
        except ImportError:
            logger.debug("winreg not available")
        return None

    # ------------------------------------------------------------------
    # Actions
    # ------------------------------------------------------------------

    def launch(self, identifier: str) -> bool:
        """
        Ask the OS to bring identifier to the foreground.

        Returns:
            True if the launch request was accepted.
        """
        try:
            if self.platform == "darwin":
                return self._run(["open", "-a", identifier])
            if self.platform == "win32":
                path = self._resolve_windows(identifier)
                if not path:
                    return False
                os.startfile(path)  # type: ignore[attr-defined]
                return True
            path = shutil.which(identifier)
            if not path:
                return False
            subprocess.Popen(
                [path],
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                start_new_session=True
            )
            return True
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"Failed to launch {identifier}: {e}")
            return False

    def go_home(self) -> bool:
        """
        Return the user to the home surface (Finder / desktop).

        Returns:
            True if the request was accepted.
        """
        try:
            if self.platform == "darwin":
                return self._run(["osascript", "-e", f"tell application {applescript_quote(config.HOME_APP_ID)} to activate"])
            if self.platform == "win32":
                import ctypes
                # Minimize all windows (Win+M) so the desktop is in front
                shell = ctypes.windll.user32
                VK_LWIN, VK_M, KEYUP = 0x5B, 0x4D, 0x0002
                shell.keybd_event(VK_LWIN, 0, 0, 0)
                shell.keybd_event(VK_M, 0, 0, 0)
                shell.keybd_event(VK_M, 0, KEYUP, 0)
                shell.keybd_event(VK_LWIN, 0, KEYUP, 0)
                return True
            if shutil.which("xdotool"):
                return self._run(["xdotool", "key", "super+d"])
            logger.warning(f"No way to show the desktop on {self.platform}")
            return False
        except (OSError, subprocess.SubprocessError, AttributeError) as e:
            logger.error(f"Failed to return home: {e}")
            return False

    def _run(self, command: List[str]) -> bool:
        result = subprocess.run(
            command,
            capture_output=True,
            text=True,
            timeout=self.timeout
        )
        if result.returncode != 0:
            logger.warning(f"{command[0]} failed with code {result.returncode}: {result.stderr.strip()}")
            return False
        return True
