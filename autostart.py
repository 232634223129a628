"""
Start-at-login registration for the Verse Gate service.

Keeps the monitor running across restarts without anyone launching it by hand:
- macOS: a LaunchAgent plist in ~/Library/LaunchAgents (RunAtLoad, relaunched
  if it exits with an error)
- Windows: a value under HKCU\\Software\\Microsoft\\Windows\\CurrentVersion\\Run
- Linux: an XDG autostart .desktop entry

Registration only affects the next login; the single-instance lock keeps a
second copy from starting if the service is already running.
"""

import logging
import os
import plistlib
import shlex
import subprocess
import sys
from pathlib import Path
from typing import List, Optional

import config

logger = logging.getLogger(__name__)

RUN_KEY = r"Software\Microsoft\Windows\CurrentVersion\Run"


def default_command() -> List[str]:
    """Command line that starts the service from this install."""
    if config.is_bundled():
        return [sys.executable]
    return [sys.executable, str(Path(__file__).resolve().parent / "main.py")]


class AutostartManager:
    """
    Cross-platform start-at-login switch.

    Usage:
        manager = AutostartManager()
        manager.set_autostart(True)
        manager.is_autostart_enabled()  # True
    """

    def __init__(self, command: Optional[List[str]] = None, home: Optional[Path] = None):
        self.platform = sys.platform
        self.command = command or default_command()
        self.home = Path(home) if home else Path.home()

    @property
    def launch_agent_path(self) -> Path:
        return self.home / "Library" / "LaunchAgents" / f"{config.AUTOSTART_LABEL}.plist"

    @property
    def desktop_entry_path(self) -> Path:
        base = os.environ.get("XDG_CONFIG_HOME") or str(self.home / ".config")
        return Path(base) / "autostart" / config.AUTOSTART_DESKTOP_FILE

    def is_autostart_enabled(self) -> bool:
        if self.platform == "darwin":
            return self.launch_agent_path.exists()
        if self.platform == "win32":
            return self._read_run_key() is not None
        return self.desktop_entry_path.exists()

    def set_autostart(self, enabled: bool) -> bool:
        """
        Register or unregister the service for start at login.

        Returns:
            True if the registration now matches `enabled`.
        """
        try:
            if self.platform == "darwin":
                self._set_macos(enabled)
            elif self.platform == "win32":
                self._set_windows(enabled)
            else:
                self._set_xdg(enabled)
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"Failed to {'enable' if enabled else 'disable'} autostart: {e}")
            return False
        logger.info(f"Autostart {'enabled' if enabled else 'disabled'} ({self.platform})")
        return True

    # ------------------------------------------------------------------
    # macOS
    # ------------------------------------------------------------------

    def _set_macos(self, enabled: bool) -> None:
        path = self.launch_agent_path
        if not enabled:
            path.unlink(missing_ok=True)
            return
        plist = {
            "Label": config.AUTOSTART_LABEL,
            "ProgramArguments": self.command,
            "RunAtLoad": True,
            "KeepAlive": {"SuccessfulExit": False},
            "ProcessType": "Interactive",
        }
        if config.LOG_FILE:
            plist["StandardErrorPath"] = config.LOG_FILE
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            plistlib.dump(plist, f)

    # ------------------------------------------------------------------
    # Windows
    # ------------------------------------------------------------------

    def _read_run_key(self) -> Optional[str]:
        import winreg
        try:
            with winreg.OpenKey(winreg.HKEY_CURRENT_USER, RUN_KEY) as key:
                value, _ = winreg.QueryValueEx(key, config.AUTOSTART_NAME)
                return value
        except OSError:
            return None

    def _set_windows(self, enabled: bool) -> None:
        import winreg
        with winreg.OpenKey(winreg.HKEY_CURRENT_USER, RUN_KEY, 0, winreg.KEY_SET_VALUE) as key:
            if enabled:
                winreg.SetValueEx(
                    key, config.AUTOSTART_NAME, 0, winreg.REG_SZ,
                    subprocess.list2cmdline(self.command)
                )
            else:
                try:
                    winreg.DeleteValue(key, config.AUTOSTART_NAME)
                except FileNotFoundError:
                    pass

    # ------------------------------------------------------------------
    # Linux (XDG)
    # ------------------------------------------------------------------

    def _set_xdg(self, enabled: bool) -> None:
        path = self.desktop_entry_path
        if not enabled:
            path.unlink(missing_ok=True)
            return
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(
            "[Desktop Entry]\n"
            "Type=Application\n"
            "Name=Verse Gate\n"
            "Comment=A mindful pause before distracting apps\n"
            f"Exec={shlex.join(self.command)}\n"
            "X-GNOME-Autostart-enabled=true\n"
            "NoDisplay=true\n"
        )
