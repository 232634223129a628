"""Configuration settings for Verse Gate."""

import os
import sys
from pathlib import Path
from dotenv import load_dotenv


def is_bundled() -> bool:
    """
    Check if the application is running from a PyInstaller bundle.

    Returns:
        True if running from a bundled executable, False otherwise.
    """
    return getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS')


def get_user_data_dir() -> Path:
    """
    Get the directory for user-writable data (prefs store, logs, lock file).

    For development: ./data next to this file
    For bundled apps: a per-OS application data folder that survives updates.

    Returns:
        Path to the user data directory.
    """
    override = os.getenv("VERSE_GATE_DATA_DIR")
    if override:
        return Path(override).expanduser()

    if not is_bundled():
        return Path(__file__).parent / "data"

    if sys.platform == 'darwin':
        data_dir = Path.home() / "Library" / "Application Support" / "VerseGate"
    elif sys.platform == 'win32':
        appdata = os.environ.get('APPDATA')
        if appdata:
            data_dir = Path(appdata) / "VerseGate"
        else:
            data_dir = Path.home() / "AppData" / "Roaming" / "VerseGate"
    else:
        data_dir = Path.home() / ".local" / "share" / "VerseGate"

    try:
        data_dir.mkdir(parents=True, exist_ok=True)
    except Exception:
        # Fallback to home directory if creation fails
        data_dir = Path.home() / ".versegate"
        data_dir.mkdir(parents=True, exist_ok=True)

    return data_dir


def _default_self_app_id() -> str:
    """
    Identifier the OS reports for our own gate window when it is frontmost.

    The gate window lives in the Python (or bundled) process, so its
    identifier is derived from the running executable.
    """
    if is_bundled():
        name = Path(sys.executable).stem
        return name
    if sys.platform == 'darwin':
        return "Python"
    return Path(sys.executable).stem


def _default_home_app_id() -> str:
    """Identifier of the 'home surface' the gate returns to on abandon."""
    if sys.platform == 'darwin':
        return "Finder"
    if sys.platform == 'win32':
        return "explorer"
    return ""


def _env_float(name: str, default: float) -> float:
    """Read a float from the environment, ignoring malformed values."""
    raw = os.getenv(name, "")
    try:
        return float(raw) if raw else default
    except ValueError:
        return default


# Load environment variables from .env file (only in development)
if not is_bundled():
    _env_path = Path(__file__).parent / ".env"
    load_dotenv(_env_path)

# User data directory (for writable data like the prefs store)
USER_DATA_DIR = get_user_data_dir()

# Durable key-value store shared by the monitor and the gate window
PREFS_FILE = USER_DATA_DIR / "prefs.json"

# Persisted key layout
KEY_BLOCKED_APPS = "blocked_apps"
KEY_ACTIVE_SESSION = "active_session_app"
KEY_TEMP_ALLOWANCE_PREFIX = "temp_allowance_"
KEY_APP_COUNT_PREFIX = "app_count_"
KEY_COUNTDOWN_TIME = "countdown_time"
KEY_BIBLE_VERSION = "bible_version"

# Foreground monitor timing
# The event window must stay wider than the poll interval so a switch that
# lands between two polls is still seen.
POLL_INTERVAL_SECONDS = _env_float("POLL_INTERVAL_SECONDS", 0.01)
EVENT_WINDOW_SECONDS = max(
    _env_float("EVENT_WINDOW_SECONDS", 2.0),
    POLL_INTERVAL_SECONDS * 2,
)

# Window detection subprocess timeout (AppleScript / xdotool)
WINDOW_DETECTION_TIMEOUT = 2

# Temporary allowance granted on "continue" (bridges the launch hand-off)
ALLOWANCE_SECONDS = 30

# Gate countdown
DEFAULT_COUNTDOWN_SECONDS = 5
COUNTDOWN_OPTIONS = (3, 5, 10)
GATE_TICK_SECONDS = 1.0

# Verse translations bundled with the app
DEFAULT_TRANSLATION = "KJV"
TRANSLATIONS = {
    "KJV": "King James Version",
    "WEB": "World English Bible",
}

# Identifiers of our own UI and of the home surface
SELF_APP_ID = os.getenv("SELF_APP_ID", _default_self_app_id())
HOME_APP_ID = os.getenv("HOME_APP_ID", _default_home_app_id())

# Fallback display name when an identifier cannot be resolved
UNKNOWN_APP_NAME = "this app"

# Logging
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")  # Can override in .env: DEBUG, INFO, WARNING, ERROR
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_FILE = os.getenv("LOG_FILE", "")  # Optional rotating log file
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 5

# Single-instance lock for the monitor service
LOCK_FILE = USER_DATA_DIR / ".versegate_instance.lock"

# Start-at-login registration (LaunchAgent label, Run-key value, .desktop name)
AUTOSTART_LABEL = "com.versegate.service"
AUTOSTART_NAME = "VerseGate"
AUTOSTART_DESKTOP_FILE = "verse-gate.desktop"
