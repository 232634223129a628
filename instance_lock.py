"""
Instance Lock - keeps a single Verse Gate service running per user.

Two services polling the same prefs file would both open a gate for the
same app switch and double-count it. The lock is an OS-level file lock:
- Unix (macOS/Linux): fcntl.flock()
- Windows: msvcrt.locking()

The OS drops the lock when the process dies, even on a crash.
"""

import atexit
import logging
import os
import sys
from pathlib import Path
from typing import IO, Optional

import config

logger = logging.getLogger(__name__)

# Bytes locked on Windows (msvcrt cannot lock an empty file)
_WIN_LOCK_BYTES = 32


def _is_process_running(pid: int) -> bool:
    """
    Check if a process with the given PID is currently running.

    Returns:
        True if the process is running, False otherwise.
    """
    if pid <= 0:
        return False
    try:
        if sys.platform == "win32":
            import ctypes
            kernel32 = ctypes.windll.kernel32
            handle = kernel32.OpenProcess(0x1000, False, pid)
            if handle:
                kernel32.CloseHandle(handle)
                return True
            return False
        os.kill(pid, 0)
        return True
    except (OSError, ProcessLookupError):
        return False


class InstanceLock:
    """
    Cross-platform single-instance lock.

    Usage:
        lock = InstanceLock()
        if not lock.acquire():
            print("Verse Gate is already running")
            sys.exit(1)
    """

    def __init__(self, lock_file: Optional[Path] = None):
        self.lock_file = lock_file or config.LOCK_FILE
        self._handle: Optional[IO] = None

    @property
    def is_acquired(self) -> bool:
        return self._handle is not None

    def _lock(self) -> bool:
        """Open the lock file and take a non-blocking exclusive lock, writing our PID."""
        handle = None
        try:
            if sys.platform == "win32":
                import msvcrt
                mode = "r+b" if self.lock_file.exists() else "w+b"
                handle = open(self.lock_file, mode)
                msvcrt.locking(handle.fileno(), msvcrt.LK_NBLCK, _WIN_LOCK_BYTES)
                handle.seek(0)
                handle.truncate()
                handle.write(str(os.getpid()).encode("utf-8").ljust(_WIN_LOCK_BYTES, b"\0"))
            else:
                import fcntl
                handle = open(self.lock_file, "a+")
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                handle.seek(0)
                handle.truncate()
                handle.write(str(os.getpid()))
            handle.flush()
            self._handle = handle
            return True
        except (IOError, OSError) as e:
            logger.debug(f"Could not lock {self.lock_file}: {e}")
            if handle is not None:
                handle.close()
            return False

    def _remove_stale_lock(self) -> bool:
        """
        Delete the lock file if the PID recorded in it is dead.

        Returns:
            True if a stale lock was removed.
        """
        pid = read_lock_pid(self.lock_file)
        if pid is None or pid == os.getpid() or _is_process_running(pid):
            return False
        logger.info(f"Removing stale lock from dead process {pid}")
        try:
            self.lock_file.unlink()
            return True
        except OSError as e:
            logger.warning(f"Failed to remove stale lock file: {e}")
            return False

    def acquire(self) -> bool:
        """
        Try to acquire the instance lock.

        Returns:
            True if no other instance holds it.
        """
        if self.is_acquired:
            return True
        try:
            self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error(f"Cannot create lock directory: {e}")
            return False

        if self._lock():
            logger.debug(f"Instance lock acquired (PID: {os.getpid()})")
            return True
        if self._remove_stale_lock() and self._lock():
            logger.info("Instance lock acquired after cleaning stale lock")
            return True
        return False

    def release(self) -> None:
        """Release the lock and remove the lock file."""
        if self._handle is None:
            return
        try:
            if sys.platform == "win32":
                import msvcrt
                self._handle.seek(0)
                msvcrt.locking(self._handle.fileno(), msvcrt.LK_UNLCK, _WIN_LOCK_BYTES)
            self._handle.close()
        except (IOError, OSError) as e:
            logger.warning(f"Error releasing instance lock: {e}")
        self._handle = None
        try:
            self.lock_file.unlink()
        except OSError as e:
            logger.debug(f"Could not delete lock file: {e}")
        logger.debug("Instance lock released")

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.release()
        return False


def read_lock_pid(lock_file: Optional[Path] = None) -> Optional[int]:
    """
    Read the PID recorded in the lock file.

    Returns:
        PID of the lock holder, or None if not readable
    """
    lock_file = lock_file or config.LOCK_FILE
    try:
        content = lock_file.read_bytes().rstrip(b"\0").decode("utf-8").strip()
    except (IOError, OSError, UnicodeDecodeError):
        return None
    return int(content) if content.isdigit() else None


# Global instance for module-level functions
_instance_lock: Optional[InstanceLock] = None


def check_single_instance() -> bool:
    """
    Check if this is the only running Verse Gate service.

    The lock is registered with atexit for cleanup.

    Returns:
        True if this is the only instance (safe to proceed)
    """
    global _instance_lock
    if _instance_lock is not None:
        return _instance_lock.is_acquired

    _instance_lock = InstanceLock()
    acquired = _instance_lock.acquire()
    if acquired:
        atexit.register(release_instance_lock)
    return acquired


def release_instance_lock() -> None:
    """Release the instance lock (also called via atexit)."""
    global _instance_lock
    if _instance_lock is not None:
        _instance_lock.release()
        _instance_lock = None
