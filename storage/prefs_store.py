"""
Durable key-value store shared by the foreground monitor and the gate UI.

Every key update is a single atomic read-modify-write under one lock, so a
reader never observes a half-applied change. No operation spans two keys.

The JSON file backend writes through on every change (temp file + rename)
and re-reads the file whenever it was modified by another process, so the
file on disk stays the single source of truth. Edits made by the CLI while
the service is running are picked up on the next poll.
"""

import copy
import json
import logging
import os
import sys
import tempfile
import threading
from contextlib import contextmanager, nullcontext
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Protocol, Tuple

logger = logging.getLogger(__name__)


class StoreError(Exception):
    """Raised when the backing file exists but cannot be read at all."""


class PrefsStore(Protocol):
    """Interface every store backend implements."""

    def get(self, key: str, default: Any = None) -> Any:
        """Return the value for key, or default when absent."""
        ...

    def set(self, key: str, value: Any) -> bool:
        """Write key; returns False if the write did not persist."""
        ...

    def remove(self, key: str) -> bool:
        """Delete key; returns False if the delete did not persist."""
        ...

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Optional[Any]:
        """Atomically replace key with fn(current); returns the new value or None on failure."""
        ...

    def remove_if(self, key: str, predicate: Callable[[Any], bool]) -> bool:
        """Atomically delete key when predicate(current) holds; True if deleted."""
        ...

    def keys(self, prefix: str = "") -> List[str]:
        """List keys starting with prefix."""
        ...


class MemoryPrefsStore:
    """
    In-memory store with the same atomicity guarantees as the file store.

    Used directly in tests and as the base for JsonPrefsStore, which only
    adds persistence and change detection.
    """

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = dict(initial or {})
        self._lock = threading.RLock()

    # ------------------------------------------------------------------
    # Hooks for persistent subclasses
    # ------------------------------------------------------------------

    def _refresh(self, force: bool = False) -> None:
        """Pick up external changes before a read. No-op in memory."""

    def _exclusive(self):
        """Cross-process guard held around a read-modify-write. No-op in memory."""
        return nullcontext()

    def _persist(self, data: Dict[str, Any]) -> bool:
        """Persist a candidate snapshot. Returns True when durable."""
        return True

    def _commit(self, data: Dict[str, Any]) -> bool:
        if not self._persist(data):
            return False
        self._data = data
        return True

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            self._refresh()
            if key not in self._data:
                return default
            return copy.deepcopy(self._data[key])

    def set(self, key: str, value: Any) -> bool:
        with self._lock, self._exclusive():
            self._refresh(force=True)
            candidate = dict(self._data)
            candidate[key] = value
            if not self._commit(candidate):
                logger.error(f"Write of '{key}' did not persist")
                return False
            return True

    def remove(self, key: str) -> bool:
        with self._lock, self._exclusive():
            self._refresh(force=True)
            if key not in self._data:
                return True
            candidate = dict(self._data)
            del candidate[key]
            if not self._commit(candidate):
                logger.error(f"Removal of '{key}' did not persist")
                return False
            return True

    def update(self, key: str, fn: Callable[[Any], Any], default: Any = None) -> Optional[Any]:
        with self._lock, self._exclusive():
            self._refresh(force=True)
            current = copy.deepcopy(self._data.get(key, default))
            new_value = fn(current)
            candidate = dict(self._data)
            candidate[key] = new_value
            if not self._commit(candidate):
                logger.error(f"Update of '{key}' did not persist")
                return None
            return copy.deepcopy(new_value)

    def remove_if(self, key: str, predicate: Callable[[Any], bool]) -> bool:
        with self._lock, self._exclusive():
            self._refresh(force=True)
            if key not in self._data or not predicate(self._data[key]):
                return False
            candidate = dict(self._data)
            del candidate[key]
            if not self._commit(candidate):
                logger.error(f"Removal of '{key}' did not persist")
                return False
            return True

    def keys(self, prefix: str = "") -> List[str]:
        with self._lock:
            self._refresh()
            return [k for k in self._data if k.startswith(prefix)]


class JsonPrefsStore(MemoryPrefsStore):
    """
    File-backed store persisted as a single JSON object.

    Malformed files are treated as empty (logged), matching how the
    trackers recover from a corrupt data file.

    Writers in different processes (the service and the CLI) serialise on
    an OS lock held on a sidecar `<name>.lock` file, and every write
    re-reads the file under that lock, so neither overwrites a key the
    other just changed.
    """

    def __init__(self, path: Path) -> None:
        super().__init__()
        self.path = Path(path)
        self.lock_path = self.path.with_name(self.path.name + ".lock")
        self._signature: Optional[Tuple[int, int]] = None
        with self._lock:
            self._refresh()

    def load(self) -> Dict[str, Any]:
        """
        Read the backing file strictly.

        Returns:
            Parsed contents (empty dict if the file does not exist).

        Raises:
            StoreError: If the file exists but is unreadable or not a JSON object.
        """
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r') as f:
                data = json.load(f)
        except (json.JSONDecodeError, IOError, OSError, PermissionError) as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StoreError(f"{self.path} does not contain a JSON object")
        return data

    def _current_signature(self) -> Optional[Tuple[int, int]]:
        try:
            stat = self.path.stat()
        except OSError:
            return None
        return stat.st_mtime_ns, stat.st_size

    @contextmanager
    def _exclusive(self):
        """Hold an exclusive OS lock on the sidecar lock file (blocking)."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            handle = open(self.lock_path, "a+b")
        except OSError as e:
            logger.warning(f"Cannot open {self.lock_path}, writing without a file lock: {e}")
            yield
            return
        try:
            handle.seek(0)
            if sys.platform == "win32":
                import msvcrt
                msvcrt.locking(handle.fileno(), msvcrt.LK_LOCK, 1)
            else:
                import fcntl
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
            try:
                yield
            finally:
                handle.seek(0)
                if sys.platform == "win32":
                    import msvcrt
                    msvcrt.locking(handle.fileno(), msvcrt.LK_UNLCK, 1)
                else:
                    import fcntl
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        finally:
            handle.close()

    def _refresh(self, force: bool = False) -> None:
        signature = self._current_signature()
        if not force and signature is not None and signature == self._signature:
            return
        if signature is None:
            if self._signature is not None:
                logger.warning(f"Prefs file {self.path} disappeared, starting empty")
                self._data = {}
            self._signature = None
            return
        try:
            self._data = self.load()
            logger.debug(f"Loaded prefs from {self.path}")
        except StoreError as e:
            logger.warning(f"Invalid prefs file, using empty store: {e}")
            self._data = {}
        self._signature = signature

    def _persist(self, data: Dict[str, Any]) -> bool:
        """
        Save a snapshot atomically.

        Uses atomic write (write to temp file, then rename) so a crash mid-write
        never leaves a truncated file behind.
        """
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            temp_fd, temp_path = tempfile.mkstemp(
                suffix='.tmp',
                prefix='prefs_',
                dir=self.path.parent
            )

            try:
                with os.fdopen(temp_fd, 'w') as f:
                    json.dump(data, f, indent=2, sort_keys=True)
                os.replace(temp_path, self.path)
            except Exception:
                try:
                    os.unlink(temp_path)
                except OSError:
                    pass
                raise

            self._signature = self._current_signature()
            return True

        except (IOError, OSError, PermissionError, TypeError, ValueError) as e:
            logger.error(f"Failed to save prefs to {self.path}: {e}")
            return False
