"""
Verse Gate - full-screen gate window

A minimal tkinter presenter for gate sessions. The monitor thread hands
sessions over through present(); they are queued and shown on the Tk
thread, which also drives the countdown through Tk's `after`.
"""

import logging
import queue
import sys
import threading
import tkinter as tk
from typing import Callable, Optional

from core.gate_session import GateOutcome, GateSession

logger = logging.getLogger(__name__)


# --- Gate Colors (Seraphic dark palette) ---
COLORS = {
    "bg": "#0F172A",
    "text": "#F1F5F9",
    "text_secondary": "#94A3B8",
    "countdown": "#FBBF24",
    "button_primary": "#2563EB",
    "button_primary_text": "#FFFFFF",
    "button_secondary": "#1E293B",
    "button_secondary_text": "#E2E8F0",
}

FONT_FAMILY = "Georgia"

# How often the Tk thread checks for sessions queued by the monitor
QUEUE_POLL_MS = 50


class _AfterHandle:
    """Cancel handle for a Tk `after` callback."""

    def __init__(self, root: tk.Misc, after_id: str):
        self.root = root
        self.after_id = after_id

    def cancel(self) -> None:
        try:
            self.root.after_cancel(self.after_id)
        except tk.TclError as e:
            logger.debug(f"after_cancel failed: {e}")


class TkScheduler:
    """Countdown scheduler backed by Tk's event loop (call from the Tk thread)."""

    def __init__(self, root: tk.Misc):
        self.root = root

    def call_later(self, delay: float, callback: Callable[[], None]) -> _AfterHandle:
        after_id = self.root.after(int(delay * 1000), callback)
        return _AfterHandle(self.root, after_id)


class GateWindow:
    """
    Gate presenter built on a (usually withdrawn) Tk root.

    At most one gate is on screen at a time; is_presenting() stays True
    from the moment present() is called until the session finishes.
    """

    def __init__(self, root: tk.Tk):
        """
        Initialize the presenter.

        Args:
            root: Tk root owned by the main thread
        """
        self.root = root
        self.scheduler = TkScheduler(root)
        self.window: Optional[tk.Toplevel] = None
        self.session: Optional[GateSession] = None

        self._queue: "queue.Queue[GateSession]" = queue.Queue()
        self._pending = 0
        self._lock = threading.Lock()

        self._countdown_label: Optional[tk.Label] = None
        self._button_frame: Optional[tk.Frame] = None

        self.root.after(QUEUE_POLL_MS, self._drain_queue)

    # ------------------------------------------------------------------
    # Presenter interface (any thread)
    # ------------------------------------------------------------------

    def present(self, session: GateSession) -> None:
        """Queue a session for display; safe to call from the monitor thread."""
        with self._lock:
            self._pending += 1
        self._queue.put(session)

    def is_presenting(self) -> bool:
        with self._lock:
            return self._pending > 0 or self.session is not None

    # ------------------------------------------------------------------
    # Tk thread
    # ------------------------------------------------------------------

    def _drain_queue(self) -> None:
        try:
            while True:
                session = self._queue.get_nowait()
                with self._lock:
                    self._pending -= 1
                    busy = self.session is not None
                    if not busy:
                        self.session = session
                if busy:
                    logger.warning(f"Gate already showing, dropping gate for {session.identifier}")
                    session.teardown()
                    continue
                self._show(session)
        except queue.Empty:
            pass
        finally:
            self.root.after(QUEUE_POLL_MS, self._drain_queue)

    def _show(self, session: GateSession) -> None:
        """Build the gate window for session and start its countdown."""
        session.on_tick = self._on_tick
        session.on_unlock = self._on_unlock
        session.on_finish = self._on_finish

        self.window = tk.Toplevel(self.root)
        self.window.title("Verse Gate")
        self.window.configure(bg=COLORS["bg"])
        self.window.attributes("-topmost", True)
        try:
            self.window.attributes("-fullscreen", True)
        except tk.TclError:
            width = self.window.winfo_screenwidth()
            height = self.window.winfo_screenheight()
            self.window.geometry(f"{width}x{height}+0+0")
        self.window.protocol("WM_DELETE_WINDOW", self._on_close)

        self._create_ui(session)
        self._ensure_front()

        logger.debug(f"Gate window shown for {session.identifier}")
        session.start()

    def _create_ui(self, session: GateSession) -> None:
        screen_width = self.window.winfo_screenwidth()
        wrap = max(300, int(screen_width * 0.6))

        container = tk.Frame(self.window, bg=COLORS["bg"])
        container.place(relx=0.5, rely=0.5, anchor="center")

        tk.Label(
            container,
            text=session.verse.format(),
            font=(FONT_FAMILY, 26, "italic"),
            fg=COLORS["text"],
            bg=COLORS["bg"],
            wraplength=wrap,
            justify="center",
        ).pack(pady=(0, 30))

        tk.Label(
            container,
            text=session.count_text,
            font=(FONT_FAMILY, 16),
            fg=COLORS["text_secondary"],
            bg=COLORS["bg"],
        ).pack(pady=(0, 20))

        self._countdown_label = tk.Label(
            container,
            text=self._countdown_text(session.remaining_seconds),
            font=(FONT_FAMILY, 20, "bold"),
            fg=COLORS["countdown"],
            bg=COLORS["bg"],
        )
        self._countdown_label.pack(pady=(0, 20))

        # Buttons stay hidden until the countdown unlocks the gate
        self._button_frame = tk.Frame(container, bg=COLORS["bg"])
        tk.Button(
            self._button_frame,
            text=session.abandon_label,
            font=(FONT_FAMILY, 15, "bold"),
            fg=COLORS["button_primary_text"],
            bg=COLORS["button_primary"],
            activebackground=COLORS["button_primary"],
            relief="flat",
            padx=24,
            pady=12,
            command=session.abandon,
        ).pack(fill="x", pady=(0, 12))
        tk.Button(
            self._button_frame,
            text=session.continue_label,
            font=(FONT_FAMILY, 13),
            fg=COLORS["button_secondary_text"],
            bg=COLORS["button_secondary"],
            activebackground=COLORS["button_secondary"],
            relief="flat",
            padx=24,
            pady=8,
            command=session.continue_to_app,
        ).pack(fill="x")

    def _ensure_front(self) -> None:
        """Bring the gate above every other window."""
        if self.window is None:
            return
        self.window.lift()
        self.window.attributes("-topmost", True)
        self.window.focus_force()
        if sys.platform == "darwin":
            self.root.after(50, self._lift_again)
            self.root.after(300, self._lift_again)

    def _lift_again(self) -> None:
        if self.window is None:
            return
        try:
            self.window.lift()
            self.window.attributes("-topmost", True)
        except tk.TclError as e:
            logger.debug(f"Could not lift gate window: {e}")

    @staticmethod
    def _countdown_text(remaining: int) -> str:
        return f"Take a breath... {remaining}s"

    # ------------------------------------------------------------------
    # Session callbacks (Tk thread)
    # ------------------------------------------------------------------

    def _on_tick(self, remaining: int) -> None:
        if self._countdown_label is not None:
            self._countdown_label.configure(text=self._countdown_text(remaining))

    def _on_unlock(self) -> None:
        if self._countdown_label is not None:
            self._countdown_label.pack_forget()
        if self._button_frame is not None:
            self._button_frame.pack()

    def _on_finish(self, outcome: Optional[GateOutcome]) -> None:
        self._destroy_window()
        with self._lock:
            self.session = None
        logger.debug(f"Gate window closed ({outcome.value if outcome else 'torn down'})")

    def _on_close(self) -> None:
        """Window-manager close acts as abandon; while counting it just goes home."""
        session = self.session
        if session is None:
            self._destroy_window()
            return
        if session.is_unlocked:
            session.abandon()
            return
        try:
            session.launcher.go_home()
        except Exception as e:
            logger.error(f"Failed to return home: {e}")
        session.teardown()

    def _destroy_window(self) -> None:
        if self.window is not None:
            try:
                self.window.destroy()
            except tk.TclError as e:
                logger.debug(f"Gate window already gone: {e}")
        self.window = None
        self._countdown_label = None
        self._button_frame = None

    def close(self) -> None:
        """Tear down any gate on screen (service shutdown)."""
        if self.session is not None:
            self.session.teardown()
        self._destroy_window()
