#!/usr/bin/env python3
"""
Verse Gate - Main Entry Point

Watches the foreground app and puts a short, verse-bearing gate in front of
apps on the block list.

Usage:
    python main.py                    # Run the gate service (default)
    python main.py --block Discord    # Add an app to the block list
    python main.py --unblock Discord  # Remove an app from the block list
    python main.py --list             # Show the block list
    python main.py --countdown 10     # Countdown length for new gates
    python main.py --translation WEB  # Verse translation for new gates
    python main.py --status           # Settings and today's open counts
    python main.py --install-autostart  # Start the service at login
    python main.py --remove-autostart   # Stop starting it at login
"""

# =============================================================================
# PyInstaller bundled app path fix - MUST BE BEFORE ANY OTHER IMPORTS
# =============================================================================
import os
import sys

if getattr(sys, 'frozen', False) and hasattr(sys, '_MEIPASS'):
    _bundle_dir = sys._MEIPASS
    os.chdir(_bundle_dir)
    if _bundle_dir not in sys.path:
        sys.path.insert(0, _bundle_dir)

import argparse
import logging
import signal
from logging.handlers import RotatingFileHandler
from typing import List, Optional

import config
from autostart import AutostartManager
from core.engine import GateEngine
from instance_lock import check_single_instance, read_lock_pid

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL.upper(), logging.INFO),
    format=config.LOG_FORMAT
)
logger = logging.getLogger(__name__)


def _add_file_logging() -> None:
    """Mirror logs into a rotating file when LOG_FILE is set."""
    if not config.LOG_FILE:
        return
    try:
        handler = RotatingFileHandler(
            config.LOG_FILE,
            maxBytes=config.LOG_MAX_BYTES,
            backupCount=config.LOG_BACKUP_COUNT,
        )
    except OSError as e:
        logger.warning(f"Cannot open log file {config.LOG_FILE}: {e}")
        return
    handler.setFormatter(logging.Formatter(config.LOG_FORMAT))
    logging.getLogger().addHandler(handler)


_add_file_logging()


def print_block_list(engine: GateEngine) -> None:
    """Print the blocked apps, one per line."""
    apps = sorted(engine.blocklist.get_blocked_apps())
    if not apps:
        print("No apps are blocked. Add one with: python main.py --block <app>")
        return
    print("Blocked apps:")
    for app in apps:
        print(f"  • {app}")


def print_status(engine: GateEngine) -> None:
    """Print the settings and today's open counts."""
    status = engine.get_status()
    print("\n" + "=" * 50)
    print("📖 Verse Gate")
    print("=" * 50)
    print(f"Countdown:   {status['countdown_seconds']}s")
    translation = status["translation"]
    print(f"Translation: {translation} ({config.TRANSLATIONS.get(translation, translation)})")
    if status["active_session"]:
        print(f"In session:  {status['active_session']}")

    print("\nToday:")
    counts = status["today_counts"]
    if not status["blocked_apps"] and not counts:
        print("  Nothing blocked yet.")
    for app in sorted(set(status["blocked_apps"]) | set(counts)):
        count = counts.get(app, 0)
        print(f"  {app}: opened {count} {'time' if count == 1 else 'times'}")
    print("=" * 50)


def run_admin(engine: GateEngine, args: argparse.Namespace) -> int:
    """
    Apply block list and settings changes.

    Returns:
        Process exit code.
    """
    exit_code = 0

    for app in args.block or []:
        result = engine.block_app(app)
        if result["success"]:
            print(f"✓ Blocked {app}")
        else:
            print(f"❌ {result['error']}")
            exit_code = 1

    for app in args.unblock or []:
        result = engine.unblock_app(app)
        if result["success"]:
            print(f"✓ Unblocked {app}")
        else:
            print(f"❌ {result['error']}")
            exit_code = 1

    if args.countdown is not None:
        result = engine.set_countdown(args.countdown)
        if result["success"]:
            print(f"✓ Countdown set to {args.countdown}s")
        else:
            print(f"❌ {result['error']}")
            exit_code = 1

    if args.translation is not None:
        result = engine.set_translation(args.translation)
        if result["success"]:
            print(f"✓ Translation set to {args.translation.strip().upper()}")
        else:
            print(f"❌ {result['error']}")
            exit_code = 1

    if args.list:
        print_block_list(engine)
    if args.status:
        print_status(engine)
    return exit_code


def run_autostart(enabled: bool, manager: Optional[AutostartManager] = None) -> int:
    """Register or unregister the service for start at login."""
    manager = manager or AutostartManager()
    if not manager.set_autostart(enabled):
        print(f"✗ Could not {'enable' if enabled else 'disable'} start at login (see log)")
        return 1
    if enabled:
        print("✓ Verse Gate will start at login")
    else:
        print("✓ Verse Gate will no longer start at login")
    return 0


def run_service() -> int:
    """
    Run the monitor with the full-screen gate window until interrupted.

    Returns:
        Process exit code.
    """
    import tkinter as tk
    from gui.gate_window import GateWindow

    if not check_single_instance():
        existing_pid = read_lock_pid()
        pid_info = f" (PID: {existing_pid})" if existing_pid else ""
        print(f"\nVerse Gate is already running{pid_info}.")
        print("Only one instance can run at a time.\n")
        return 1

    root = tk.Tk()
    root.withdraw()
    window = GateWindow(root)
    engine = GateEngine(presenter=window)

    result = engine.start()
    if not result["success"]:
        print(f"\n❌ {result['error']}")
        root.destroy()
        return 1

    blocked = sorted(engine.blocklist.get_blocked_apps())
    print(f"\n📖 Verse Gate is watching {len(blocked)} app(s). Press Ctrl+C to stop.")
    if not blocked:
        print("   Add apps with: python main.py --block <app>")

    def _shutdown(signum, frame) -> None:
        logger.info(f"Received signal {signum}, shutting down")
        root.quit()

    signal.signal(signal.SIGINT, _shutdown)
    signal.signal(signal.SIGTERM, _shutdown)

    try:
        root.mainloop()
    finally:
        window.close()
        engine.cleanup()
        try:
            root.destroy()
        except tk.TclError:
            pass
    print("\n👋 Goodbye!")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="verse-gate",
        description="Verse Gate - a mindful pause before distracting apps",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py                     Run the gate service (default)
  python main.py --block Discord     Gate Discord from now on
  python main.py --countdown 10      Wait 10 seconds on new gates
        """
    )
    parser.add_argument("--block", metavar="APP", action="append",
                        help="Add an app to the block list (repeatable)")
    parser.add_argument("--unblock", metavar="APP", action="append",
                        help="Remove an app from the block list (repeatable)")
    parser.add_argument("--list", action="store_true", help="Show the block list")
    parser.add_argument("--countdown", type=int, metavar="SECONDS",
                        help=f"Countdown for new gates (usually one of {', '.join(map(str, config.COUNTDOWN_OPTIONS))})")
    parser.add_argument("--translation", metavar="NAME",
                        help=f"Verse translation ({', '.join(config.TRANSLATIONS)})")
    parser.add_argument("--status", action="store_true",
                        help="Show settings and today's open counts")
    autostart = parser.add_mutually_exclusive_group()
    autostart.add_argument("--install-autostart", action="store_true",
                           help="Start the gate service automatically at login")
    autostart.add_argument("--remove-autostart", action="store_true",
                           help="Stop starting the gate service at login")
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """
    Main entry point - parses arguments and runs the service or an admin command.
    """
    args = build_parser().parse_args(argv)
    is_admin = any((
        args.block, args.unblock, args.list, args.status,
        args.countdown is not None, args.translation is not None,
    ))

    try:
        if args.install_autostart or args.remove_autostart:
            sys.exit(run_autostart(args.install_autostart))
        if is_admin:
            sys.exit(run_admin(GateEngine(), args))
        sys.exit(run_service())
    except KeyboardInterrupt:
        print("\n\nGoodbye!")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        print(f"\nFatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
