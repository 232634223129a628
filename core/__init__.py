"""
Core gate logic for Verse Gate.

Contains the access policy, the foreground monitor, the gate session state
machine and the headless GateEngine that wires them together. Zero UI
dependencies.
"""

from core.policy import Decision, Verdict, decide

__all__ = ["Decision", "Verdict", "decide"]
