"""
Persistence layer for Verse Gate.

A single key-value store is injected into every component that needs
durable state; nothing reads it through a global.
"""

from storage.prefs_store import JsonPrefsStore, MemoryPrefsStore, PrefsStore, StoreError
from storage.settings import GateSettings

__all__ = ["JsonPrefsStore", "MemoryPrefsStore", "PrefsStore", "StoreError", "GateSettings"]
