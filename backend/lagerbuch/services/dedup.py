"""Time windowed duplicate-submission guard.

Absorbs client double submits (double clicks, retried fetches) of the same
booking. Entries live in process memory only: they vanish on restart and are
not shared between server instances, so this is a debounce and not a lock.
"""
from __future__ import annotations
import threading
import time
from collections import OrderedDict
from typing import Callable, Hashable

DEFAULT_WINDOW_SECONDS = 5.0
DEFAULT_MAX_ENTRIES = 1024


class DedupWindow:
    def __init__(self, window_seconds: float = DEFAULT_WINDOW_SECONDS,
                 max_entries: int = DEFAULT_MAX_ENTRIES,
                 clock: Callable[[], float] = time.monotonic):
        self.window_seconds = window_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: 'OrderedDict[Hashable, float]' = OrderedDict()
        self._lock = threading.Lock()

    def _purge(self, now: float) -> None:
        # entries are kept in claim order, so expired ones sit at the front
        while self._entries:
            key, expires = next(iter(self._entries.items()))
            if expires > now:
                break
            self._entries.popitem(last=False)

    def claim(self, key: Hashable) -> bool:
        """Take the key for one window. False if it is already held."""
        with self._lock:
            now = self._clock()
            self._purge(now)
            if key in self._entries:
                return False
            self._entries[key] = now + self.window_seconds
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)
            return True

    def release(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def held(self, key: Hashable) -> bool:
        with self._lock:
            self._purge(self._clock())
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            self._purge(self._clock())
            return len(self._entries)


EXTENSION_KEY = 'lagerbuch.dedup'


def get_dedup(name: str) -> DedupWindow:
    """Per-app window registered under ``app.extensions['lagerbuch.dedup']``."""
    from flask import current_app
    return current_app.extensions[EXTENSION_KEY][name]
