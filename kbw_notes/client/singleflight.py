"""Per-key in-flight guards."""

import threading
from collections.abc import Hashable


class SingleFlight:
    """Atomic test-and-set over a set of busy keys.

    ``acquire`` either marks the key busy and returns True, or returns
    False because an operation for that key is already running. Callers
    must ``release`` in a ``finally`` block.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._busy: set[Hashable] = set()

    def acquire(self, key: Hashable = None) -> bool:
        with self._lock:
            if key in self._busy:
                return False
            self._busy.add(key)
            return True

    def release(self, key: Hashable = None) -> None:
        with self._lock:
            self._busy.discard(key)

    def busy(self, key: Hashable = None) -> bool:
        with self._lock:
            return key in self._busy
