"""Per-key mutual exclusion.

Decisions on different approval rows of the same entity must not interleave
their read-all-votes / write-entity-status steps. ``KeyedLock`` hands out one
re-entrant lock per key and drops it once nobody holds or waits for it.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Hashable, Iterator


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.RLock()
        self.users = 0


class KeyedLock:
    """A registry of locks keyed by an arbitrary hashable value."""

    def __init__(self):
        self._guard = threading.Lock()
        self._entries: Dict[Hashable, _Entry] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        """Hold the lock for ``key`` for the duration of the block."""
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = self._entries[key] = _Entry()
            entry.users += 1
        entry.lock.acquire()
        try:
            yield
        finally:
            entry.lock.release()
            with self._guard:
                entry.users -= 1
                if entry.users == 0:
                    del self._entries[key]

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)


# Process-wide registry keyed by EntityRef; shared so that engines and
# services built per request still serialize on the same entity.
ENTITY_LOCKS = KeyedLock()
