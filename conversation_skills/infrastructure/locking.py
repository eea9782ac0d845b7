"""
Per-Key Locking.

Serializes work for one key (a user identity) while letting different keys
proceed in parallel. Locks are re-entrant so a caller holding a user's lock
for a whole turn can still call store operations that take it again. Entries
are dropped once no thread holds or waits on them.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Iterator, Tuple


class KeyedLock:
    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[str, Tuple[threading.RLock, int]] = {}

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._guard:
            lock, refs = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.RLock()
            self._locks[key] = (lock, refs + 1)

        lock.acquire()
        try:
            yield
        finally:
            lock.release()
            with self._guard:
                lock, refs = self._locks[key]
                if refs == 1:
                    del self._locks[key]
                else:
                    self._locks[key] = (lock, refs - 1)

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)
