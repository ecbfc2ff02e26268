"""
AisAB - Keyed Locks

Mutual exclusion per key. Two holders of the same key are serialized;
holders of different keys never wait for each other. Lock entries are
reference counted and discarded once no thread holds or waits for them,
so the table does not grow with the number of vessels ever seen.
"""

import threading
from contextlib import contextmanager
from typing import Dict, Generic, Hashable, Iterator, List, TypeVar

K = TypeVar("K", bound=Hashable)


class _Entry:
    __slots__ = ("lock", "users")

    def __init__(self):
        self.lock = threading.Lock()
        self.users = 0


class KeyedLock(Generic[K]):
    """
    A table of locks indexed by key.

    Example:
        >>> locks = KeyedLock()
        >>> with locks.hold((219000123, "SPEED_OVER_GROUND")):
        ...     pass
    """

    def __init__(self):
        self._entries: Dict[K, _Entry] = {}
        self._guard = threading.Lock()

    @contextmanager
    def hold(self, key: K) -> Iterator[None]:
        """Hold the lock for key for the duration of the with-block."""
        with self._guard:
            entry = self._entries.get(key)
            if entry is None:
                entry = _Entry()
                self._entries[key] = entry
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

    def active_keys(self) -> List[K]:
        """Keys currently held or waited for."""
        with self._guard:
            return list(self._entries)

    def __len__(self) -> int:
        with self._guard:
            return len(self._entries)
