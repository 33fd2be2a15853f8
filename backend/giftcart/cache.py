import threading
import time
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional

MISS = object()


class TTLCache:
    """
    Small in-process cache with a per-entry time to live.

    ``clock`` defaults to ``time.monotonic``; tests pass a fake clock to move
    time forward.
    """

    def __init__(self, ttl_seconds: float, max_entries: int = 1024, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return MISS
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return MISS
            self._entries.move_to_end(key)
            return value

    def put(self, key: Hashable, value: Any, ttl: Optional[float] = None) -> None:
        ttl = self.ttl_seconds if ttl is None else ttl
        with self._lock:
            self._entries[key] = (self._clock() + ttl, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def invalidate(self, key: Hashable) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self):
        with self._lock:
            return len(self._entries)
