import time
from collections import OrderedDict
from typing import Any, Callable, Generic, Hashable, Optional, Tuple, TypeVar

V = TypeVar("V")

MISSING = object()


class TTLCache(Generic[V]):
    """
    Bounded cache whose entries expire ``ttl_s`` seconds after insertion.

    When an insert finds the cache full, expired entries are swept first;
    if it is still full the oldest insertion is evicted.
    """

    def __init__(self, capacity: int, ttl_s: float, clock: Callable[[], float] = time.monotonic):
        if capacity <= 0:
            raise ValueError("capacity must be positive")
        self.capacity = capacity
        self.ttl_s = ttl_s
        self.clock = clock
        self._entries: "OrderedDict[Hashable, Tuple[float, V]]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: Hashable) -> bool:
        return self.get(key, MISSING) is not MISSING

    def get(self, key: Hashable, default: Any = None) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return default
        expires_at, value = entry
        if expires_at <= self.clock():
            del self._entries[key]
            return default
        return value

    def set(self, key: Hashable, value: V) -> None:
        if key in self._entries:
            del self._entries[key]
        elif len(self._entries) >= self.capacity:
            self.sweep()
            while len(self._entries) >= self.capacity:
                self._entries.popitem(last=False)
        self._entries[key] = (self.clock() + self.ttl_s, value)

    def sweep(self) -> int:
        now = self.clock()
        expired = [key for key, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        return len(expired)
