# =======================================================================================
# rfid_gate/services/resident_cache.py - Shared Resident Lookup Cache
# =======================================================================================
import threading
import time
from collections import OrderedDict
from typing import Callable, Optional
from ..models.schemas import ResidentRecord


class ResidentCache:
    """
    TTL + size-bounded record of the last resident state seen per tag, shared by
    every channel. Access decisions never read from it; it backs the health
    report and is swept by the liveness pulse.
    """

    def __init__(self, ttl_ms: int, limit: int, clock: Callable[[], float] = time.monotonic):
        self._ttl = ttl_ms / 1000.0
        self._limit = limit
        self._clock = clock
        self._lock = threading.Lock()
        # key = tag, value = (stored_at, record)
        self._items: "OrderedDict[str, tuple]" = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self._ttl > 0 and self._limit > 0

    def get(self, tag: str) -> Optional[ResidentRecord]:
        """Return cached record if still valid."""
        if not self.enabled:
            return None
        with self._lock:
            item = self._items.get(tag)
            if not item:
                return None
            stored_at, record = item
            if self._clock() - stored_at > self._ttl:
                self._items.pop(tag, None)
                return None
            # keep most-recently-used ordering
            self._items.move_to_end(tag)
            return record

    def put(self, record: ResidentRecord) -> None:
        """Store record with timestamp and trim cache size."""
        if not self.enabled:
            return
        with self._lock:
            self._items[record.tag] = (self._clock(), record)
            self._items.move_to_end(record.tag)
            while len(self._items) > self._limit:
                self._items.popitem(last=False)

    def invalidate(self, tag: str) -> None:
        with self._lock:
            self._items.pop(tag, None)

    def sweep(self) -> int:
        """Drop expired entries; returns how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [tag for tag, (ts, _) in self._items.items() if now - ts > self._ttl]
            for tag in expired:
                del self._items[tag]
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._items)
