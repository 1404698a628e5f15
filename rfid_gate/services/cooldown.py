# =======================================================================================
# rfid_gate/services/cooldown.py - Per-Channel Queue + Cooldown Gate
# =======================================================================================
import logging
import threading
import time
from collections import OrderedDict
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)


class CooldownGate:
    """
    Pending queue and cooldown map for ONE channel.

    A tag is admitted when it is not already queued and its last dequeue on this
    channel is at least `window_ms` ago. The cooldown clock starts when the tag is
    dequeued for resolution, not when it is queued.
    """

    def __init__(self, channel: str, window_ms: int = 180000, clock: Callable[[], float] = time.monotonic):
        self.channel = channel
        self.window = window_ms / 1000.0
        self._clock = clock
        self._lock = threading.Lock()
        # insertion-ordered set: FIFO with O(1) membership
        self._pending: "OrderedDict[str, None]" = OrderedDict()
        self._last_processed: Dict[str, float] = {}

    def admit(self, tag: str) -> bool:
        with self._lock:
            if tag in self._pending:
                logger.warning("[cooldown] %s already queued on %s; ignored", tag, self.channel)
                return False
            last = self._last_processed.get(tag)
            if last is not None and self._clock() - last < self.window:
                logger.warning("[cooldown] %s ignored on %s due to cooldown", tag, self.channel)
                return False
            self._pending[tag] = None
            logger.info("[cooldown] %s added to %s queue (depth=%d)", tag, self.channel, len(self._pending))
            return True

    def next_tag(self) -> Optional[str]:
        """Dequeue the oldest pending tag and start its cooldown."""
        with self._lock:
            if not self._pending:
                return None
            tag, _ = self._pending.popitem(last=False)
            self._last_processed[tag] = self._clock()
            return tag

    def sweep(self) -> int:
        """Forget cooldown records that have already elapsed."""
        now = self._clock()
        with self._lock:
            expired = [t for t, ts in self._last_processed.items() if now - ts >= self.window]
            for tag in expired:
                del self._last_processed[tag]
        return len(expired)

    @property
    def queue_depth(self) -> int:
        with self._lock:
            return len(self._pending)

    @property
    def cooldown_entries(self) -> int:
        with self._lock:
            return len(self._last_processed)
