# =======================================================================================
# rfid_gate/workers/heartbeat.py - Liveness Pulse + Cache Maintenance
# =======================================================================================
import logging
import threading
from typing import Iterable, Optional
from ..services.dispatcher import ChannelDispatcher
from ..services.resident_cache import ResidentCache

logger = logging.getLogger(__name__)


class LivenessPulse:
    """Periodically pings every reader so idle serial links stay open, and sweeps caches."""

    def __init__(
        self,
        dispatchers: Iterable[ChannelDispatcher],
        interval_ms: int = 300000,
        cache: Optional[ResidentCache] = None,
    ):
        self.dispatchers = list(dispatchers)
        self.interval = interval_ms / 1000.0
        self.cache = cache
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        self._stop.clear()
        self._thread = threading.Thread(target=self._run_loop, name="liveness-pulse", daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(1)

    def _run_loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.run_once()

    def run_once(self) -> int:
        """Ping all channels once; returns how many pings were delivered."""
        sent = sum(1 for d in self.dispatchers if d.ping())
        logger.info("[pulse] Keep-alive ping sent to %d/%d channels", sent, len(self.dispatchers))

        if self.cache is not None:
            removed = self.cache.sweep()
            if removed:
                logger.info("[pulse] Removed %d expired resident cache entries", removed)
        for dispatcher in self.dispatchers:
            dispatcher.gate.sweep()
        return sent
