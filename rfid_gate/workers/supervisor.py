# =======================================================================================
# rfid_gate/workers/supervisor.py - Wires channels, workers and the liveness pulse
# =======================================================================================
import logging
import time
from typing import Callable, Dict, Iterable, List, Optional
from ..config import Config
from ..models.schemas import ChannelSpec, ChannelStatus, PingResult
from ..services.audit_service import AuditService
from ..services.dispatcher import ChannelDispatcher, ChannelSink
from ..services.enrollment import EnrollmentService
from ..services.resident_cache import ResidentCache
from ..services.resolver import ResidentResolver
from ..services.store import DocumentStore, build_store
from ..utils.exceptions import UnknownChannelError
from .heartbeat import LivenessPulse
from .serial_worker import SerialWorker

logger = logging.getLogger(__name__)


class ReaderSupervisor:
    """Owns one dispatcher per configured reader plus the shared store, cache and pulse."""

    def __init__(
        self,
        store: DocumentStore,
        channels: Iterable[ChannelSpec],
        sink_factory: Callable[[ChannelSpec], ChannelSink],
        cooldown_ms: int = 180000,
        store_retries: int = 3,
        write_attempts: int = 3,
        heartbeat_interval_ms: int = 300000,
        cache_ttl_ms: int = 300000,
        cache_limit: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.store = store
        self.cache = ResidentCache(cache_ttl_ms, cache_limit, clock)
        self.resolver = ResidentResolver(store, retries=store_retries, cache=self.cache)
        self.audit = AuditService(store)
        self.enrollment = EnrollmentService(store, self.resolver, self.cache)

        self.dispatchers: Dict[str, ChannelDispatcher] = {}
        self.sinks: Dict[str, ChannelSink] = {}
        for spec in channels:
            sink = sink_factory(spec)
            dispatcher = ChannelDispatcher(
                spec,
                sink,
                self.resolver,
                self.audit,
                self.enrollment,
                cooldown_ms=cooldown_ms,
                write_attempts=write_attempts,
                clock=clock,
            )
            if hasattr(sink, "attach"):
                sink.attach(dispatcher)
            self.sinks[spec.name] = sink
            self.dispatchers[spec.name] = dispatcher

        self.pulse = LivenessPulse(self.dispatchers.values(), heartbeat_interval_ms, self.cache)
        self.running = False

    @classmethod
    def from_config(cls, cfg: Config, store: Optional[DocumentStore] = None) -> "ReaderSupervisor":
        if store is None:
            store = build_store(cfg.STORE_BACKEND, cfg.DB_URL, cfg.FIREBASE_CREDENTIALS)

        def serial_sink(spec: ChannelSpec) -> SerialWorker:
            return SerialWorker(
                spec,
                baud=cfg.SERIAL_BAUD,
                timeout=cfg.SERIAL_TIMEOUT,
                reconnect_delay=cfg.SERIAL_RECONNECT_DELAY,
            )

        return cls(
            store,
            cfg.channels,
            serial_sink,
            cooldown_ms=cfg.COOLDOWN_MS,
            store_retries=cfg.STORE_RETRIES,
            write_attempts=cfg.WRITE_ATTEMPTS,
            heartbeat_interval_ms=cfg.HEARTBEAT_INTERVAL_MS,
            cache_ttl_ms=cfg.RESIDENT_CACHE_TTL_MS,
            cache_limit=cfg.RESIDENT_CACHE_LIMIT,
        )

    # ------------------------------------------------------------------
    # Start / Stop
    # ------------------------------------------------------------------
    def start(self) -> None:
        if self.running:
            return
        for sink in self.sinks.values():
            if hasattr(sink, "start"):
                sink.start()
        self.pulse.start()
        self.running = True
        logger.info("[supervisor] Started %d reader channels", len(self.dispatchers))

    def stop(self) -> None:
        if not self.running:
            return
        self.pulse.stop()
        for sink in self.sinks.values():
            if hasattr(sink, "stop"):
                sink.stop()
        for dispatcher in self.dispatchers.values():
            dispatcher.shutdown(wait=True)
        self.running = False
        logger.info("[supervisor] Stopped")

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------
    def get(self, name: str) -> ChannelDispatcher:
        try:
            return self.dispatchers[name]
        except KeyError:
            raise UnknownChannelError(f"Unknown channel: {name}") from None

    def status(self) -> List[ChannelStatus]:
        return [d.status() for d in self.dispatchers.values()]

    def ping_all(self) -> List[PingResult]:
        results = []
        for dispatcher in self.dispatchers.values():
            sent = dispatcher.ping()
            results.append(PingResult(name=dispatcher.name, sent=sent, error=None if sent else "write failed"))
        logger.info("[supervisor] Manual ping sent to %d/%d channels",
                    sum(r.sent for r in results), len(results))
        return results
