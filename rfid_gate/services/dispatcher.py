# =======================================================================================
# rfid_gate/services/dispatcher.py - Per-Channel Scan Pipeline
# =======================================================================================
import logging
import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional
from ..models.enums import ChannelKind, ReaderResponse
from ..models.schemas import AuditRecord, ChannelSpec, ChannelStatus, Decision
from ..utils.exceptions import ChannelWriteError, InvalidTagError, StoreError
from ..utils.validators import TagValidator
from .access_control import AccessControlService
from .audit_service import AuditService
from .cooldown import CooldownGate
from .enrollment import EnrollmentService
from .resolver import ResidentResolver

logger = logging.getLogger(__name__)


class ScanClock:
    """
    UTC timestamps for scans, strictly increasing across the whole process.
    Two scans stamped in the same microsecond (any channel) still get distinct
    audit keys.
    """

    def __init__(self, wall: Callable[[], datetime] = lambda: datetime.now(timezone.utc)):
        self._wall = wall
        self._last: Optional[datetime] = None
        self._lock = threading.Lock()

    def __call__(self) -> datetime:
        with self._lock:
            now = self._wall()
            if self._last is not None and now <= self._last:
                now = self._last + timedelta(microseconds=1)
            self._last = now
            return now


scan_clock = ScanClock()


class ChannelSink:
    """Output side of a reader channel."""

    connected: bool = False

    def write_line(self, text: str) -> None:
        """Write `text` plus a newline; raise ChannelWriteError on failure."""
        raise NotImplementedError


class ChannelDispatcher:
    """
    Owns the pipeline of ONE reader channel.

    Intake (`on_scan`) runs on the reader's thread; resolution runs on a
    single-thread executor, so tags of one channel are resolved and answered
    strictly in dequeue order while other channels proceed independently.
    """

    def __init__(
        self,
        spec: ChannelSpec,
        sink: ChannelSink,
        resolver: ResidentResolver,
        audit: AuditService,
        enrollment: EnrollmentService,
        cooldown_ms: int = 180000,
        write_attempts: int = 3,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = scan_clock,
    ):
        if write_attempts < 1:
            raise ValueError("write_attempts must be >= 1")
        self.spec = spec
        self.sink = sink
        self.resolver = resolver
        self.audit = audit
        self.enrollment = enrollment
        self.write_attempts = write_attempts
        self.access_service = AccessControlService()
        self.gate = CooldownGate(spec.name, cooldown_ms, clock)
        self._now = now
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=f"channel-{spec.name}")

    @property
    def name(self) -> str:
        return self.spec.name

    @property
    def kind(self) -> ChannelKind:
        return self.spec.kind

    # ----------------------------------------------------------------------
    # Intake
    # ----------------------------------------------------------------------
    def on_scan(self, raw: str) -> Optional[Future]:
        """
        Entry point for every line read from the channel.
        Returns the scheduled work, or None when the line was dropped
        (keep-alive echo, invalid payload, queued or cooling down).
        """
        if TagValidator.is_ping(raw):
            logger.debug("[dispatch] Ping echo on %s ignored", self.name)
            return None

        try:
            tag = TagValidator.validate(raw)
        except InvalidTagError as e:
            logger.warning("[dispatch] %s on %s", e, self.name)
            return None

        logger.info("[dispatch] Received %s on %s", tag, self.name)

        if self.kind is ChannelKind.ENROLL:
            return self._executor.submit(self.enroll, tag)

        if not self.gate.admit(tag):
            return None
        return self._executor.submit(self.process_next)

    # ----------------------------------------------------------------------
    # Pipelines
    # ----------------------------------------------------------------------
    def process_next(self) -> Optional[Decision]:
        """Dequeue one tag, decide, answer the reader, then audit."""
        tag = self.gate.next_tag()
        if tag is None:
            return None

        scanned_at = self._now()
        try:
            record = self.resolver.resolve(tag)
            decision = self.access_service.decide(record, self.kind)
        except StoreError as e:
            logger.error("[dispatch] Error processing %s on %s: %s", tag, self.name, e)
            decision = self.access_service.error(e, self.kind)
        except Exception as e:
            logger.exception("[dispatch] Unexpected error processing %s on %s", tag, self.name)
            decision = self.access_service.error(e, self.kind)

        logger.info("[dispatch] %s on %s -> %s (%s)", tag, self.name, decision.outcome.value, decision.reason)
        self.respond(decision.response)
        self.audit.record(
            AuditRecord(
                tag=tag,
                timestamp=scanned_at,
                decision=decision.outcome,
                channel=self.name,
                kind=self.kind,
                message=decision.reason,
            )
        )
        return decision

    def enroll(self, tag: str) -> str:
        response = self.enrollment.enroll(tag)
        self.respond(response)
        return response

    # ----------------------------------------------------------------------
    # Output
    # ----------------------------------------------------------------------
    def respond(self, message: str) -> bool:
        """Write a response line, retrying immediately up to `write_attempts` times."""
        for attempt in range(1, self.write_attempts + 1):
            try:
                self.sink.write_line(message)
            except ChannelWriteError as e:
                logger.warning(
                    "[dispatch] Write to %s failed (attempt %d/%d): %s",
                    self.name, attempt, self.write_attempts, e,
                )
                continue
            logger.info("[dispatch] Sent %r to %s", message, self.name)
            return True

        logger.error("[dispatch] Failed to send %r to %s after %d attempts", message, self.name, self.write_attempts)
        return False

    def ping(self) -> bool:
        """Keep-alive write; a single attempt, failures are only logged."""
        try:
            self.sink.write_line(ReaderResponse.PING)
        except ChannelWriteError as e:
            logger.warning("[dispatch] Keep-alive to %s failed: %s", self.name, e)
            return False
        return True

    # ----------------------------------------------------------------------
    # Lifecycle / status
    # ----------------------------------------------------------------------
    def status(self) -> ChannelStatus:
        return ChannelStatus(
            name=self.name,
            kind=self.kind,
            port=self.spec.port,
            connected=bool(getattr(self.sink, "connected", False)),
            queue_depth=self.gate.queue_depth,
            cooldown_entries=self.gate.cooldown_entries,
        )

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)
