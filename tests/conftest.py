from __future__ import annotations

import threading
from datetime import datetime, timedelta, timezone

import pytest

from rfid_gate.models.enums import ChannelKind
from rfid_gate.models.schemas import ChannelSpec
from rfid_gate.services.audit_service import AuditService
from rfid_gate.services.dispatcher import ChannelDispatcher, ChannelSink
from rfid_gate.services.enrollment import EnrollmentService
from rfid_gate.services.resolver import ResidentResolver
from rfid_gate.services.store import DocumentStore
from rfid_gate.utils.exceptions import ChannelWriteError, StoreError


class MemoryStore(DocumentStore):
    """Dict-backed store with switchable failures."""

    def __init__(self) -> None:
        self.collections: dict[str, dict[str, dict]] = {}
        self.read_failures = 0
        self.fail_write_collections: set[str] = set()
        self.reads = 0
        self.writes: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    def get(self, collection, key):
        with self._lock:
            self.reads += 1
            if self.read_failures > 0:
                self.read_failures -= 1
                raise StoreError("store unavailable")
            doc = self.collections.get(collection, {}).get(key)
            return dict(doc) if doc is not None else None

    def set(self, collection, key, data):
        with self._lock:
            if collection in self.fail_write_collections:
                raise StoreError(f"cannot write {collection}")
            self.collections.setdefault(collection, {})[key] = dict(data)
            self.writes.append((collection, key))

    def ping(self):
        return None

    def docs(self, collection):
        return self.collections.get(collection, {})


class RecordingSink(ChannelSink):
    def __init__(self, failures: int = 0) -> None:
        self.lines: list[str] = []
        self.failures = failures
        self.attempts = 0
        self.connected = True

    def write_line(self, text):
        self.attempts += 1
        if self.failures > 0:
            self.failures -= 1
            raise ChannelWriteError("sink busy")
        self.lines.append(text + "\n")


class FakeClock:
    """Monotonic seconds, advanced by hand."""

    def __init__(self, start_ms: int = 1_000_000) -> None:
        self.now_ms = start_ms

    def __call__(self) -> float:
        return self.now_ms / 1000

    def advance_ms(self, ms: int) -> None:
        self.now_ms += ms


class FakeWallClock:
    """UTC datetimes that move forward one millisecond per call."""

    def __init__(self) -> None:
        self.current = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        self.current += timedelta(milliseconds=1)
        return self.current


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_dispatcher(store, clock):
    created: list[ChannelDispatcher] = []

    def factory(name="Vehicle Entry", kind=ChannelKind.ENTRY, sink=None, retries=3,
                cooldown_ms=180000, write_attempts=3, cache=None):
        resolver = ResidentResolver(store, retries=retries, cache=cache)
        dispatcher = ChannelDispatcher(
            ChannelSpec(name=name, kind=kind, port=f"/dev/fake-{len(created)}"),
            sink if sink is not None else RecordingSink(),
            resolver,
            AuditService(store),
            EnrollmentService(store, resolver, cache),
            cooldown_ms=cooldown_ms,
            write_attempts=write_attempts,
            clock=clock,
            now=FakeWallClock(),
        )
        created.append(dispatcher)
        return dispatcher

    yield factory
    for dispatcher in created:
        dispatcher.shutdown(wait=True)
