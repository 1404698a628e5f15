from __future__ import annotations

import threading
from datetime import datetime, timezone

from conftest import RecordingSink

from rfid_gate.models.enums import ChannelKind, Collections, Outcome
from rfid_gate.models.schemas import ChannelSpec
from rfid_gate.services.audit_service import AuditService
from rfid_gate.services.dispatcher import ChannelDispatcher, ScanClock
from rfid_gate.services.enrollment import EnrollmentService
from rfid_gate.services.resolver import ResidentResolver
from rfid_gate.services.resident_cache import ResidentCache


def test_vehicle_entry_accepts_assigned_resident(store, make_dispatcher) -> None:
    store.set(Collections.RESIDENTS, "1A2B3C4D", {"assigned": True})
    store.writes.clear()
    sink = RecordingSink()
    dispatcher = make_dispatcher("Vehicle Entry", ChannelKind.ENTRY, sink=sink)

    decision = dispatcher.on_scan("1A2B3C4D\n").result(timeout=5)

    assert decision.outcome is Outcome.ACCEPTED
    assert sink.lines == ["Resident Found\n"]
    assert len(store.docs(Collections.ALL_EVENTS)) == 1
    assert list(store.docs(Collections.LATEST_ENTRY)) == ["1A2B3C4D"]
    assert Collections.DENIED not in store.collections


def test_walk_out_denies_unknown_lowercase_tag(store, make_dispatcher) -> None:
    sink = RecordingSink()
    dispatcher = make_dispatcher("Walk-out", ChannelKind.EXIT, sink=sink)

    decision = dispatcher.on_scan("deadbeef").result(timeout=5)

    assert decision.outcome is Outcome.DENIED_UNKNOWN
    assert sink.lines == ["Resident Not Found\n"]
    denied = store.docs(Collections.DENIED)
    assert len(denied) == 1
    assert next(iter(denied.values()))["rfidTag"] == "DEADBEEF"
    assert next(iter(store.docs(Collections.ALL_EVENTS).values()))["mode"] == "Walk-out"


def test_unassigned_resident_gets_assign_needed(store, make_dispatcher) -> None:
    store.set(Collections.RESIDENTS, "0BADF00D", {"assigned": False})
    sink = RecordingSink()
    dispatcher = make_dispatcher("Walk-in", ChannelKind.ENTRY, sink=sink)

    dispatcher.on_scan("0badf00d").result(timeout=5)
    assert sink.lines == ["Resident Not Found - Assign Needed\n"]
    assert len(store.docs(Collections.DENIED)) == 1


def test_ping_and_invalid_lines_are_dropped_silently(store, make_dispatcher) -> None:
    sink = RecordingSink()
    dispatcher = make_dispatcher(sink=sink)

    for raw in ("ping", "PING", " ping \n", "hello", "1234", ""):
        assert dispatcher.on_scan(raw) is None

    assert sink.lines == []
    assert dispatcher.gate.queue_depth == 0
    assert store.writes == []


def test_store_failure_yields_error_response_and_audit(store, make_dispatcher) -> None:
    store.read_failures = 100
    sink = RecordingSink()
    dispatcher = make_dispatcher("Vehicle Exit", ChannelKind.EXIT, sink=sink, retries=3)

    decision = dispatcher.on_scan("1A2B3C4D").result(timeout=5)

    assert decision.outcome is Outcome.ERROR
    assert sink.lines == ["Error\n"]
    assert store.reads == 4
    events = list(store.docs(Collections.ALL_EVENTS).values())
    assert [e["status"] for e in events] == ["error"]
    assert Collections.DENIED not in store.collections


def test_audit_failure_does_not_block_response(store, make_dispatcher) -> None:
    store.set(Collections.RESIDENTS, "1A2B3C4D", {"assigned": True})
    store.fail_write_collections = {Collections.ALL_EVENTS, Collections.LATEST_ENTRY}
    sink = RecordingSink()
    dispatcher = make_dispatcher(sink=sink)

    decision = dispatcher.on_scan("1A2B3C4D").result(timeout=5)
    assert decision.outcome is Outcome.ACCEPTED
    assert sink.lines == ["Resident Found\n"]


def test_cooldown_blocks_repeat_scan_on_same_channel(store, clock, make_dispatcher) -> None:
    store.set(Collections.RESIDENTS, "1A2B3C4D", {"assigned": True})
    sink = RecordingSink()
    dispatcher = make_dispatcher(sink=sink, cooldown_ms=180000)

    dispatcher.on_scan("1A2B3C4D").result(timeout=5)
    clock.advance_ms(179999)
    assert dispatcher.on_scan("1A2B3C4D") is None
    clock.advance_ms(1)
    dispatcher.on_scan("1a2b3c4d").result(timeout=5)

    assert sink.lines == ["Resident Found\n", "Resident Found\n"]
    assert len(store.docs(Collections.ALL_EVENTS)) == 2


def test_responses_follow_dequeue_order(store, make_dispatcher) -> None:
    store.set(Collections.RESIDENTS, "AAAAAAAA", {"assigned": True})
    store.set(Collections.RESIDENTS, "BBBBBBBB", {"assigned": False})
    sink = RecordingSink()
    dispatcher = make_dispatcher(sink=sink)

    futures = [dispatcher.on_scan(t) for t in ("AAAAAAAA", "BBBBBBBB", "CCCCCCCC")]
    for future in futures:
        future.result(timeout=5)

    assert sink.lines == [
        "Resident Found\n",
        "Resident Not Found - Assign Needed\n",
        "Resident Not Found\n",
    ]


def test_duplicate_scan_while_queued_is_deduplicated(store, make_dispatcher) -> None:
    store.set(Collections.RESIDENTS, "1A2B3C4D", {"assigned": True})
    sink = RecordingSink()
    dispatcher = make_dispatcher(sink=sink)

    release = threading.Event()
    original_resolve = dispatcher.resolver.resolve

    def slow_resolve(tag):
        release.wait(5)
        return original_resolve(tag)

    dispatcher.resolver.resolve = slow_resolve
    first = dispatcher.on_scan("AAAAAAAA")      # occupies the worker
    second = dispatcher.on_scan("1A2B3C4D")     # queued behind it
    assert dispatcher.on_scan("1A2B3C4D") is None
    release.set()
    first.result(timeout=5)
    second.result(timeout=5)

    assert len(sink.lines) == 2


def test_write_retries_then_gives_up(store, make_dispatcher) -> None:
    store.set(Collections.RESIDENTS, "1A2B3C4D", {"assigned": True})
    flaky = RecordingSink(failures=2)
    dispatcher = make_dispatcher(sink=flaky, write_attempts=3)
    dispatcher.on_scan("1A2B3C4D").result(timeout=5)
    assert flaky.lines == ["Resident Found\n"]
    assert flaky.attempts == 3

    dead = RecordingSink(failures=100)
    other = make_dispatcher("Walk-in", sink=dead, write_attempts=3)
    assert other.respond("Resident Found") is False
    assert dead.attempts == 3
    assert other.gate.queue_depth == 0


def test_two_channels_process_same_tag_independently(store, make_dispatcher) -> None:
    store.set(Collections.RESIDENTS, "1A2B3C4D", {"assigned": True})
    entry_sink, exit_sink = RecordingSink(), RecordingSink()
    entry = make_dispatcher("Vehicle Entry", ChannelKind.ENTRY, sink=entry_sink)
    exit_ = make_dispatcher("Vehicle Exit", ChannelKind.EXIT, sink=exit_sink)

    barrier = threading.Barrier(2)
    futures = []

    def scan(dispatcher: ChannelDispatcher) -> None:
        barrier.wait(5)
        futures.append(dispatcher.on_scan("1A2B3C4D"))

    threads = [threading.Thread(target=scan, args=(d,)) for d in (entry, exit_)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(5)

    decisions = [f.result(timeout=5) for f in futures]
    assert {d.kind for d in decisions} == {ChannelKind.ENTRY, ChannelKind.EXIT}
    assert entry_sink.lines == ["Resident Found\n"]
    assert exit_sink.lines == ["Resident Found\n"]
    assert list(store.docs(Collections.LATEST_ENTRY)) == ["1A2B3C4D"]
    assert list(store.docs(Collections.LATEST_EXIT)) == ["1A2B3C4D"]


def test_status_reports_queue_and_cooldown(store, make_dispatcher) -> None:
    dispatcher = make_dispatcher("Walk-in", ChannelKind.ENTRY)
    dispatcher.on_scan("DEADBEEF").result(timeout=5)

    status = dispatcher.status()
    assert status.name == "Walk-in"
    assert status.connected is True
    assert status.queue_depth == 0
    assert status.cooldown_entries == 1


def test_assignment_made_between_scans_is_honoured(store, clock, make_dispatcher) -> None:
    cache = ResidentCache(ttl_ms=300000, limit=100, clock=clock)
    store.set(Collections.RESIDENTS, "1A2B3C4D", {"assigned": False})
    sink = RecordingSink()
    dispatcher = make_dispatcher(sink=sink, cooldown_ms=180000, cache=cache)

    dispatcher.on_scan("1A2B3C4D").result(timeout=5)
    store.set(Collections.RESIDENTS, "1A2B3C4D", {"assigned": True})
    clock.advance_ms(180000)
    dispatcher.on_scan("1A2B3C4D").result(timeout=5)

    assert sink.lines == ["Resident Not Found - Assign Needed\n", "Resident Found\n"]


def test_revoked_resident_is_denied_on_next_scan(store, clock, make_dispatcher) -> None:
    cache = ResidentCache(ttl_ms=300000, limit=100, clock=clock)
    store.set(Collections.RESIDENTS, "1A2B3C4D", {"assigned": True})
    sink = RecordingSink()
    dispatcher = make_dispatcher("Vehicle Exit", ChannelKind.EXIT, sink=sink, cooldown_ms=180000, cache=cache)

    dispatcher.on_scan("1A2B3C4D").result(timeout=5)
    store.set(Collections.RESIDENTS, "1A2B3C4D", {"assigned": False})
    clock.advance_ms(180000)
    decision = dispatcher.on_scan("1A2B3C4D").result(timeout=5)

    assert decision.outcome is Outcome.DENIED_UNASSIGNED
    assert sink.lines == ["Resident Found\n", "Resident Not Found - Assign Needed\n"]


def test_reader_is_answered_when_audit_store_raises_unexpectedly(store, make_dispatcher, monkeypatch) -> None:
    store.set(Collections.RESIDENTS, "1A2B3C4D", {"assigned": True})
    original_set = store.set

    def set_failing_on_logs(collection, key, data):
        if collection == Collections.ALL_EVENTS:
            raise RuntimeError("quota exceeded")
        return original_set(collection, key, data)

    monkeypatch.setattr(store, "set", set_failing_on_logs)
    sink = RecordingSink()
    dispatcher = make_dispatcher("Vehicle Entry", ChannelKind.ENTRY, sink=sink)

    decision = dispatcher.on_scan("1A2B3C4D").result(timeout=5)

    assert decision.outcome is Outcome.ACCEPTED
    assert sink.lines == ["Resident Found\n"]
    assert store.docs(Collections.ALL_EVENTS) == {}


def test_scan_clock_never_repeats_when_wall_clock_stalls() -> None:
    frozen = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)
    scan_clock = ScanClock(wall=lambda: frozen)

    stamps = [scan_clock() for _ in range(5)]

    assert stamps[0] == frozen
    assert all(later > earlier for earlier, later in zip(stamps, stamps[1:]))


def test_scan_clock_is_unique_across_threads() -> None:
    frozen = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)
    scan_clock = ScanClock(wall=lambda: frozen)
    stamps = []
    lock = threading.Lock()

    def stamp_many():
        for _ in range(200):
            value = scan_clock()
            with lock:
                stamps.append(value)

    threads = [threading.Thread(target=stamp_many) for _ in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(stamps) == 800
    assert len(set(stamps)) == 800


def test_same_tag_on_two_channels_gets_two_all_events_rows(store) -> None:
    frozen = datetime(2026, 10, 18, 12, 0, 0, tzinfo=timezone.utc)
    shared = ScanClock(wall=lambda: frozen)
    resolver = ResidentResolver(store)
    dispatchers = [
        ChannelDispatcher(
            ChannelSpec(name=name, kind=ChannelKind.ENTRY, port=f"/dev/fake-{i}"),
            RecordingSink(), resolver, AuditService(store), EnrollmentService(store, resolver),
            now=shared,
        )
        for i, name in enumerate(["Vehicle Entry", "Walk-in"])
    ]
    try:
        for dispatcher in dispatchers:
            dispatcher.on_scan("DEADBEEF").result(timeout=5)
    finally:
        for dispatcher in dispatchers:
            dispatcher.shutdown()

    assert len(store.docs(Collections.ALL_EVENTS)) == 2
    assert len(store.docs(Collections.DENIED)) == 2
