"""Tests for Stream and EventStream — push streams with operator chaining."""

import threading

from traceviz.stream import EventStream, combine_latest, empty, merge, of


class TestEmitSubscribe:
    """Core emit/subscribe behavior."""

    def test_subscribe_receives_emitted_values(self):
        stream = EventStream()
        received = []
        stream.subscribe(lambda v: received.append(v))
        stream.emit(1)
        stream.emit(2)
        assert received == [1, 2]

    def test_multiple_subscribers_in_registration_order(self):
        stream = EventStream()
        log = []
        stream.subscribe(lambda v: log.append(("a", v)))
        stream.subscribe(lambda v: log.append(("b", v)))
        stream.emit("x")
        assert log == [("a", "x"), ("b", "x")]

    def test_unsubscribe(self):
        stream = EventStream()
        received = []
        unsub = stream.subscribe(lambda v: received.append(v))
        stream.emit(1)
        unsub()
        stream.emit(2)
        assert received == [1]

    def test_unsubscribe_idempotent(self):
        stream = EventStream()
        unsub = stream.subscribe(lambda v: None)
        unsub()
        unsub()  # should not raise

    def test_disposed_mid_emission_is_not_called(self):
        stream = EventStream()
        received = []
        unsubs = []
        stream.subscribe(lambda v: unsubs[0]())
        unsubs.append(stream.subscribe(lambda v: received.append(v)))
        stream.emit(1)
        assert received == []


class TestReplay:
    def test_no_replay_by_default(self):
        stream = EventStream()
        stream.emit(1)
        received = []
        stream.subscribe(lambda v: received.append(v))
        assert received == []

    def test_replays_last_n(self):
        stream = EventStream(replay=2)
        for v in (1, 2, 3):
            stream.emit(v)
        received = []
        stream.subscribe(lambda v: received.append(v))
        assert received == [2, 3]

    def test_replays_everything(self):
        stream = EventStream(replay=None)
        for v in (1, 2, 3):
            stream.emit(v)
        received = []
        stream.subscribe(lambda v: received.append(v))
        assert received == [1, 2, 3]

    def test_dispose_from_inside_callback(self):
        stream = EventStream()
        received = []
        unsub = []

        def on_value(v):
            received.append(v)
            unsub[0]()

        unsub.append(stream.map(lambda v: v).subscribe(on_value))
        stream.emit(1)
        stream.emit(2)
        assert received == [1]
        assert stream._subscribers == []


class TestOperators:
    def test_map(self):
        stream = EventStream()
        received = []
        stream.map(lambda v: v + 1).map(lambda v: v * 10).subscribe(received.append)
        stream.emit(2)
        assert received == [30]

    def test_filter(self):
        stream = EventStream()
        received = []
        stream.filter(lambda v: v % 2 == 0).subscribe(received.append)
        for v in (1, 2, 3, 4):
            stream.emit(v)
        assert received == [2, 4]

    def test_flat_map(self):
        stream = EventStream()
        received = []
        stream.flat_map(lambda v: [v, -v]).subscribe(received.append)
        stream.emit(1)
        stream.emit(2)
        assert received == [1, -1, 2, -2]

    def test_distinct(self):
        stream = EventStream()
        received = []
        stream.distinct().subscribe(received.append)
        for v in (1, 1, 2, 2, 1):
            stream.emit(v)
        assert received == [1, 2, 1]

    def test_distinct_state_is_per_subscription(self):
        stream = EventStream(replay=1)
        distinct = stream.distinct()
        a, b = [], []
        distinct.subscribe(a.append)
        stream.emit(1)
        distinct.subscribe(b.append)
        assert a == [1]
        assert b == [1]

    def test_dispose_disconnects_upstream(self):
        stream = EventStream()
        unsub = stream.map(lambda v: v).filter(lambda v: True).subscribe(lambda v: None)
        assert len(stream._subscribers) == 1
        unsub()
        assert stream._subscribers == []

    def test_latest(self):
        assert of(1, 2, 3).latest(0) == 3
        assert empty().latest(0) == 0


class TestTakeUntil:
    def test_stops_when_notifier_emits(self):
        stream = EventStream()
        stop = EventStream()
        received = []
        stream.take_until(stop).subscribe(received.append)
        stream.emit(1)
        stop.emit(None)
        stream.emit(2)
        assert received == [1]
        assert stream._subscribers == []
        assert stop._subscribers == []

    def test_notifier_already_fired(self):
        stream = EventStream(replay=1)
        stream.emit(1)
        stop = EventStream(replay=1)
        stop.emit(None)
        received = []
        stream.take_until(stop).subscribe(received.append)
        assert received == []
        assert stream._subscribers == []

    def test_disposer_releases_both(self):
        stream = EventStream()
        stop = EventStream()
        unsub = stream.take_until(stop).subscribe(lambda v: None)
        unsub()
        assert stream._subscribers == []
        assert stop._subscribers == []


class TestCombinators:
    def test_of_emits_to_each_subscriber(self):
        s = of(1, 2)
        a, b = [], []
        s.subscribe(a.append)
        s.subscribe(b.append)
        assert a == [1, 2]
        assert b == [1, 2]

    def test_empty_never_emits(self):
        received = []
        empty().subscribe(received.append)
        assert received == []

    def test_merge_interleaves(self):
        a, b = EventStream(), EventStream()
        received = []
        merge(a, b).subscribe(received.append)
        a.emit(1)
        b.emit(2)
        a.emit(3)
        assert received == [1, 2, 3]

    def test_combine_latest_waits_for_all_inputs(self):
        a, b = EventStream(), EventStream()
        received = []
        combine_latest([a, b]).subscribe(received.append)
        a.emit(1)
        assert received == []
        b.emit("x")
        a.emit(2)
        assert received == [[1, "x"], [2, "x"]]

    def test_combine_latest_of_nothing_never_emits(self):
        received = []
        combine_latest([]).subscribe(received.append)
        assert received == []


class TestDebounce:
    """debounce() operator."""

    def test_coalesces_rapid_events(self):
        stream = EventStream()
        received = []
        done = threading.Event()

        def on_value(v):
            received.append(v)
            done.set()

        stream.debounce(0.05).subscribe(on_value)

        # Rapid burst — only the last should fire
        stream.emit(1)
        stream.emit(2)
        stream.emit(3)

        done.wait(timeout=1)
        assert received == [3]

    def test_separate_bursts(self):
        stream = EventStream()
        received = []
        event = threading.Event()

        def on_value(v):
            received.append(v)
            event.set()

        stream.debounce(0.03).subscribe(on_value)

        stream.emit("a")
        event.wait(timeout=1)
        event.clear()

        stream.emit("b")
        event.wait(timeout=1)

        assert received == ["a", "b"]

    def test_dispose_cancels_pending_timer(self):
        stream = EventStream()
        received = []
        unsub = stream.debounce(0.02).subscribe(received.append)
        stream.emit(1)
        unsub()
        threading.Event().wait(0.1)
        assert received == []


class TestDispose:
    def test_emit_after_dispose_is_noop(self):
        stream = EventStream()
        received = []
        stream.subscribe(received.append)
        stream.dispose()
        stream.emit(1)
        assert received == []
        assert stream.disposed
