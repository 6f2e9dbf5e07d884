"""Push-based streams with operator chaining.

Two kinds of stream:
- EventStream is a hot multicast channel. emit() pushes a value to every
  current subscriber before returning, and an optional replay buffer hands
  recent values to late subscribers the moment they register.
- Stream is the lazy form every operator returns. Nothing is connected
  upstream until subscribe(), and the returned disposer tears the whole
  upstream chain down again. Each subscription gets its own chain, so
  per-subscription state (distinct, debounce timers) is never shared.

A disposed subscription never sees another value, even one already being
emitted when it was disposed.
"""

from __future__ import annotations

import threading
from collections import deque
from typing import Callable, Generic, Iterable, Sequence, TypeVar

from traceviz._scheduling import call_on_scheduler

T = TypeVar("T")
U = TypeVar("U")

Disposer = Callable[[], None]
Connect = Callable[[Callable[[T], None]], Disposer]

_UNSET = object()


def _noop() -> None:
    pass


class _Subscription(Generic[T]):
    """One subscriber's link to a stream. Closing it is final."""

    __slots__ = ("_callback", "_disposer", "closed")

    def __init__(self, callback: Callable[[T], None]) -> None:
        self._callback = callback
        self._disposer: Disposer | None = None
        self.closed = False

    def deliver(self, value: T) -> None:
        if not self.closed:
            self._callback(value)

    def attach(self, disposer: Disposer) -> None:
        # The callback may have closed us during a synchronous replay.
        if self.closed:
            disposer()
        else:
            self._disposer = disposer

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        disposer, self._disposer = self._disposer, None
        if disposer is not None:
            disposer()


class Stream(Generic[T]):
    """A lazily-connected push stream."""

    __slots__ = ("_connect",)

    def __init__(self, connect: Connect[T]) -> None:
        self._connect = connect

    def subscribe(self, callback: Callable[[T], None]) -> Disposer:
        """Register a callback. Returns a function that removes it.

        The disposer is idempotent and safe to call from inside callback.
        """
        sub: _Subscription[T] = _Subscription(callback)
        sub.attach(self._connect(sub.deliver))
        return sub.close

    def map(self, fn: Callable[[T], U]) -> Stream[U]:
        """Transform values through fn."""
        return Stream(lambda emit: self.subscribe(lambda v: emit(fn(v))))

    def filter(self, fn: Callable[[T], bool]) -> Stream[T]:
        """Only pass values where fn returns True."""
        return Stream(lambda emit: self.subscribe(lambda v: emit(v) if fn(v) else None))

    def flat_map(self, fn: Callable[[T], Iterable[U]]) -> Stream[U]:
        """Emit every item fn returns for each value, in order."""

        def connect(emit: Callable[[U], None]) -> Disposer:
            def on_value(value: T) -> None:
                for item in fn(value):
                    emit(item)

            return self.subscribe(on_value)

        return Stream(connect)

    def distinct(self) -> Stream[T]:
        """Drop values equal to the previous one passed on."""

        def connect(emit: Callable[[T], None]) -> Disposer:
            last: list[object] = [_UNSET]

            def on_value(value: T) -> None:
                if last[0] is _UNSET or last[0] != value:
                    last[0] = value
                    emit(value)

            return self.subscribe(on_value)

        return Stream(connect)

    def debounce(self, seconds: float) -> Stream[T]:
        """Coalesce rapid values — emit after a quiet period.

        Uses threading.Timer (daemon=True). Each new value cancels the
        previous timer, so only the last value in a burst fires. Expiry is
        routed through the configured scheduler, if any.
        """

        def connect(emit: Callable[[T], None]) -> Disposer:
            timer_lock = threading.Lock()
            timer_ref: list[threading.Timer | None] = [None]
            disposed = [False]

            def fire(value: T) -> None:
                if not disposed[0]:
                    call_on_scheduler(lambda: None if disposed[0] else emit(value))

            def on_value(value: T) -> None:
                with timer_lock:
                    if timer_ref[0] is not None:
                        timer_ref[0].cancel()
                    t = threading.Timer(seconds, fire, args=[value])
                    t.daemon = True
                    timer_ref[0] = t
                    t.start()

            unsubscribe = self.subscribe(on_value)

            def dispose() -> None:
                disposed[0] = True
                unsubscribe()
                with timer_lock:
                    if timer_ref[0] is not None:
                        timer_ref[0].cancel()
                        timer_ref[0] = None

            return dispose

        return Stream(connect)

    def take_until(self, notifier: Stream[object]) -> Stream[T]:
        """Pass values until notifier emits, then disconnect for good."""

        def connect(emit: Callable[[T], None]) -> Disposer:
            done = [False]
            source_ref: list[Disposer | None] = [None]
            notifier_ref: list[Disposer | None] = [None]

            def stop(_: object = None) -> None:
                if done[0]:
                    return
                done[0] = True
                for ref in (source_ref, notifier_ref):
                    if ref[0] is not None:
                        ref[0]()
                        ref[0] = None

            notifier_ref[0] = notifier.subscribe(stop)
            if done[0]:
                # The notifier had already fired (replayed on subscribe).
                notifier_ref[0]()
                notifier_ref[0] = None
                return _noop
            source_ref[0] = self.subscribe(lambda v: None if done[0] else emit(v))
            if done[0] and source_ref[0] is not None:
                source_ref[0]()
                source_ref[0] = None
            return stop

        return Stream(connect)

    def latest(self, default: T) -> T:
        """Subscribe, read whatever is emitted synchronously, unsubscribe.

        Returns the last such value, or default if nothing was emitted. This
        is an instantaneous read, not a live subscription.
        """
        seen: list[T] = [default]

        def on_value(value: T) -> None:
            seen[0] = value

        self.subscribe(on_value)()
        return seen[0]


class EventStream(Stream[T]):
    """Hot multicast channel.

    replay=0 replays nothing, replay=n replays the last n values, and
    replay=None replays everything ever emitted.
    """

    __slots__ = ("_subscribers", "_history", "_disposed")

    def __init__(self, *, replay: int | None = 0) -> None:
        super().__init__(self._add_subscriber)
        self._subscribers: list[Callable[[T], None]] = []
        self._history: deque[T] | None = None if replay == 0 else deque(maxlen=replay)
        self._disposed = False

    @property
    def disposed(self) -> bool:
        return self._disposed

    def emit(self, value: T) -> None:
        """Push a value to all subscribers."""
        if self._disposed:
            return
        if self._history is not None:
            self._history.append(value)
        # Snapshot — subscribers may come and go during emission.
        for cb in list(self._subscribers):
            cb(value)

    def _add_subscriber(self, callback: Callable[[T], None]) -> Disposer:
        if self._disposed:
            return _noop
        self._subscribers.append(callback)
        if self._history is not None:
            for value in list(self._history):
                callback(value)

        def _unsubscribe() -> None:
            try:
                self._subscribers.remove(callback)
            except ValueError:
                pass  # already removed

        return _unsubscribe

    def dispose(self) -> None:
        """Drop every subscriber. Later emits are no-ops."""
        self._disposed = True
        self._subscribers.clear()
        if self._history is not None:
            self._history.clear()


def empty() -> Stream:
    """A stream that never emits."""
    return Stream(lambda emit: _noop)


def of(*values: T) -> Stream[T]:
    """A stream emitting values synchronously to each new subscriber."""

    def connect(emit: Callable[[T], None]) -> Disposer:
        for value in values:
            emit(value)
        return _noop

    return Stream(connect)


def merge(*streams: Stream[T]) -> Stream[T]:
    """Interleave the values of every stream."""

    def connect(emit: Callable[[T], None]) -> Disposer:
        disposers = [s.subscribe(emit) for s in streams]

        def dispose() -> None:
            for d in disposers:
                d()

        return dispose

    return Stream(connect)


def combine_latest(streams: Sequence[Stream[T]]) -> Stream[list[T]]:
    """Emit the latest value of each stream whenever any of them emits.

    Nothing is emitted until every stream has emitted at least once; with no
    streams, nothing is ever emitted.
    """
    streams = list(streams)
    if not streams:
        return empty()

    def connect(emit: Callable[[list[T]], None]) -> Disposer:
        latest: list[object] = [_UNSET] * len(streams)
        missing = [len(streams)]

        def on_value(idx: int, value: T) -> None:
            if latest[idx] is _UNSET:
                missing[0] -= 1
            latest[idx] = value
            if missing[0] == 0:
                emit(list(latest))

        disposers = [
            s.subscribe(lambda v, idx=idx: on_value(idx, v))
            for idx, s in enumerate(streams)
        ]

        def dispose() -> None:
            for d in disposers:
                d()

        return dispose

    return Stream(connect)
