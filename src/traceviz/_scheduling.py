"""Scheduler hook — where Value mutations and timer expiries are executed.

The library is single-threaded: every emission runs synchronously on the
thread that caused it. Applications with background work (a data fetch
thread, a debounce timer) register the UI thread's call-soon function once
via set_scheduler(); anything arriving from another thread is then handed
to it instead of running inline.
"""

from __future__ import annotations

import threading
from typing import Callable

_scheduler: Callable[[Callable[[], None]], object] | None = None
_scheduler_thread: threading.Thread | None = None


def set_scheduler(scheduler: Callable[[Callable[[], None]], object] | None) -> None:
    """Set the scheduler used for cross-thread Value mutations.

    Call once from the main/UI thread:
        traceviz.set_scheduler(app.call_from_thread)

    Pass None to go back to running everything inline.
    """
    global _scheduler, _scheduler_thread
    _scheduler = scheduler
    _scheduler_thread = threading.current_thread() if scheduler is not None else None


def on_scheduler_thread() -> bool:
    """True if fn() may run inline: no scheduler, or already on its thread."""
    return _scheduler is None or threading.current_thread() is _scheduler_thread


def call_on_scheduler(fn: Callable[[], None]) -> None:
    """Run fn now if on the scheduler thread, otherwise hand it over."""
    if on_scheduler_thread():
        fn()
    else:
        _scheduler(fn)
