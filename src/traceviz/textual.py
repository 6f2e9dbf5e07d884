"""Binds TraceViz Interactions to a running Textual app. Needs the textual extra.

react() feeds a Reaction's highlight signal to a widget, and watch() runs a
Watch callback against widgets. Both skip delivery while the app isn't
running or its tables are being rebuilt under pause(). A widget query
that finds nothing (NoMatches) is dropped. A Value set from a worker thread
reaches the widget through call_from_thread.
"""

import threading
from contextlib import contextmanager

from textual.css.query import NoMatches

# id(app) of every app currently rebuilding its bound widgets.
_rebuilding: set[int] = set()


@contextmanager
def pause(app):
    """Hold back Reaction effects and Watch callbacks while widgets are rebuilt."""
    key = id(app)
    _rebuilding.add(key)
    try:
        yield
    finally:
        _rebuilding.discard(key)


def is_safe(app) -> bool:
    """True if interaction effects may touch app's widgets now."""
    return app.is_running and id(app) not in _rebuilding


def _guard(app, fn):
    _main = threading.get_ident()

    def _safe(*args):
        try:
            fn(*args)
        except NoMatches:
            pass

    def _guarded(*args):
        if not is_safe(app):
            return
        if threading.get_ident() != _main:
            app.call_from_thread(_safe, *args)
        else:
            _safe(*args)

    return _guarded


def react(app, match, effect, *, local_state=None, unsubscribe):
    """Drive effect(bool) from a Reaction's live predicate.

    match is a MatchFn, e.g. interactions.match('row', 'highlight').
    Runs until unsubscribe emits or the returned disposer is called.
    """
    signal = match(local_state).take_until(unsubscribe)
    return signal.subscribe(_guard(app, effect))


def watch(app, interactions, type, callback, *, unsubscribe):
    """Interactions.watch() that safely bridges to Textual widgets.

    Returns the watch's error channel.
    """
    return interactions.watch(type, _guard(app, callback), unsubscribe)
