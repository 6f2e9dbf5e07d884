"""Watch — invoke a callback whenever any Value in a ValueMap changes.

Callback exceptions never propagate into the Value that changed; they are
logged and emitted on the error channel watch() returns.
"""

from __future__ import annotations

import logging
from typing import Callable

from traceviz.documentation import Documenter, DocumenterType
from traceviz.stream import EventStream, Stream
from traceviz.value_map import ValueMap

logger = logging.getLogger("traceviz.watch")


class Watch(Documenter):
    """A named watch over a ValueMap's Values."""

    documenter_type = DocumenterType.WATCH

    def __init__(self, type: str, value_map: ValueMap) -> None:
        self.type = type
        self.value_map = value_map

    def watch(
        self, callback: Callable[[ValueMap], None], unsubscribe: Stream[object]
    ) -> EventStream[Exception]:
        """Calls callback with the map on every change until unsubscribe emits.

        The callback runs once per Value straight away, as each one replays.
        Returns a channel replaying every exception the callback raised.
        """
        errors: EventStream[Exception] = EventStream(replay=None)

        def on_change(vm: ValueMap) -> None:
            try:
                callback(vm)
            except Exception as exc:
                logger.exception("watch %r callback failed", self.type)
                errors.emit(exc)

        self.value_map.watch().take_until(unsubscribe).subscribe(on_change)
        return errors

    @property
    def auto_document(self) -> str:
        return f"Trigger '{self.type}' on changes to arguments"

    def __repr__(self) -> str:
        return f"Watch({self.type!r})"
