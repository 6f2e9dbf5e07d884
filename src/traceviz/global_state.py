"""GlobalState — the application-wide key -> Value registry.

Holds global filters, selections and similar shared state. Components may
fetch Values by key and freely read, update or subscribe to them, but may
not add keys after setup, replace a key's Value, or change its type.

Construct one per application and pass it to whatever needs it.
"""

from __future__ import annotations

import logging

from traceviz.errors import ConfigurationError, Severity
from traceviz.stream import EventStream, Stream
from traceviz.value import Value
from traceviz.value_map import ValueMap

SOURCE = "global_state"

logger = logging.getLogger("traceviz.global_state")


class GlobalState:
    """Key -> Value container whose key list is itself observable."""

    def __init__(self) -> None:
        self._values: dict[str, Value] = {}
        self._keys: EventStream[list[str]] = EventStream(replay=1)
        self._keys.emit([])

    @property
    def keys(self) -> Stream[list[str]]:
        """Replays the current key list, then emits it after every change."""
        return self._keys

    def reset(self) -> None:
        """Forget every key."""
        self._values = {}
        self._keys.emit([])

    def set(self, key: str, value: Value) -> None:
        """Register value under key. Each key may only be set once."""
        if key in self._values:
            raise ConfigurationError(f"Global state key '{key}' is already set").from_(
                SOURCE
            ).at(Severity.FATAL)
        self._values[key] = value
        logger.debug("global state key %r set to %s", key, type(value).__name__)
        self._keys.emit(list(self._values))

    def get(self, key: str) -> Value:
        value = self._values.get(key)
        if value is None:
            raise ConfigurationError(f"Global state key '{key}' is not set").from_(
                SOURCE
            ).at(Severity.FATAL)
        return value

    def __contains__(self, key: object) -> bool:
        return key in self._values

    def value_map(self) -> ValueMap:
        """A ValueMap over the current keys, sharing their Values."""
        return ValueMap(dict(self._values))
