"""Deferred references to Values.

A ValueRef is resolved against a 'local' ValueMap at the moment it is used.
That lets one combinator definition act on many data items: each table row
carries its own local map, and LocalValue('id') reaches that row's id.
"""

from __future__ import annotations

from typing import Iterable, Protocol, runtime_checkable

from traceviz.value import Value
from traceviz.value_map import ValueMap


@runtime_checkable
class ValueRef(Protocol):
    """A reference to a Value."""

    def get(self, local_state: ValueMap | None = None) -> Value | None: ...

    def label(self) -> str: ...


class LocalValue:
    """A Value looked up by key in the local state, per use."""

    __slots__ = ("key",)

    def __init__(self, key: str) -> None:
        self.key = key

    def get(self, local_state: ValueMap | None = None) -> Value | None:
        if local_state is None or not local_state.has(self.key):
            return None
        return local_state.get(self.key)

    def label(self) -> str:
        return f"local value '{self.key}'"

    def __repr__(self) -> str:
        return f"LocalValue({self.key!r})"


class FixedValue:
    """A Value that is the same in every local context."""

    __slots__ = ("_value", "name")

    def __init__(self, value: Value, name: str = "") -> None:
        self._value = value
        self.name = name

    def get(self, local_state: ValueMap | None = None) -> Value:
        return self._value

    def label(self) -> str:
        return f"value '{self.name}'"

    def __repr__(self) -> str:
        return f"FixedValue({self._value!r}, name={self.name!r})"


class KeyedValueRef:
    """A ValueRef published under a key."""

    __slots__ = ("key", "ref")

    def __init__(self, key: str, ref: ValueRef) -> None:
        self.key = key
        self.ref = ref

    def get(self, local_state: ValueMap | None = None) -> Value | None:
        return self.ref.get(local_state)

    def label(self) -> str:
        return self.ref.label()


class ValueRefMap:
    """Several keyed ValueRefs, resolved together into a ValueMap."""

    __slots__ = ("_refs",)

    def __init__(self, keyed_refs: Iterable[KeyedValueRef]) -> None:
        self._refs = list(keyed_refs)

    def get(self, local_state: ValueMap | None = None) -> ValueMap:
        """Resolves every ref. Unresolved ones are left out of the map."""
        resolved: dict[str, Value] = {}
        for keyed in self._refs:
            value = keyed.get(local_state)
            if value is not None:
                resolved[keyed.key] = value
        return ValueMap(resolved)
