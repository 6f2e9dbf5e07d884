"""Values — typed, mutable, observable data.

Values carry configuration and interaction state: filters, selections,
highlighted rows. Each one owns a replaying multicast channel. Subscribing
immediately delivers the Value itself, and every change to its payload
delivers it again. Setting a payload structurally equal to the current one
delivers nothing.

The variants form a closed set. Besides the three scalar families (string,
integer, double, duration, timestamp) there are ordered lists and unordered
sets of strings and integers, and EmptyValue, which stands for "no value"
and clears whatever it is folded into.

Thread safety: see traceviz.set_scheduler(). Once a scheduler is set,
set() from any other thread is marshaled to it; calls on the scheduler
thread stay synchronous.
"""

from __future__ import annotations

import enum
import math
from abc import ABC, abstractmethod
from typing import Any, Callable, ClassVar, Iterable, Sequence, Union

from traceviz._scheduling import call_on_scheduler
from traceviz.duration import Duration
from traceviz.stream import Disposer, EventStream, Stream
from traceviz.timestamp import Timestamp


class ValueType(enum.IntEnum):
    """Wire tags for encoded Values.

    The backend has 'string index' variants, encoded as offsets into a
    response-wide string table, which decode to plain strings here. Set
    variants exist only on this side and are sent as their list form.
    """

    UNSET = 0
    STRING = 1
    STRING_INDEX = 2
    STRINGS = 3
    STRING_INDICES = 4
    INTEGER = 5
    INTEGERS = 6
    DOUBLE = 7
    DURATION = 8
    TIMESTAMP = 9


# A single encoded Value: [ValueType, payload].
V = Sequence[Any]

# Anything a Value exports to, or imports from, as plain JSON.
ExportedValue = Union[dict, int, float, str, list]


class StringTableBuilder:
    """Interns strings into a table, giving each a stable index.

    Mapping frequently-repeated strings to small integers shrinks encoded
    requests.
    """

    def __init__(self, strings: Iterable[str] = ()) -> None:
        self._strings: list[str] = []
        self._indices: dict[str, int] = {}
        for s in strings:
            self.index(s)

    def index(self, s: str) -> int:
        """Index of s, adding it to the table if needed."""
        idx = self._indices.get(s)
        if idx is None:
            idx = len(self._strings)
            self._strings.append(s)
            self._indices[s] = idx
        return idx

    def strings(self) -> list[str]:
        return list(self._strings)


def _sign(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _is_number(x: object) -> bool:
    return isinstance(x, (int, float)) and not isinstance(x, bool)


def _is_finite(x: object) -> bool:
    return _is_number(x) and math.isfinite(x)


def _compare_sequences(a: Sequence[Any], b: Sequence[Any]) -> int:
    # Shorter sorts first; equal lengths compare at the leftmost difference.
    if len(a) != len(b):
        return len(a) - len(b)
    for x, y in zip(a, b):
        cmp = _sign(x, y)
        if cmp != 0:
            return cmp
    return 0


def fold_list(this: list, other: list, toggle: bool, replace: bool) -> list:
    """Folds other into this. See Value.fold."""
    if toggle and this == other:
        return []
    if replace:
        return list(other)
    return this + other


def fold_set(this: set, other: set, toggle: bool, replace: bool) -> set:
    """Folds other into this. See Value.fold."""
    if replace:
        if toggle and this == other:
            return set()
        return set(other)
    if toggle:
        # Each element of other flips in or out independently.
        return this ^ other
    return this | other


class Value(ABC):
    """A single typed, observable datum.

    get()/set() (or the val property) read and write the payload.
    subscribe(cb) delivers the Value itself now and on every change.
    """

    __slots__ = ("_payload", "_changes")

    type_name: ClassVar[str] = ""

    def __init__(self, payload: Any = None) -> None:
        self._payload = self._normalize(payload)
        self._changes: EventStream[Value] = EventStream(replay=1)
        self._changes.emit(self)

    # --- Payload ---

    @abstractmethod
    def _normalize(self, payload: Any) -> Any:
        """Coerces a raw payload into this variant's canonical form."""

    @abstractmethod
    def _zero(self) -> Any:
        """This variant's zero payload."""

    def get(self) -> Any:
        return self._payload

    def set(self, payload: Any) -> None:
        """Write a new payload. Emits only if it differs from the current one."""
        call_on_scheduler(lambda: self._set_direct(payload))

    def _set_direct(self, payload: Any) -> None:
        payload = self._normalize(payload)
        if payload != self._payload:
            self._payload = payload
            self._changes.emit(self)

    @property
    def val(self) -> Any:
        return self.get()

    @val.setter
    def val(self, payload: Any) -> None:
        self.set(payload)

    # --- Observation ---

    def subscribe(self, callback: Callable[[Value], None]) -> Disposer:
        """Deliver this Value to callback now and after every change."""
        return self._changes.subscribe(callback)

    @property
    def changes(self) -> Stream[Value]:
        return self._changes

    # --- Algebra ---

    @abstractmethod
    def fold(self, other: Value, toggle: bool, replace: bool = True) -> bool:
        """Folds other's payload into this one's.

        Returns False, leaving the receiver untouched, if other's type is
        incompatible; callers should treat that as a configuration error.

        toggle: clear the receiver if it already equals other.
        replace: replace the receiver with other. Ignored (always true) for
            scalars; when false, lists append and sets merge.

        EFFECT                                     OTHER     TOGGLE  REPLACE
        replace V with U                           U         False   True
        extend list V with U                       U         False   False
        toggle items of U in set V                 U         True    False
        replace V with U, clearing if equal        U         True    True
        clear V                                    Empty     any     any
        """

    @abstractmethod
    def includes(self, other: Value) -> bool:
        """True if the receiver includes other.

        For scalars, inclusion is equality. If a.includes(b) and
        b.includes(a), a and b compare equal.
        """

    @abstractmethod
    def prefix_of(self, other: Value) -> bool:
        """True if the receiver's sequence is a positional prefix of other's."""

    @abstractmethod
    def compare(self, other: Value) -> int:
        """<0, 0, or >0 as the receiver sorts before, with, or after other.

        Incomparable types compare nonzero.
        """

    # --- Encoding ---

    @abstractmethod
    def to_v(self, builder: StringTableBuilder | None = None) -> list | None:
        """Wire encoding; strings are interned into builder if one is given."""

    @abstractmethod
    def import_from(self, exported: ExportedValue) -> bool:
        """Sets the payload from its JSON form. False if exported has the wrong shape."""

    @abstractmethod
    def export_to(self) -> ExportedValue:
        """The payload in JSON form."""

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Value):
            return NotImplemented
        return type(self) is type(other) and self.compare(other) == 0

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._payload!r})"


class EmptyValue(Value):
    """No value at all. Folding it into another Value clears that Value."""

    __slots__ = ()

    type_name = "empty"

    def _normalize(self, payload: Any) -> None:
        return None

    def _zero(self) -> None:
        return None

    def fold(self, other: Value, toggle: bool, replace: bool = True) -> bool:
        return False

    def includes(self, other: Value) -> bool:
        return isinstance(other, EmptyValue)

    def prefix_of(self, other: Value) -> bool:
        return False

    def compare(self, other: Value) -> int:
        return 0 if isinstance(other, EmptyValue) else 1

    def to_v(self, builder: StringTableBuilder | None = None) -> None:
        return None

    def import_from(self, exported: ExportedValue) -> bool:
        return True

    def export_to(self) -> ExportedValue:
        return {}

    def __str__(self) -> str:
        return ""

    def __repr__(self) -> str:
        return "EmptyValue()"


class _ScalarValue(Value):
    """Shared behavior of single-datum variants."""

    __slots__ = ()

    @staticmethod
    def _normalize_one(payload: Any) -> Any:
        return payload

    def _normalize(self, payload: Any) -> Any:
        return self._normalize_one(payload)

    def fold(self, other: Value, toggle: bool, replace: bool = True) -> bool:
        if isinstance(other, EmptyValue):
            self.set(self._zero())
        elif isinstance(other, type(self)):
            self.set(self._zero() if toggle and self._payload == other._payload else other._payload)
        else:
            return False
        return True

    def includes(self, other: Value) -> bool:
        return self.compare(other) == 0

    def prefix_of(self, other: Value) -> bool:
        return False

    def compare(self, other: Value) -> int:
        if isinstance(other, EmptyValue):
            return _sign(self._payload, self._zero())
        if isinstance(other, type(self)):
            return _sign(self._payload, other._payload)
        return 1


class StringValue(_ScalarValue):
    """A Value containing a string."""

    __slots__ = ()

    type_name = "string"

    def __init__(self, payload: str = "") -> None:
        super().__init__(payload)

    @staticmethod
    def _accepts(exported: object) -> bool:
        return isinstance(exported, str)

    def _zero(self) -> str:
        return ""

    def to_v(self, builder: StringTableBuilder | None = None) -> list:
        if builder is None:
            return [ValueType.STRING, self._payload]
        return [ValueType.STRING_INDEX, builder.index(self._payload)]

    def import_from(self, exported: ExportedValue) -> bool:
        if not self._accepts(exported):
            return False
        self.set(exported)
        return True

    def export_to(self) -> ExportedValue:
        return self._payload

    def __str__(self) -> str:
        return self._payload


class IntegerValue(_ScalarValue):
    """A Value containing an integer. Non-integral payloads are floored."""

    __slots__ = ()

    type_name = "integer"

    def __init__(self, payload: float = 0) -> None:
        super().__init__(payload)

    @staticmethod
    def _normalize_one(payload: Any) -> int:
        return math.floor(payload)

    @staticmethod
    def _accepts(exported: object) -> bool:
        return _is_number(exported)

    def _zero(self) -> int:
        return 0

    def to_v(self, builder: StringTableBuilder | None = None) -> list:
        return [ValueType.INTEGER, self._payload]

    def import_from(self, exported: ExportedValue) -> bool:
        if not self._accepts(exported):
            return False
        self.set(exported)
        return True

    def export_to(self) -> ExportedValue:
        return self._payload

    def __str__(self) -> str:
        return str(self._payload)


class DoubleValue(_ScalarValue):
    """A Value containing a double."""

    __slots__ = ()

    type_name = "double"

    def __init__(self, payload: float = 0.0) -> None:
        super().__init__(payload)

    @staticmethod
    def _normalize_one(payload: Any) -> float:
        return float(payload)

    def _zero(self) -> float:
        return 0.0

    def to_v(self, builder: StringTableBuilder | None = None) -> list:
        return [ValueType.DOUBLE, self._payload]

    def import_from(self, exported: ExportedValue) -> bool:
        if not _is_number(exported):
            return False
        self.set(exported)
        return True

    def export_to(self) -> ExportedValue:
        return self._payload

    def __str__(self) -> str:
        if self._payload.is_integer():
            return str(int(self._payload))
        return repr(self._payload)


class DurationValue(_ScalarValue):
    """A Value containing a Duration."""

    __slots__ = ()

    type_name = "duration"

    def __init__(self, payload: Duration | None = None) -> None:
        super().__init__(Duration(0) if payload is None else payload)

    def _zero(self) -> Duration:
        return Duration(0)

    def to_v(self, builder: StringTableBuilder | None = None) -> list:
        return [ValueType.DURATION, self._payload.nanos]

    def import_from(self, exported: ExportedValue) -> bool:
        if not _is_finite(exported):
            return False
        self.set(Duration(int(exported)))
        return True

    def export_to(self) -> ExportedValue:
        return self._payload.nanos

    def __str__(self) -> str:
        return str(self._payload)


class TimestampValue(_ScalarValue):
    """A Value containing a high-resolution Timestamp."""

    __slots__ = ()

    type_name = "timestamp"

    def __init__(self, payload: Timestamp | None = None) -> None:
        super().__init__(Timestamp(0, 0) if payload is None else payload)

    def _zero(self) -> Timestamp:
        return Timestamp(0, 0)

    def to_v(self, builder: StringTableBuilder | None = None) -> list:
        return [ValueType.TIMESTAMP, [self._payload.seconds, self._payload.nanos]]

    def import_from(self, exported: ExportedValue) -> bool:
        if not isinstance(exported, dict):
            return False
        if not (_is_finite(exported.get("seconds")) and _is_finite(exported.get("nanos"))):
            return False
        self.set(Timestamp(exported["seconds"], exported["nanos"]))
        return True

    def export_to(self) -> ExportedValue:
        return {"seconds": self._payload.seconds, "nanos": self._payload.nanos}

    def __str__(self) -> str:
        return str(self._payload)


class _ListValue(Value):
    """An ordered list of one scalar family's payloads."""

    __slots__ = ()

    _element: ClassVar[type[_ScalarValue]]
    _wire_type: ClassVar[ValueType]
    _wire_indexed_type: ClassVar[ValueType | None] = None

    def __init__(self, payload: Iterable[Any] = ()) -> None:
        super().__init__(payload)

    def _normalize(self, payload: Iterable[Any]) -> list:
        return [self._element._normalize_one(p) for p in payload]

    def _zero(self) -> list:
        return []

    def get(self) -> list:
        return list(self._payload)

    def _coerce(self, other: Value) -> list | None:
        if isinstance(other, self._element):
            return [other._payload]
        if isinstance(other, type(self)):
            return list(other._payload)
        return None

    def fold(self, other: Value, toggle: bool, replace: bool = True) -> bool:
        if isinstance(other, EmptyValue):
            self.set([])
            return True
        other_val = self._coerce(other)
        if other_val is None:
            return False
        self.set(fold_list(self._payload, other_val, toggle, replace))
        return True

    def includes(self, other: Value) -> bool:
        # Positional equality, unlike the subset semantics of sets.
        other_val = self._coerce(other)
        return (other_val or []) == self._payload

    def prefix_of(self, other: Value) -> bool:
        if not isinstance(other, type(self)):
            return False
        return other._payload[: len(self._payload)] == self._payload

    def compare(self, other: Value) -> int:
        if isinstance(other, EmptyValue):
            return len(self._payload)
        other_val = self._coerce(other)
        if other_val is None:
            return 1
        return _compare_sequences(self._payload, other_val)

    def to_v(self, builder: StringTableBuilder | None = None) -> list:
        if builder is None or self._wire_indexed_type is None:
            return [self._wire_type, list(self._payload)]
        return [self._wire_indexed_type, [builder.index(p) for p in self._payload]]

    def import_from(self, exported: ExportedValue) -> bool:
        if not isinstance(exported, list) or not all(self._element._accepts(e) for e in exported):
            return False
        self.set(exported)
        return True

    def export_to(self) -> ExportedValue:
        return list(self._payload)

    def __str__(self) -> str:
        return "[" + ", ".join(str(p) for p in self._payload) + "]"


class _SetValue(Value):
    """An unordered set of one scalar family's unique payloads."""

    __slots__ = ()

    _element: ClassVar[type[_ScalarValue]]
    _list: ClassVar[type[_ListValue]]
    _wire_type: ClassVar[ValueType]
    _wire_indexed_type: ClassVar[ValueType | None] = None

    def __init__(self, payload: Iterable[Any] = ()) -> None:
        super().__init__(payload)

    def _normalize(self, payload: Iterable[Any]) -> set:
        return {self._element._normalize_one(p) for p in payload}

    def _zero(self) -> set:
        return set()

    def get(self) -> set:
        return set(self._payload)

    def _coerce(self, other: Value) -> set | None:
        if isinstance(other, self._element):
            return {other._payload}
        if isinstance(other, (self._list, type(self))):
            return set(other._payload)
        return None

    def fold(self, other: Value, toggle: bool, replace: bool = True) -> bool:
        if isinstance(other, EmptyValue):
            self.set(set())
            return True
        other_val = self._coerce(other)
        if other_val is None:
            return False
        self.set(fold_set(self._payload, other_val, toggle, replace))
        return True

    def includes(self, other: Value) -> bool:
        other_val = self._coerce(other)
        return (other_val or set()) <= self._payload

    def prefix_of(self, other: Value) -> bool:
        return False

    def compare(self, other: Value) -> int:
        if isinstance(other, EmptyValue):
            return len(self._payload)
        if isinstance(other, self._list):
            # Lists keep their duplicates when compared against a set.
            return _compare_sequences(sorted(self._payload), sorted(other._payload))
        other_val = self._coerce(other)
        if other_val is None:
            return 1
        return _compare_sequences(sorted(self._payload), sorted(other_val))

    def to_v(self, builder: StringTableBuilder | None = None) -> list:
        ordered = sorted(self._payload)
        if builder is None or self._wire_indexed_type is None:
            return [self._wire_type, ordered]
        return [self._wire_indexed_type, [builder.index(p) for p in ordered]]

    def import_from(self, exported: ExportedValue) -> bool:
        if not isinstance(exported, list) or not all(self._element._accepts(e) for e in exported):
            return False
        self.set(exported)
        return True

    def export_to(self) -> ExportedValue:
        return sorted(self._payload)

    def __str__(self) -> str:
        return "{" + ", ".join(str(p) for p in sorted(self._payload)) + "}"


class StringListValue(_ListValue):
    """A Value containing an ordered list of strings."""

    __slots__ = ()

    type_name = "string list"
    _element = StringValue
    _wire_type = ValueType.STRINGS
    _wire_indexed_type = ValueType.STRING_INDICES


class StringSetValue(_SetValue):
    """A Value containing an unordered set of unique strings."""

    __slots__ = ()

    type_name = "string set"
    _element = StringValue
    _list = StringListValue
    _wire_type = ValueType.STRINGS
    _wire_indexed_type = ValueType.STRING_INDICES


class IntegerListValue(_ListValue):
    """A Value containing an ordered list of integers."""

    __slots__ = ()

    type_name = "integer list"
    _element = IntegerValue
    _wire_type = ValueType.INTEGERS


class IntegerSetValue(_SetValue):
    """A Value containing an unordered set of unique integers."""

    __slots__ = ()

    type_name = "integer set"
    _element = IntegerValue
    _list = IntegerListValue
    _wire_type = ValueType.INTEGERS


def string_at(string_table: Sequence[str], idx: object) -> str | None:
    """Returns string_table[idx], or None if idx isn't a valid index into it."""
    if not isinstance(idx, int) or isinstance(idx, bool) or not 0 <= idx < len(string_table):
        return None
    return string_table[idx]


def _lookup(string_table: Sequence[str], payload: Any, cls: type[Value]) -> Value | None:
    if cls is StringValue:
        s = string_at(string_table, payload)
        return None if s is None else StringValue(s)
    if not isinstance(payload, list):
        return None
    strings = [string_at(string_table, idx) for idx in payload]
    if any(s is None for s in strings):
        return None
    return cls(strings)


def from_v(v: V | None, string_table: Sequence[str] = ()) -> Value | None:
    """Decodes a wire-encoded Value, or returns None if that isn't possible.

    string_table, generally from the backend response, resolves
    STRING_INDEX and STRING_INDICES payloads.
    """
    if v is None or len(v) < 2:
        return None
    tag, payload = v[0], v[1]
    if tag == ValueType.STRING:
        return StringValue(payload)
    if tag == ValueType.STRING_INDEX:
        return _lookup(string_table, payload, StringValue)
    if tag == ValueType.STRINGS:
        return StringListValue(payload)
    if tag == ValueType.STRING_INDICES:
        return _lookup(string_table, payload, StringListValue)
    if tag == ValueType.INTEGER:
        return IntegerValue(payload)
    if tag == ValueType.INTEGERS:
        return IntegerListValue(payload)
    if tag == ValueType.DOUBLE:
        return DoubleValue(payload)
    if tag == ValueType.DURATION:
        return DurationValue(Duration(int(payload)))
    if tag == ValueType.TIMESTAMP:
        return TimestampValue(Timestamp(payload[0], payload[1]))
    return None
