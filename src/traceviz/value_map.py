"""ValueMap — a read-only string-keyed collection of Values.

The map's shape is fixed at construction; only the contained Values change.
Values are not owned by the map and may be shared between maps, so the same
Value can appear both in global state and in a per-row local map.
"""

from __future__ import annotations

import logging
import re
from typing import Iterator, Mapping, Sequence, Tuple, Union

from traceviz.duration import Duration
from traceviz.errors import ConfigurationError, Severity
from traceviz.stream import Stream, merge
from traceviz.timestamp import Timestamp
from traceviz.value import (
    DoubleValue,
    DurationValue,
    ExportedValue,
    IntegerListValue,
    IntegerValue,
    StringListValue,
    StringTableBuilder,
    StringValue,
    TimestampValue,
    V,
    Value,
    from_v,
    string_at,
)

SOURCE = "value_map"

logger = logging.getLogger("traceviz.value_map")

# A wire-encoded entry: key (or its string table index) and encoded Value.
KV = Tuple[Union[int, str], V]

ExportedKeyValueMap = dict[str, ExportedValue]

# Everything before the next '$', then optionally '$$' or '$(key)'.
_FORMAT_RE = re.compile(r"([^$]*)(\$\$|\$\([a-zA-Z_\-0-9]+\))?", re.DOTALL)


def _error(message: str) -> ConfigurationError:
    return ConfigurationError(message).from_(SOURCE).at(Severity.ERROR)


class ValueMap:
    """A read-only key -> Value mapping."""

    __slots__ = ("_map",)

    def __init__(
        self,
        props: Mapping[str, Value] | Sequence[KV] | None = None,
        string_table: Sequence[str] = (),
    ) -> None:
        self._map: dict[str, Value] = {}
        if props is None:
            return
        if isinstance(props, Mapping):
            self._map = dict(props)
            return
        for raw_key, v in props:
            key = raw_key if isinstance(raw_key, str) else string_at(string_table, raw_key)
            if key is None:
                raise _error(f"key index {raw_key!r} can't be parsed")
            value = from_v(v, string_table)
            if value is None:
                raise _error(f"value with key '{key}' can't be parsed")
            self._map[key] = value

    # --- Encoding ---

    def to_v_map(self, builder: StringTableBuilder | None = None) -> dict:
        """Wire-encodes the map. Keys are interned into builder if one is given."""
        ret: dict = {}
        for key, value in self._map.items():
            v = value.to_v(builder)
            if v is None:
                continue
            ret[key if builder is None else builder.index(key)] = v
        return ret

    def export_key_value_map(self) -> ExportedKeyValueMap:
        return {key: value.export_to() for key, value in self._map.items()}

    def update_from_exported_key_value_map(self, update: ExportedKeyValueMap) -> None:
        """Imports each entry of update into the Value with the same key."""
        for key, exported in update.items():
            if key not in self._map:
                raise _error(f"can't update ValueMap from JSON: missing key {key}")
            if not self._map[key].import_from(exported):
                raise _error(f"can't update value {key} from JSON")

    # --- Mapping protocol ---

    def keys(self) -> Iterator[str]:
        return iter(self._map.keys())

    def values(self) -> Iterator[Value]:
        return iter(self._map.values())

    def items(self) -> Iterator[tuple[str, Value]]:
        return iter(self._map.items())

    def __iter__(self) -> Iterator[str]:
        return iter(self._map)

    def __len__(self) -> int:
        return len(self._map)

    @property
    def size(self) -> int:
        return len(self._map)

    def __contains__(self, key: object) -> bool:
        return key in self._map

    def has(self, key: str) -> bool:
        return key in self._map

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ValueMap):
            return NotImplemented
        return self._map.keys() == other._map.keys() and all(
            value == other._map[key] for key, value in self._map.items()
        )

    __hash__ = None

    def __repr__(self) -> str:
        return f"ValueMap({self._map!r})"

    # --- Lookup ---

    def get(self, key: str) -> Value:
        value = self._map.get(key)
        if value is None:
            raise _error(f"no value with key '{key}'")
        return value

    def _expect(self, key: str, types: tuple[type[Value], ...], type_desc: str) -> object:
        value = self.get(key)
        if not isinstance(value, types):
            raise _error(f"no {type_desc}-type value with key '{key}'")
        return value.val

    def expect_string(self, key: str) -> str:
        return self._expect(key, (StringValue,), "string")

    def expect_string_list(self, key: str) -> list[str]:
        return self._expect(key, (StringListValue,), "string list")

    def expect_number(self, key: str) -> float:
        return self._expect(key, (IntegerValue, DoubleValue), "number")

    def expect_integer_list(self, key: str) -> list[int]:
        return self._expect(key, (IntegerListValue,), "integer list")

    def expect_timestamp(self, key: str) -> Timestamp:
        return self._expect(key, (TimestampValue,), "timestamp")

    def expect_duration(self, key: str) -> Duration:
        return self._expect(key, (DurationValue,), "duration")

    def format(self, fmt: str) -> str:
        """Substitutes Values into a format string.

        '$$' becomes a literal '$', and '$(key)' becomes str() of the Value
        at key, where key is made of [a-zA-Z_-0-9]. Any other '$' is
        ill-formed. Raises ConfigurationError if fmt is ill-formed or names a
        missing key.
        """
        parts: list[str] = []
        pos = 0
        while pos < len(fmt):
            m = _FORMAT_RE.match(fmt, pos)
            text, directive = m.group(1), m.group(2)
            if not text and not directive:
                raise _error(f"format string '{fmt}' is ill-formed")
            parts.append(text)
            if directive == "$$":
                parts.append("$")
            elif directive:
                key = directive[2:-1]
                value = self._map.get(key)
                if value is None:
                    raise _error(f"required property '{key}' is not present in Datum")
                parts.append(str(value))
            pos = m.end()
        return "".join(parts)

    # --- Derivation ---

    def without(self, *keys: str) -> ValueMap:
        """A map of every entry except those with the given keys."""
        excluded = set(keys)
        return ValueMap({k: v for k, v in self._map.items() if k not in excluded})

    def with_(self, *entries: tuple[str, Value]) -> ValueMap:
        """A map of every entry plus the given ones, which win on conflict."""
        combined = dict(self._map)
        combined.update(entries)
        return ValueMap(combined)

    def watch(self) -> Stream[ValueMap]:
        """Emits the map whenever any contained Value changes.

        On subscription it emits once per contained Value.
        """
        return merge(*(value.changes for value in self._map.values())).map(lambda _: self)

    @staticmethod
    def union(*maps: ValueMap) -> ValueMap:
        """Unions two or more maps.

        A key present in several maps must map to comparably equal Values;
        the first one is kept.
        """
        if len(maps) < 2:
            raise ValueError("ValueMap.union requires at least two ValueMaps")
        combined = dict(maps[0]._map)
        for vm in maps[1:]:
            for key, value in vm._map.items():
                existing = combined.get(key)
                if existing is None:
                    combined[key] = value
                elif existing.compare(value) != 0:
                    raise _error(
                        f"can't union ValueMaps: key {key} maps to different "
                        f"values {value} and {existing}"
                    )
        logger.debug("unioned %d ValueMaps into %d keys", len(maps), len(combined))
        return ValueMap(combined)
