"""Terse Value builders for tests and tool prototypes.

    vm = value_map(ids=strs("a", "b"), weight=int_(3))
"""

from __future__ import annotations

from traceviz.duration import Duration
from traceviz.timestamp import Timestamp
from traceviz.value import (
    DoubleValue,
    DurationValue,
    IntegerListValue,
    IntegerSetValue,
    IntegerValue,
    StringListValue,
    StringSetValue,
    StringTableBuilder,
    StringValue,
    TimestampValue,
    Value,
)
from traceviz.value_map import ValueMap


def str_(s: str) -> StringValue:
    return StringValue(s)


def strs(*s: str) -> StringListValue:
    return StringListValue(s)


def str_set(*s: str) -> StringSetValue:
    return StringSetValue(s)


def int_(i: int) -> IntegerValue:
    return IntegerValue(i)


def ints(*i: int) -> IntegerListValue:
    return IntegerListValue(i)


def int_set(*i: int) -> IntegerSetValue:
    return IntegerSetValue(i)


def dbl(d: float) -> DoubleValue:
    return DoubleValue(d)


def dur(nanos: int) -> DurationValue:
    return DurationValue(Duration(nanos))


def ts(seconds: int, nanos: int = 0) -> TimestampValue:
    return TimestampValue(Timestamp(seconds, nanos))


def st(*strings: str) -> StringTableBuilder:
    """A StringTableBuilder prepopulated with strings, in order."""
    return StringTableBuilder(strings)


def value_map(**values: Value) -> ValueMap:
    return ValueMap(values)
