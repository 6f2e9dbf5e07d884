"""TraceViz core: typed observable Values and declarative interactions."""

from importlib.metadata import version as _version

__version__ = _version("traceviz-core")

from traceviz._scheduling import set_scheduler
from traceviz.action import Action, Update, UpdateKind, apply_update
from traceviz.documentation import Documenter, DocumenterType, pretty_print
from traceviz.duration import Duration
from traceviz.errors import ConfigurationError, Severity
from traceviz.global_state import GlobalState
from traceviz.interactions import Interactions
from traceviz.reaction import MatchFn, Predicate, PredicateKind, Reaction, match_predicate
from traceviz.stream import EventStream, Stream
from traceviz.timestamp import Timestamp
from traceviz.value import (
    DoubleValue,
    DurationValue,
    EmptyValue,
    IntegerListValue,
    IntegerSetValue,
    IntegerValue,
    StringListValue,
    StringSetValue,
    StringTableBuilder,
    StringValue,
    TimestampValue,
    Value,
    ValueType,
    from_v,
)
from traceviz.value_map import ValueMap
from traceviz.value_reference import FixedValue, KeyedValueRef, LocalValue, ValueRef, ValueRefMap
from traceviz.watch import Watch
# textual NOT auto-imported — opt-in only

__all__ = [
    "Action",
    "ConfigurationError",
    "Documenter",
    "DocumenterType",
    "DoubleValue",
    "Duration",
    "DurationValue",
    "EmptyValue",
    "EventStream",
    "FixedValue",
    "GlobalState",
    "IntegerListValue",
    "IntegerSetValue",
    "IntegerValue",
    "Interactions",
    "KeyedValueRef",
    "LocalValue",
    "MatchFn",
    "Predicate",
    "PredicateKind",
    "Reaction",
    "Severity",
    "Stream",
    "StringListValue",
    "StringSetValue",
    "StringTableBuilder",
    "StringValue",
    "Timestamp",
    "TimestampValue",
    "Update",
    "UpdateKind",
    "Value",
    "ValueMap",
    "ValueRef",
    "ValueRefMap",
    "ValueType",
    "Watch",
    "apply_update",
    "from_v",
    "match_predicate",
    "pretty_print",
    "set_scheduler",
]
