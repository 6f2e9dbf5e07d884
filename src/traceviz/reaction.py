"""Predicates and Reactions — live boolean signals over Values.

A Predicate is a tagged variant: a PredicateKind plus the operands that kind
uses. match() yields a MatchFn, which resolves the Predicate's ValueRefs
against a local state and returns a Stream of booleans. Because Values
replay on subscribe, every signal emits its current state immediately.

Composite signals (And, Or, comparisons) recompute whenever any input
emits, and only pass on a result that differs from the previous one.
Includes and PrefixOf pass on every recomputation.

A Reaction names a Predicate by target and type ('row', 'highlight') so a
component can look it up through Interactions.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Sequence

from traceviz.documentation import Documenter, DocumenterType
from traceviz.errors import ConfigurationError, Severity
from traceviz.stream import Stream, combine_latest, empty, merge, of
from traceviz.value import Value
from traceviz.value_map import ValueMap
from traceviz.value_reference import ValueRef

SOURCE = "interactions"

# Resolves a Predicate against a local state into a live boolean signal.
MatchFn = Callable[..., Stream[bool]]


def _error(message: str) -> ConfigurationError:
    return ConfigurationError(message).from_(SOURCE).at(Severity.ERROR)


class PredicateKind(enum.Enum):
    CHANGED = "changed"
    TRUE = "true"
    FALSE = "false"
    NOT = "not"
    AND = "and"
    OR = "or"
    EQUALS = "equals"
    LESS_THAN = "less_than"
    GREATER_THAN = "greater_than"
    INCLUDES = "includes"
    PREFIX_OF = "prefix_of"


@dataclass(eq=False)
class Predicate(Documenter):
    """A declarative condition over Values. Build with the classmethods."""

    kind: PredicateKind
    refs: list[ValueRef] = field(default_factory=list)
    predicates: list[Predicate] = field(default_factory=list)
    since_ms: float | None = None

    documenter_type = DocumenterType.PREDICATE

    def match(self) -> MatchFn:
        def match_fn(local_state: ValueMap | None = None) -> Stream[bool]:
            return match_predicate(self, local_state)

        return match_fn

    def snapshot(self, local_state: ValueMap | None = None) -> bool:
        """The signal's current value, read once. No emission reads as False."""
        return self.match()(local_state).latest(False)

    @property
    def auto_document(self) -> str:
        return _DOCUMENT[self.kind](self)

    @property
    def children(self) -> Sequence[Documenter]:
        return self.predicates

    # --- Builders ---

    @classmethod
    def changed(cls, refs: Sequence[ValueRef], since_ms: float | None = None) -> Predicate:
        """True for since_ms after any of refs changes.

        With since_ms None or 0, each change emits an instantaneous True, False
        pulse instead. Inside And/Or that True may never be observed.
        """
        return cls(PredicateKind.CHANGED, refs=list(refs), since_ms=since_ms)

    @classmethod
    def true(cls) -> Predicate:
        return cls(PredicateKind.TRUE)

    @classmethod
    def false(cls) -> Predicate:
        return cls(PredicateKind.FALSE)

    @classmethod
    def not_(cls, predicate: Predicate) -> Predicate:
        return cls(PredicateKind.NOT, predicates=[predicate])

    @classmethod
    def and_(cls, predicates: Sequence[Predicate]) -> Predicate:
        return cls(PredicateKind.AND, predicates=list(predicates))

    @classmethod
    def or_(cls, predicates: Sequence[Predicate]) -> Predicate:
        return cls(PredicateKind.OR, predicates=list(predicates))

    @classmethod
    def equals(cls, x: ValueRef, y: ValueRef) -> Predicate:
        return cls(PredicateKind.EQUALS, refs=[x, y])

    @classmethod
    def less_than(cls, x: ValueRef, y: ValueRef) -> Predicate:
        return cls(PredicateKind.LESS_THAN, refs=[x, y])

    @classmethod
    def greater_than(cls, x: ValueRef, y: ValueRef) -> Predicate:
        return cls(PredicateKind.GREATER_THAN, refs=[x, y])

    @classmethod
    def includes(cls, x: ValueRef, y: ValueRef) -> Predicate:
        return cls(PredicateKind.INCLUDES, refs=[x, y])

    @classmethod
    def prefix_of(cls, x: ValueRef, y: ValueRef) -> Predicate:
        return cls(PredicateKind.PREFIX_OF, refs=[x, y])


# ─── Matching ────────────────────────────────────────────────────────────────


def _changed(p: Predicate, local_state: ValueMap | None) -> Stream[bool]:
    values = []
    for ref in p.refs:
        value = ref.get(local_state)
        if value is not None:
            values.append(value)
    any_changed = merge(*(v.changes for v in values)).map(lambda _: True)
    if not p.since_ms:
        return any_changed.flat_map(lambda _: (True, False))
    expired = any_changed.debounce(p.since_ms / 1000).map(lambda _: False)
    return merge(any_changed, expired).distinct()


def _constant(result: bool) -> Callable[[Predicate, ValueMap | None], Stream[bool]]:
    def match(p: Predicate, local_state: ValueMap | None) -> Stream[bool]:
        return of(result)

    return match


def _not(p: Predicate, local_state: ValueMap | None) -> Stream[bool]:
    if len(p.predicates) != 1:
        raise _error("Not must have exactly one child predicate.")
    return p.predicates[0].match()(local_state).map(lambda v: not v).distinct()


def _combine(reduce: Callable[[list[bool]], bool]):
    def match(p: Predicate, local_state: ValueMap | None) -> Stream[bool]:
        signals = [child.match()(local_state) for child in p.predicates]
        return combine_latest(signals).map(reduce).distinct()

    return match


def _binary(test: Callable[[Value, Value], bool], distinct: bool):
    def match(p: Predicate, local_state: ValueMap | None) -> Stream[bool]:
        if len(p.refs) != 2:
            raise _error(f"{p.kind.name} must have exactly two value arguments.")
        x = p.refs[0].get(local_state)
        y = p.refs[1].get(local_state)
        if x is None or y is None:
            return empty()
        signal = combine_latest([x.changes, y.changes]).map(lambda vals: test(vals[0], vals[1]))
        return signal.distinct() if distinct else signal

    return match


_MATCH: dict[PredicateKind, Callable[[Predicate, ValueMap | None], Stream[bool]]] = {
    PredicateKind.CHANGED: _changed,
    PredicateKind.TRUE: _constant(True),
    PredicateKind.FALSE: _constant(False),
    PredicateKind.NOT: _not,
    PredicateKind.AND: _combine(all),
    PredicateKind.OR: _combine(any),
    PredicateKind.EQUALS: _binary(lambda x, y: x.compare(y) == 0, distinct=True),
    PredicateKind.LESS_THAN: _binary(lambda x, y: x.compare(y) < 0, distinct=True),
    PredicateKind.GREATER_THAN: _binary(lambda x, y: x.compare(y) > 0, distinct=True),
    PredicateKind.INCLUDES: _binary(lambda x, y: x.includes(y), distinct=False),
    PredicateKind.PREFIX_OF: _binary(lambda x, y: x.prefix_of(y), distinct=False),
}


def match_predicate(p: Predicate, local_state: ValueMap | None = None) -> Stream[bool]:
    """Resolves p against local_state into its live signal."""
    return _MATCH[p.kind](p, local_state)


# ─── Documentation ───────────────────────────────────────────────────────────


def _labels(p: Predicate) -> list[str]:
    return [ref.label() for ref in p.refs]


def _document_binary(op: str) -> Callable[[Predicate], str]:
    def document(p: Predicate) -> str:
        x, y = (_labels(p) + ["?", "?"])[:2]
        return f"when {x} {op} {y}"

    return document


def _document_changed(p: Predicate) -> str:
    return f"when [{', '.join(_labels(p))}] changed within past {p.since_ms or 0:g}ms"


_DOCUMENT: dict[PredicateKind, Callable[[Predicate], str]] = {
    PredicateKind.CHANGED: _document_changed,
    PredicateKind.TRUE: lambda p: "TRUE",
    PredicateKind.FALSE: lambda p: "FALSE",
    PredicateKind.NOT: lambda p: "NOT",
    PredicateKind.AND: lambda p: "AND",
    PredicateKind.OR: lambda p: "OR",
    PredicateKind.EQUALS: _document_binary("=="),
    PredicateKind.LESS_THAN: _document_binary("<"),
    PredicateKind.GREATER_THAN: _document_binary(">"),
    PredicateKind.INCLUDES: _document_binary("includes"),
    PredicateKind.PREFIX_OF: _document_binary("is a prefix of"),
}

for _table in (_MATCH, _DOCUMENT):
    _missing = [kind.name for kind in PredicateKind if kind not in _table]
    if _missing:
        raise TypeError(f"unhandled predicate kinds: {', '.join(_missing)}")
del _table, _missing


class Reaction(Documenter):
    """A Predicate published for a (target, type) pair."""

    documenter_type = DocumenterType.REACTION

    def __init__(self, target: str, type: str, predicate: Predicate) -> None:
        self.target = target
        self.type = type
        self.predicate = predicate

    def match(self) -> MatchFn:
        return self.predicate.match()

    @property
    def auto_document(self) -> str:
        return f"Performs '{self.type}' on '{self.target}'"

    @property
    def children(self) -> Sequence[Documenter]:
        return [self.predicate]

    def __repr__(self) -> str:
        return f"Reaction({self.target!r}, {self.type!r})"
