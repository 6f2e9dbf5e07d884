"""Updates and Actions — declarative mutations of Values.

An Update is a tagged variant: an UpdateKind plus the operands that kind
uses. update(local_state) resolves its ValueRefs against the local state
and performs the mutation, usually by folding one Value into another:

    KIND           TOGGLE  REPLACE
    set            False   True
    toggle         True    False
    set_or_clear   True    True
    extend         False   False

Updates over an unresolved ref do nothing. A type mismatch, or an Update
built with the wrong operands, raises ConfigurationError when it runs, not
when it is built; a misconfigured branch only fails if it is exercised.

An Action names a list of Updates by target and type ('row', 'click') so a
component can run them through Interactions.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Callable, Sequence

from traceviz.documentation import Documenter, DocumenterType
from traceviz.errors import ConfigurationError, Severity
from traceviz.reaction import Predicate
from traceviz.value import (
    EmptyValue,
    IntegerListValue,
    IntegerValue,
    StringListValue,
    StringValue,
    Value,
    from_v,
)
from traceviz.value_map import ValueMap
from traceviz.value_reference import ValueRef

SOURCE = "interactions"

# The element type each list variant accepts when pushed onto.
_LIST_ELEMENTS: dict[type[Value], type[Value]] = {
    StringListValue: StringValue,
    IntegerListValue: IntegerValue,
}


def _error(message: str) -> ConfigurationError:
    return ConfigurationError(message).from_(SOURCE).at(Severity.ERROR)


class UpdateKind(enum.Enum):
    CLEAR = "clear"
    SET = "set"
    TOGGLE = "toggle"
    SET_OR_CLEAR = "set_or_clear"
    EXTEND = "extend"
    SET_IF_EMPTY = "set_if_empty"
    SWAP = "swap"
    PUSH_LEFT = "push_left"
    POP_LEFT = "pop_left"
    CONCAT = "concat"
    DO = "do"
    IF = "if"
    CASE = "case"
    SWITCH = "switch"
    CALL = "call"


@dataclass(eq=False)
class Update(Documenter):
    """A declarative mutation. Build with the classmethods."""

    kind: UpdateKind
    refs: list[ValueRef] = field(default_factory=list)
    predicate: Predicate | None = None
    updates: list = field(default_factory=list)
    fn: Callable[[ValueMap | None], None] | None = None
    doc: str = ""

    documenter_type = DocumenterType.UPDATE

    def update(self, local_state: ValueMap | None = None) -> None:
        apply_update(self, local_state)

    def execute(self, local_state: ValueMap | None = None) -> bool:
        """Runs a case, returning whether its predicate held."""
        if self.kind is not UpdateKind.CASE:
            raise _error(f"only a case can be executed, not {self.kind.value}.")
        return _run_case(self, local_state)

    @property
    def auto_document(self) -> str:
        return _DOCUMENT[self.kind](self)

    @property
    def children(self) -> Sequence[Documenter]:
        if self.predicate is not None:
            return [self.predicate, *self.updates]
        return self.updates

    # --- Builders ---

    @classmethod
    def clear(cls, refs: Sequence[ValueRef]) -> Update:
        """Clears each ref, stopping at the first unresolved one."""
        return cls(UpdateKind.CLEAR, refs=list(refs))

    @classmethod
    def set(cls, dest: ValueRef, src: ValueRef) -> Update:
        return cls(UpdateKind.SET, refs=[dest, src])

    @classmethod
    def toggle(cls, dest: ValueRef, src: ValueRef) -> Update:
        return cls(UpdateKind.TOGGLE, refs=[dest, src])

    @classmethod
    def set_or_clear(cls, dest: ValueRef, src: ValueRef) -> Update:
        """Clears dest if it equals src, otherwise sets it from src."""
        return cls(UpdateKind.SET_OR_CLEAR, refs=[dest, src])

    @classmethod
    def extend(cls, dest: ValueRef, src: ValueRef) -> Update:
        return cls(UpdateKind.EXTEND, refs=[dest, src])

    @classmethod
    def set_if_empty(cls, dest: ValueRef, src: ValueRef) -> Update:
        return cls(UpdateKind.SET_IF_EMPTY, refs=[dest, src])

    @classmethod
    def swap(cls, first: ValueRef, second: ValueRef) -> Update:
        return cls(UpdateKind.SWAP, refs=[first, second])

    @classmethod
    def push_left(cls, refs: Sequence[ValueRef]) -> Update:
        """Pushes refs[1:], in order, onto the left end of the list at refs[0].

        A StringList accepts Strings and StringLists; an IntegerList accepts
        Integers and IntegerLists.
        """
        return cls(UpdateKind.PUSH_LEFT, refs=list(refs))

    @classmethod
    def pop_left(cls, ref: ValueRef) -> Update:
        return cls(UpdateKind.POP_LEFT, refs=[ref])

    @classmethod
    def concat(cls, refs: Sequence[ValueRef]) -> Update:
        """Appends the strings at refs[1:] to the string at refs[0]."""
        return cls(UpdateKind.CONCAT, refs=list(refs))

    @classmethod
    def do(cls, updates: Sequence) -> Update:
        return cls(UpdateKind.DO, updates=list(updates))

    @classmethod
    def if_(cls, predicate: Predicate, then: Update, else_: Update | None = None) -> Update:
        """Runs then if predicate currently holds, otherwise else_ (if any)."""
        updates = [then] if else_ is None else [then, else_]
        return cls(UpdateKind.IF, predicate=predicate, updates=updates)

    @classmethod
    def case(cls, predicate: Predicate, updates: Sequence) -> Update:
        return cls(UpdateKind.CASE, predicate=predicate, updates=list(updates))

    @classmethod
    def switch(cls, cases: Sequence[Update]) -> Update:
        """Runs the first case whose predicate currently holds."""
        return cls(UpdateKind.SWITCH, updates=list(cases))

    @classmethod
    def call(cls, fn: Callable[[ValueMap | None], None], doc: str) -> Update:
        """A custom update: fn(local_state) runs on update."""
        return cls(UpdateKind.CALL, fn=fn, doc=doc)


# ─── Application ─────────────────────────────────────────────────────────────


def _pair(u: Update) -> tuple[ValueRef, ValueRef]:
    if len(u.refs) != 2:
        raise _error(f"{u.kind.value} must have exactly two value arguments.")
    return u.refs[0], u.refs[1]


def _clear(u: Update, local_state: ValueMap | None) -> None:
    for ref in u.refs:
        value = ref.get(local_state)
        if value is None:
            return
        if not value.fold(EmptyValue(), toggle=False, replace=True):
            raise _error(f"Can't clear {ref.label()}.")


def _folder(toggle: bool, replace: bool, verb: str, only_if_empty: bool = False):
    def apply(u: Update, local_state: ValueMap | None) -> None:
        dest_ref, src_ref = _pair(u)
        dest = dest_ref.get(local_state)
        src = src_ref.get(local_state)
        if dest is None or src is None:
            return
        if only_if_empty and dest.compare(EmptyValue()) != 0:
            return
        if not dest.fold(src, toggle=toggle, replace=replace):
            raise _error(f"Can't {verb} {dest_ref.label()} from {src_ref.label()}.")

    return apply


def _swap(u: Update, local_state: ValueMap | None) -> None:
    first_ref, second_ref = _pair(u)
    first = first_ref.get(local_state)
    second = second_ref.get(local_state)
    if first is None or second is None:
        return
    v = first.to_v()
    temp = EmptyValue() if v is None else from_v(v)
    if not first.fold(second, toggle=False, replace=True):
        raise _error(f"Can't set {first_ref.label()} to {second_ref.label()} for swap.")
    if not second.fold(temp, toggle=False, replace=True):
        raise _error(f"Can't set {second_ref.label()} to {first_ref.label()} for swap.")


def _push_left(u: Update, local_state: ValueMap | None) -> None:
    target = u.refs[0].get(local_state) if u.refs else None
    element = _LIST_ELEMENTS.get(type(target))
    if element is not None:
        pushed: list = []
        for ref in u.refs[1:]:
            value = ref.get(local_state)
            if isinstance(value, element):
                pushed.append(value.val)
            elif isinstance(value, type(target)):
                pushed.extend(value.val)
            else:
                break
        else:
            target.val = pushed + target.val
            return
    raise _error(
        "PushLeft must have at least one argument, which must be a List-type Value. "
        "All subsequent arguments must be of compatible types with the initial List."
    )


def _pop_left(u: Update, local_state: ValueMap | None) -> None:
    target = u.refs[0].get(local_state) if len(u.refs) == 1 else None
    if type(target) not in _LIST_ELEMENTS:
        raise _error("PopLeft must have a single List-type Value argument.")
    target.val = target.val[1:]


def _concat(u: Update, local_state: ValueMap | None) -> None:
    values: list[StringValue] = []
    for ref in u.refs:
        value = ref.get(local_state)
        if not isinstance(value, StringValue):
            labels = ", ".join(r.label() for r in u.refs)
            raise _error(f"Can't concatenate {labels}.")
        values.append(value)
    if values:
        values[0].val = "".join(v.val for v in values)


def _do(u: Update, local_state: ValueMap | None) -> None:
    for child in u.updates:
        child.update(local_state)


def _if(u: Update, local_state: ValueMap | None) -> None:
    if u.predicate is None or not u.updates:
        raise _error("If must have a predicate and a then-update.")
    if u.predicate.snapshot(local_state):
        u.updates[0].update(local_state)
    elif len(u.updates) > 1:
        u.updates[1].update(local_state)


def _run_case(u: Update, local_state: ValueMap | None) -> bool:
    if u.predicate is None:
        raise _error("Case must have a predicate.")
    matched = u.predicate.snapshot(local_state)
    if matched:
        for child in u.updates:
            child.update(local_state)
    return matched


def _case(u: Update, local_state: ValueMap | None) -> None:
    _run_case(u, local_state)


def _switch(u: Update, local_state: ValueMap | None) -> None:
    for case in u.updates:
        if not isinstance(case, Update) or case.kind is not UpdateKind.CASE:
            raise _error("Switch children must all be Cases.")
        if _run_case(case, local_state):
            break


def _call(u: Update, local_state: ValueMap | None) -> None:
    if u.fn is None:
        raise _error("Call must have a function.")
    u.fn(local_state)


_APPLY: dict[UpdateKind, Callable[[Update, ValueMap | None], None]] = {
    UpdateKind.CLEAR: _clear,
    UpdateKind.SET: _folder(toggle=False, replace=True, verb="set"),
    UpdateKind.TOGGLE: _folder(toggle=True, replace=False, verb="toggle"),
    UpdateKind.SET_OR_CLEAR: _folder(toggle=True, replace=True, verb="set-or-clear"),
    UpdateKind.EXTEND: _folder(toggle=False, replace=False, verb="extend"),
    UpdateKind.SET_IF_EMPTY: _folder(
        toggle=False, replace=True, verb="set-if-empty", only_if_empty=True
    ),
    UpdateKind.SWAP: _swap,
    UpdateKind.PUSH_LEFT: _push_left,
    UpdateKind.POP_LEFT: _pop_left,
    UpdateKind.CONCAT: _concat,
    UpdateKind.DO: _do,
    UpdateKind.IF: _if,
    UpdateKind.CASE: _case,
    UpdateKind.SWITCH: _switch,
    UpdateKind.CALL: _call,
}


def apply_update(u: Update, local_state: ValueMap | None = None) -> None:
    """Performs u against local_state."""
    _APPLY[u.kind](u, local_state)


# ─── Documentation ───────────────────────────────────────────────────────────


def _label(u: Update, idx: int) -> str:
    return u.refs[idx].label() if len(u.refs) > idx else "?"


def _labels(refs: Sequence[ValueRef]) -> str:
    return ", ".join(ref.label() for ref in refs)


def _document_fold(verb: str) -> Callable[[Update], str]:
    return lambda u: f"{verb} {_label(u, 0)} from {_label(u, 1)}."


_DOCUMENT: dict[UpdateKind, Callable[[Update], str]] = {
    UpdateKind.CLEAR: lambda u: f"clears [{_labels(u.refs)}]",
    UpdateKind.SET: _document_fold("sets"),
    UpdateKind.TOGGLE: _document_fold("toggles"),
    UpdateKind.SET_OR_CLEAR: _document_fold("sets-or-clears"),
    UpdateKind.EXTEND: _document_fold("extends"),
    UpdateKind.SET_IF_EMPTY: lambda u: f"sets {_label(u, 0)}, if empty, from {_label(u, 1)}.",
    UpdateKind.SWAP: lambda u: f"swaps {_label(u, 0)} and {_label(u, 1)}.",
    UpdateKind.PUSH_LEFT: lambda u: f"pushes [{_labels(u.refs[1:])}] on the left of {_label(u, 0)}",
    UpdateKind.POP_LEFT: lambda u: f"pops the leftmost value of {_label(u, 0)}",
    UpdateKind.CONCAT: lambda u: f"concatenates [{_labels(u.refs)}]",
    UpdateKind.DO: lambda u: "does",
    UpdateKind.IF: lambda u: "conditionally updates",
    UpdateKind.CASE: lambda u: "case",
    UpdateKind.SWITCH: lambda u: "switch",
    UpdateKind.CALL: lambda u: u.doc,
}

for _table in (_APPLY, _DOCUMENT):
    _missing = [kind.name for kind in UpdateKind if kind not in _table]
    if _missing:
        raise TypeError(f"unhandled update kinds: {', '.join(_missing)}")
del _table, _missing


class Action(Documenter):
    """A list of Updates run together upon a (target, type) user action."""

    documenter_type = DocumenterType.ACTION

    def __init__(self, target: str, type: str, updates: Sequence) -> None:
        self.target = target
        self.type = type
        self.updates = list(updates)

    def update(self, local_state: ValueMap | None = None) -> None:
        for child in self.updates:
            child.update(local_state)

    @property
    def auto_document(self) -> str:
        return f"Upon '{self.type}' on '{self.target}'"

    @property
    def children(self) -> Sequence[Documenter]:
        return self.updates

    def __repr__(self) -> str:
        return f"Action({self.target!r}, {self.type!r})"
