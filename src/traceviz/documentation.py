"""Self-documentation for interaction entities.

Updates, Predicates, Actions, Reactions, Watches and Interactions all
describe themselves, so a tool can render a help tree of what its
components will do.
"""

from __future__ import annotations

import enum
from typing import Sequence


class DocumenterType(enum.IntEnum):
    """What kind of entity a Documenter describes."""

    UPDATE = 0
    PREDICATE = 1
    WATCH = 2
    ACTION = 3
    REACTION = 4
    INTERACTIONS = 5
    COMPONENT = 6
    TOOL = 7


_TYPE_NAMES = {
    DocumenterType.UPDATE: "Update",
    DocumenterType.PREDICATE: "Predicate",
    DocumenterType.WATCH: "Watch",
    DocumenterType.ACTION: "Action",
    DocumenterType.REACTION: "Reaction",
    DocumenterType.INTERACTIONS: "Interactions",
    DocumenterType.COMPONENT: "Component",
    DocumenterType.TOOL: "Tool",
}


class Documenter:
    """Base for self-documenting types.

    Subclasses set documenter_type and provide auto_document; children
    defaults to none. with_help_text() replaces the generated text and can
    hide the children.
    """

    documenter_type: DocumenterType
    override_document: str = ""
    document_children: bool = True

    @property
    def auto_document(self) -> str:
        raise NotImplementedError

    @property
    def children(self) -> Sequence[Documenter]:
        return []

    def with_help_text(self, help_text: str, document_children: bool = True):
        self.override_document = help_text
        self.document_children = document_children
        return self


def pretty_print(doc: Documenter, indent: str = "") -> list[str]:
    """Deterministic, indented lines describing doc and its children."""
    msg = doc.override_document or doc.auto_document
    lines = [f"{indent}{msg} ({_TYPE_NAMES[doc.documenter_type]})"]
    if doc.document_children:
        for child in doc.children:
            lines.extend(pretty_print(child, indent + "  "))
    return lines
