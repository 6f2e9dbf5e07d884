"""Interactions — a component's registry of Actions, Reactions and Watches.

An interaction has two halves. In an action, a user event such as a click
updates one or more Values. In a reaction, a change to Values produces an
effect such as a highlight or a data refetch. Actions and Reactions are
keyed by target ('row', 'node') and type ('click', 'highlight'); Watches
are keyed by type alone.

A component receives its Interactions at configuration time, checks them
against what it supports, then calls update() on user events and
subscribes to match() and watch() for the rest of its life.

    interactions = (
        Interactions()
        .with_action(Action("row", "click", [Update.set(selected, LocalValue("id"))]))
        .with_reaction(Reaction("row", "highlight", Predicate.equals(selected, LocalValue("id"))))
    )
    interactions.update("row", "click", row_values)
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Mapping, Sequence

from traceviz.action import Action
from traceviz.documentation import Documenter, DocumenterType
from traceviz.errors import ConfigurationError, Severity
from traceviz.reaction import MatchFn, Reaction
from traceviz.stream import Stream, empty, merge
from traceviz.value_map import ValueMap
from traceviz.watch import Watch

SOURCE = "interactions"

logger = logging.getLogger("traceviz.interactions")


def _empty_match(local_state: ValueMap | None = None) -> Stream[bool]:
    return empty()


def _supported_lookup(targets_and_types: Iterable[tuple[str, str]]) -> dict[str, set[str]]:
    lookup: dict[str, set[str]] = {}
    for target, type in targets_and_types:
        lookup.setdefault(target, set()).add(type)
    return lookup


class Interactions(Documenter):
    """Actions and Reactions by target and type, and Watches by type."""

    documenter_type = DocumenterType.INTERACTIONS

    def __init__(self) -> None:
        self._actions: dict[str, dict[str, Action]] = {}
        self._reactions: dict[str, dict[str, Reaction]] = {}
        self._watches: dict[str, Watch] = {}

    # --- Building ---

    def with_action(self, action: Action) -> Interactions:
        self._actions.setdefault(action.target, {})[action.type] = action
        logger.debug("added action %r on %r", action.type, action.target)
        return self

    def with_reaction(self, reaction: Reaction) -> Interactions:
        self._reactions.setdefault(reaction.target, {})[reaction.type] = reaction
        logger.debug("added reaction %r on %r", reaction.type, reaction.target)
        return self

    def with_watch(self, watch: Watch) -> Interactions:
        self._watches[watch.type] = watch
        logger.debug("added watch %r", watch.type)
        return self

    # --- Use ---

    def update(self, target: str, type: str, local_state: ValueMap | None = None) -> None:
        """Runs the Action for (target, type), if there is one."""
        action = self._actions.get(target, {}).get(type)
        if action is None:
            logger.debug("no action %r on %r", type, target)
            return
        action.update(local_state)

    def match(self, target: str, type: str) -> MatchFn:
        """The MatchFn of the Reaction for (target, type).

        With no such Reaction, the returned signals never emit.
        """
        reaction = self._reactions.get(target, {}).get(type)
        if reaction is None:
            return _empty_match
        return reaction.match()

    def watch(
        self,
        type: str,
        callback: Callable[[ValueMap], None],
        unsubscribe: Stream[object],
    ) -> Stream[Exception]:
        """Runs the Watch of the given type until unsubscribe emits.

        Returns the Watch's error channel, or an empty stream if no Watch
        of that type is registered.
        """
        watch = self._watches.get(type)
        if watch is None:
            return empty()
        return watch.watch(callback, unsubscribe)

    def watch_all(
        self,
        callbacks: Mapping[str, Callable[[ValueMap], None]],
        unsubscribe: Stream[object],
    ) -> Stream[Exception]:
        """Sets up several watches at once; returns their merged error channels."""
        channels = [
            self._watches[type].watch(callback, unsubscribe)
            for type, callback in callbacks.items()
            if type in self._watches
        ]
        return merge(*channels).take_until(unsubscribe)

    # --- Validation ---

    def check_for_supported_actions(self, supported: Iterable[tuple[str, str]]) -> None:
        """Raises ConfigurationError if any Action is outside supported."""
        self._check_targets_and_types("Action", self._actions, supported)

    def check_for_supported_reactions(self, supported: Iterable[tuple[str, str]]) -> None:
        """Raises ConfigurationError if any Reaction is outside supported."""
        self._check_targets_and_types("Reaction", self._reactions, supported)

    def check_for_supported_watches(self, supported: Iterable[str]) -> None:
        """Raises ConfigurationError if any Watch type is outside supported."""
        supported = set(supported)
        for type in self._watches:
            if type not in supported:
                raise ConfigurationError(f"Watch type '{type}' is not supported.").from_(
                    SOURCE
                ).at(Severity.ERROR)

    @staticmethod
    def _check_targets_and_types(
        kind: str, registered: dict[str, dict], supported: Iterable[tuple[str, str]]
    ) -> None:
        lookup = _supported_lookup(supported)
        for target, by_type in registered.items():
            if target not in lookup:
                raise ConfigurationError(f"{kind} target '{target}' is not supported").from_(
                    SOURCE
                ).at(Severity.ERROR)
            for type in by_type:
                if type not in lookup[target]:
                    raise ConfigurationError(
                        f"{kind} type '{type}' on target '{target}' is not supported."
                    ).from_(SOURCE).at(Severity.ERROR)

    # --- Documentation ---

    @property
    def auto_document(self) -> str:
        return "Interactions"

    @property
    def children(self) -> Sequence[Documenter]:
        actions = [a for by_type in self._actions.values() for a in by_type.values()]
        reactions = [r for by_type in self._reactions.values() for r in by_type.values()]
        return [*actions, *reactions, *self._watches.values()]
