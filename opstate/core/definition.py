# opstate/core/definition.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""Immutable, introspectable machine definitions."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Callable, Dict, Iterator, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from opstate.core.actions import DEFAULT_ACTIONS, Action
from opstate.core.context import OperationContext
from opstate.core.errors import StateNotFoundError
from opstate.core.events import done_event_name, error_event_name
from opstate.core.states import CompositeState, State
from opstate.core.transitions import Transition
from opstate.core.validations import Validator

Service = Callable[..., object]


@dataclass(frozen=True, eq=False)
class _Node:
    """Internal record placing a state node in the hierarchy."""

    state: State
    path: str
    parent: Optional[str]
    depth: int


class TransitionRow(NamedTuple):
    """One flattened entry of the transition table, for introspection."""

    source: str
    event: str
    target: Optional[str]
    actions: Tuple[str, ...]


class MachineDefinition:
    """
    Describes the states, the transitions and the actions bound to each of them.
    A definition is built once and shared read-only by every machine instance
    created from it.
    """

    def __init__(
        self,
        states: Sequence[State],
        initial: Optional[str] = None,
        id: Optional[str] = None,
        actions: Optional[Mapping[str, Action]] = None,
        services: Optional[Mapping[str, Service]] = None,
        context_factory: Optional[Callable[[], object]] = None,
    ) -> None:
        """
        :param states: Top-level states of the machine.
        :param initial: Name of the initial top-level state, the first one by default.
        :param id: Label used only for diagnostics.
        :param actions: Named action implementations, merged over the built-in set.
        :param services: Default service implementations for invoking states.
        :param context_factory: Builds a fresh context for every new instance.
        """
        self._id = id
        self._roots: Tuple[State, ...] = tuple(states)
        self._initial = initial or (self._roots[0].name if self._roots else "")
        merged = dict(DEFAULT_ACTIONS)
        merged.update(actions or {})
        self._actions = MappingProxyType(merged)
        self._services = MappingProxyType(dict(services or {}))
        self._context_factory = context_factory or OperationContext
        self._nodes: Dict[str, _Node] = {}
        for state in self._roots:
            self._index(state, None, 0)

        Validator().validate_definition(self)

    def _index(self, state: State, parent: Optional[str], depth: int) -> None:
        path = state.name if parent is None else f"{parent}.{state.name}"
        self._nodes[path] = _Node(state=state, path=path, parent=parent, depth=depth)
        for child in state.children:
            self._index(child, path, depth + 1)

    @property
    def id(self) -> Optional[str]:
        return self._id

    @property
    def initial(self) -> str:
        return self._initial

    @property
    def actions(self) -> Mapping[str, Action]:
        return self._actions

    @property
    def services(self) -> Mapping[str, Service]:
        return self._services

    def create_context(self):
        """Return a fresh context record for a new instance."""
        return self._context_factory()

    def states(self) -> List[str]:
        """All state paths, parents before children, in declaration order."""
        return list(self._nodes)

    def get_state(self, path: str) -> State:
        try:
            return self._nodes[path].state
        except KeyError:
            raise StateNotFoundError(f"State '{path}' is not defined") from None

    def has_state(self, path: str) -> bool:
        return path in self._nodes

    def get_parent(self, path: str) -> Optional[str]:
        self.get_state(path)
        return self._nodes[path].parent

    def get_ancestors(self, path: str) -> List[str]:
        """Ancestor paths from the immediate parent up to the root."""
        ancestors = []
        current = self.get_parent(path)
        while current is not None:
            ancestors.append(current)
            current = self._nodes[current].parent
        return ancestors

    def resolve_leaf(self, path: str) -> str:
        """Follow initial children down to the leaf entered for ``path``."""
        state = self.get_state(path)
        while isinstance(state, CompositeState):
            path = f"{path}.{state.initial}"
            state = self.get_state(path)
        return path

    def transitions_for(self, path: str, event_name: str) -> Tuple[Transition, ...]:
        """
        Transitions handling ``event_name`` declared directly on ``path``,
        including those produced by the state's invocation.
        """
        state = self.get_state(path)
        found = state.on.get(event_name, ())
        invoke = state.invoke
        if invoke is not None:
            if event_name == done_event_name(invoke.id):
                found = found + invoke.on_done
            elif event_name == error_event_name(invoke.id):
                found = found + invoke.on_error
        return found

    def events(self) -> List[str]:
        """Every event name the definition reacts to."""
        seen: Dict[str, None] = {}
        for row in self.transitions():
            seen.setdefault(row.event, None)
        return list(seen)

    def transitions(self) -> Iterator[TransitionRow]:
        """Flatten the whole table: one row per (source, event, transition)."""
        for path, node in self._nodes.items():
            state = node.state
            for event, candidates in state.on.items():
                for t in candidates:
                    yield TransitionRow(path, event, t.target, t.actions)
            if state.invoke is not None:
                for t in state.invoke.on_done:
                    yield TransitionRow(path, done_event_name(state.invoke.id), t.target, t.actions)
                for t in state.invoke.on_error:
                    yield TransitionRow(path, error_event_name(state.invoke.id), t.target, t.actions)

    def __repr__(self) -> str:
        return f"MachineDefinition(id={self._id!r}, states={self.states()!r})"
