# opstate/core/transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Sequence, Tuple, Union

from opstate.core.context import OperationContext
from opstate.core.events import Event

Guard = Callable[[OperationContext, Event], bool]


def _names(actions: Union[None, str, Iterable[str]]) -> Tuple[str, ...]:
    if actions is None:
        return ()
    if isinstance(actions, str):
        return (actions,)
    return tuple(actions)


@dataclass(frozen=True, init=False, eq=False)
class Transition:
    """
    One row of a transition table: where an event leads and which named actions
    mutate the context on the way. A transition without a target runs its
    actions without leaving the current state.
    """

    target: Optional[str]
    actions: Tuple[str, ...]
    guards: Tuple[Guard, ...]
    priority: int

    def __init__(
        self,
        target: Optional[str] = None,
        actions: Union[None, str, Sequence[str]] = None,
        guards: Optional[Sequence[Guard]] = None,
        priority: int = 0,
    ) -> None:
        """
        :param target: Path of the destination state, relative to the machine root.
        :param actions: Names of actions executed when the transition is taken.
        :param guards: Conditions over (context, event) that must all hold.
        :param priority: Higher priority transitions are evaluated first.
        """
        object.__setattr__(self, "target", target)
        object.__setattr__(self, "actions", _names(actions))
        object.__setattr__(self, "guards", tuple(guards or ()))
        object.__setattr__(self, "priority", priority)

    def evaluate_guards(self, context: OperationContext, event: Event) -> bool:
        """
        Evaluate the attached guards to determine if the transition can occur.
        """
        return _GuardEvaluator().evaluate(self.guards, context, event)

    def get_priority(self) -> int:
        return self.priority


TransitionLike = Union[str, Transition, Sequence[Transition]]


def as_transitions(value: TransitionLike) -> Tuple[Transition, ...]:
    """Normalise the shorthand forms accepted in state definitions."""
    if isinstance(value, str):
        return (Transition(value),)
    if isinstance(value, Transition):
        return (value,)
    return tuple(value)


class _TransitionPrioritySorter:
    """
    Internal utility ordering candidate transitions by priority, highest first.
    Declaration order is kept among equal priorities.
    """

    def sort(self, transitions: Iterable[Transition]) -> List[Transition]:
        return sorted(transitions, key=lambda t: t.get_priority(), reverse=True)


class _GuardEvaluator:
    """
    Internal helper to evaluate a list of guard conditions against an event.
    """

    def evaluate(self, guards: Iterable[Guard], context: OperationContext, event: Event) -> bool:
        for g in guards:
            if not g(context, event):
                return False
        return True
