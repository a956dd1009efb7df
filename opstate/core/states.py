# opstate/core/states.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple, Union

from opstate.core.errors import ValidationError
from opstate.core.transitions import Transition, TransitionLike, _names, as_transitions


@dataclass(frozen=True, init=False, eq=False)
class Invoke:
    """
    Declares that entering a state starts an asynchronous service. The service
    is looked up by ``src`` in the machine's service registry. Its outcome comes
    back as a ``done.invoke.<id>`` or ``error.platform.<id>`` event.
    """

    src: str
    id: str
    on_done: Tuple[Transition, ...]
    on_error: Tuple[Transition, ...]

    def __init__(
        self,
        src: str,
        on_done: Optional[TransitionLike] = None,
        on_error: Optional[TransitionLike] = None,
        id: Optional[str] = None,
    ) -> None:
        object.__setattr__(self, "src", src)
        object.__setattr__(self, "id", id or src)
        object.__setattr__(self, "on_done", as_transitions(on_done) if on_done else ())
        object.__setattr__(self, "on_error", as_transitions(on_error) if on_error else ())


@dataclass(frozen=True, init=False, eq=False)
class State:
    """
    A declarative state node. It records entry and exit action names, the
    transitions it handles and an optional invocation. It holds no runtime data;
    the live context belongs to the machine instance.
    """

    name: str
    entry: Tuple[str, ...]
    exit: Tuple[str, ...]
    on: Mapping[str, Tuple[Transition, ...]]
    invoke: Optional[Invoke]

    def __init__(
        self,
        name: str,
        entry: Union[None, str, Sequence[str]] = None,
        exit: Union[None, str, Sequence[str]] = None,
        on: Optional[Mapping[str, TransitionLike]] = None,
        invoke: Optional[Invoke] = None,
    ) -> None:
        """
        :param name: Name identifying this state within its parent scope.
        :param entry: Actions executed upon entering this state.
        :param exit: Actions executed upon exiting this state.
        :param on: Event name to transition(s) handled while in this state.
        :param invoke: Service started every time this state is entered.
        """
        if not name or "." in name:
            raise ValidationError(f"Invalid state name {name!r}")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "entry", _names(entry))
        object.__setattr__(self, "exit", _names(exit))
        table = {event: as_transitions(value) for event, value in (on or {}).items()}
        object.__setattr__(self, "on", MappingProxyType(table))
        object.__setattr__(self, "invoke", invoke)

    @property
    def children(self) -> Tuple["State", ...]:
        return ()

    @property
    def is_composite(self) -> bool:
        return False


@dataclass(frozen=True, init=False, eq=False)
class CompositeState(State):
    """
    A state containing child states. Entering it enters its initial child.
    Transitions declared here apply while any descendant is active.
    """

    states: Tuple[State, ...]
    initial: str

    def __init__(
        self,
        name: str,
        states: Sequence[State],
        initial: Optional[str] = None,
        entry: Union[None, str, Sequence[str]] = None,
        exit: Union[None, str, Sequence[str]] = None,
        on: Optional[Mapping[str, TransitionLike]] = None,
        invoke: Optional[Invoke] = None,
    ) -> None:
        super().__init__(name, entry=entry, exit=exit, on=on, invoke=invoke)
        if not states:
            raise ValidationError(f"Composite state '{name}' has no children")
        object.__setattr__(self, "states", tuple(states))
        object.__setattr__(self, "initial", initial or states[0].name)

    @property
    def children(self) -> Tuple[State, ...]:
        return self.states

    @property
    def is_composite(self) -> bool:
        return True
