# opstate/machines/base.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, Iterable, Mapping, Optional, TypeVar

from opstate.core.actions import Action
from opstate.core.context import OperationContext
from opstate.core.definition import MachineDefinition, Service
from opstate.core.events import RequestEvent, ResetEvent
from opstate.core.state_machine import MachineSnapshot, StateMachine
from opstate.runtime.invoker import TaskInvoker

C = TypeVar("C", bound=OperationContext)


@dataclass(frozen=True)
class MachineOptions:
    """
    Construction options shared by every machine kind.

    name: diagnostic label only; naming a machine turns on transition logging.
    request_on_loading: only meaningful for the request machine.
    """

    name: Optional[str] = None
    request_on_loading: bool = False


class OperationMachine(Generic[C]):
    """
    The surface every machine kind exposes: activate, reset and pure snapshot
    reads. One instance wraps one asynchronous operation stream and must not be
    shared between unrelated operations.
    """

    def __init__(
        self,
        definition: MachineDefinition,
        options: Optional[MachineOptions] = None,
        actions: Optional[Mapping[str, Action]] = None,
        services: Optional[Mapping[str, Service]] = None,
        hooks: Optional[Iterable[object]] = None,
        invoker: Optional[TaskInvoker] = None,
    ) -> None:
        self._options = options or MachineOptions()
        self._machine: StateMachine[C] = StateMachine(
            definition,
            actions=actions,
            services=services,
            hooks=hooks,
            name=self._options.name,
            invoker=invoker,
        )
        self._machine.start()

    @property
    def name(self) -> Optional[str]:
        return self._options.name

    @property
    def options(self) -> MachineOptions:
        return self._options

    @property
    def definition(self) -> MachineDefinition:
        return self._machine.definition

    @property
    def machine(self) -> StateMachine[C]:
        """The underlying interpreter, for advanced use and raw event sends."""
        return self._machine

    def activate(self, input: Any = None) -> bool:
        """
        Request a new run of the operation. Ignored when the current state does
        not accept a request.

        :return: True if the request started a new activation.
        """
        return self._machine.send(RequestEvent(input))

    def reset(self) -> bool:
        """Return to Idle, clearing result and error. Ignored where not accepted."""
        return self._machine.send(ResetEvent())

    def current_state(self) -> str:
        return self._machine.current_state

    def current_context(self) -> C:
        return self._machine.context

    def snapshot(self) -> MachineSnapshot:
        return self._machine.snapshot()

    def matches(self, state: str) -> bool:
        return self._machine.matches(state)

    @property
    def data(self) -> Any:
        return self._machine.context.data

    @property
    def error(self) -> Optional[BaseException]:
        return self._machine.context.error

    async def settle(self) -> None:
        """Wait until every outstanding activation has reported or been discarded."""
        await self._machine.settle()

    def stop(self) -> None:
        """Cancel outstanding activations and stop accepting events."""
        self._machine.stop()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, state={self.current_state()!r})"


def call_with_input(fn, value: Any = None):
    """Call an operation with its input, or with no argument when there is none."""
    if value is None:
        return fn()
    return fn(value)
