# opstate/machines/fetch.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""Read machine: a blocking fetch that ignores new requests while one is pending."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

from opstate.core.context import OperationContext
from opstate.core.definition import MachineDefinition
from opstate.core.events import REQUEST, RESET, done_event_name, error_event_name
from opstate.core.states import CompositeState, Invoke, State
from opstate.core.transitions import Transition
from opstate.machines.base import MachineOptions, OperationMachine, call_with_input
from opstate.runtime.invoker import TaskInvoker

T = TypeVar("T")

FETCH_SERVICE = "fetch_data"

IDLE = "Idle"
PENDING = "Pending"
FINISHED = "Finished"
SUCCEEDED = "Finished.Succeeded"
FAILED = "Finished.Failed"

STATE_TYPES = (IDLE, PENDING, FINISHED, SUCCEEDED, FAILED)


@lru_cache(maxsize=16)
def fetch_machine_definition(id: Optional[str] = None) -> MachineDefinition:
    """
    Idle --REQUEST--> Pending --done--> Finished.Succeeded
                              --error--> Finished.Failed
    Finished --REQUEST--> Pending, Finished --RESET--> Idle.

    Completion signals are ordinary events: Finished handles them as well, so
    a late completion overwrites the previous outcome. Idle does not.
    """
    on_done = Transition(SUCCEEDED, actions="update_data")
    on_error = Transition(FAILED, actions="update_error")
    return MachineDefinition(
        id=id,
        initial=IDLE,
        context_factory=OperationContext,
        states=[
            State(IDLE, entry=["clear_error", "clear_data"], on={REQUEST: PENDING}),
            State(
                PENDING,
                entry=["clear_error", "clear_data"],
                invoke=Invoke(FETCH_SERVICE, on_done=on_done, on_error=on_error),
            ),
            CompositeState(
                FINISHED,
                on={
                    REQUEST: PENDING,
                    RESET: IDLE,
                    done_event_name(FETCH_SERVICE): on_done,
                    error_event_name(FETCH_SERVICE): on_error,
                },
                states=[
                    State("Succeeded"),
                    State("Failed", exit="clear_error"),
                ],
            ),
        ],
    )


class FetchMachine(OperationMachine[OperationContext[T]]):
    """
    Wraps a read. ``fetch_fn`` is called with the input given to ``activate``
    (or with no argument) each time the machine enters Pending.
    """

    def __init__(
        self,
        fetch_fn: Callable[..., Awaitable[T]],
        name: Optional[str] = None,
        hooks: Optional[Iterable[object]] = None,
        invoker: Optional[TaskInvoker] = None,
    ) -> None:
        self._fetch_fn = fetch_fn
        super().__init__(
            fetch_machine_definition(),
            MachineOptions(name=name),
            services={FETCH_SERVICE: self._fetch},
            hooks=hooks,
            invoker=invoker,
        )

    def _fetch(self, context: OperationContext, event: Any):
        return call_with_input(self._fetch_fn, event.data)
