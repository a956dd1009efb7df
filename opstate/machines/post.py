# opstate/machines/post.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""Write machine: like the read machine, but retains the payload and restarts on repeated requests."""

from __future__ import annotations

from functools import lru_cache
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

from opstate.core.context import PostContext
from opstate.core.definition import MachineDefinition
from opstate.core.events import REQUEST, RESET, done_event_name, error_event_name
from opstate.core.states import CompositeState, Invoke, State
from opstate.core.transitions import Transition
from opstate.machines.base import MachineOptions, OperationMachine
from opstate.runtime.invoker import TaskInvoker

ReqT = TypeVar("ReqT")
RespT = TypeVar("RespT")

POST_SERVICE = "post_data"

IDLE = "Idle"
PENDING = "Pending"
FINISHED = "Finished"
SUCCEEDED = "Finished.Succeeded"
FAILED = "Finished.Failed"

STATE_TYPES = (IDLE, PENDING, FINISHED, SUCCEEDED, FAILED)


@lru_cache(maxsize=16)
def post_machine_definition(id: Optional[str] = None) -> MachineDefinition:
    """
    Same shape as the read machine, except that REQUEST stores its payload in
    ``req_data`` and Pending accepts REQUEST as a self-transition. Each
    re-entry starts another call without waiting for the previous one, and the
    last completion to arrive wins.
    """
    request = Transition(PENDING, actions="store_request")
    on_done = Transition(SUCCEEDED, actions="update_data")
    on_error = Transition(FAILED, actions="update_error")
    return MachineDefinition(
        id=id,
        initial=IDLE,
        context_factory=PostContext,
        states=[
            State(IDLE, entry=["clear_error", "clear_data", "clear_request"], on={REQUEST: request}),
            State(
                PENDING,
                entry=["clear_error", "clear_data"],
                on={REQUEST: request},
                invoke=Invoke(POST_SERVICE, on_done=on_done, on_error=on_error),
            ),
            CompositeState(
                FINISHED,
                on={
                    REQUEST: request,
                    RESET: IDLE,
                    done_event_name(POST_SERVICE): on_done,
                    error_event_name(POST_SERVICE): on_error,
                },
                states=[
                    State("Succeeded"),
                    State("Failed", exit="clear_error"),
                ],
            ),
        ],
    )


class PostMachine(OperationMachine[PostContext[ReqT, RespT]]):
    """
    Wraps a write. ``post_fn`` receives the payload given to ``activate``.
    Callers that need at most one write in flight must debounce themselves.
    """

    def __init__(
        self,
        post_fn: Callable[[ReqT], Awaitable[RespT]],
        name: Optional[str] = None,
        hooks: Optional[Iterable[object]] = None,
        invoker: Optional[TaskInvoker] = None,
    ) -> None:
        self._post_fn = post_fn
        super().__init__(
            post_machine_definition(),
            MachineOptions(name=name),
            services={POST_SERVICE: self._post},
            hooks=hooks,
            invoker=invoker,
        )

    def _post(self, context: PostContext, event: Any):
        return self._post_fn(event.data)

    @property
    def req_data(self) -> Optional[ReqT]:
        return self.machine.context.req_data
