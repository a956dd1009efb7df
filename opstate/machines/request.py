# opstate/machines/request.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""
Generalized request machine.

The transition table has no notion of time, so out-of-order completions are
handled by the driver: every activation gets a token from a logical clock and
its result is only delivered to the machine if the StalenessGuard accepts the
token. Results of superseded activations are dropped without touching the
context; the underlying calls are not cancelled.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, Iterable, Optional, TypeVar

from opstate.core.actions import noop
from opstate.core.context import RequestContext
from opstate.core.definition import MachineDefinition
from opstate.core.events import FAIL, REQUEST, RESET, SUCCESS, Event, FailEvent, SuccessEvent
from opstate.core.states import State
from opstate.core.transitions import Transition, TransitionLike
from opstate.machines.base import MachineOptions, OperationMachine, call_with_input
from opstate.runtime.invoker import TaskInvoker
from opstate.runtime.staleness import StalenessGuard

logger = logging.getLogger(__name__)

T = TypeVar("T")

IDLE = "Idle"
PENDING = "Pending"
SUCCESS_STATE = "Success"
FAIL_STATE = "Fail"

STATE_TYPES = (IDLE, PENDING, SUCCESS_STATE, FAIL_STATE)


@lru_cache(maxsize=16)
def request_machine_definition(request_on_loading: bool = False, id: Optional[str] = None) -> MachineDefinition:
    """
    Flat table: REQUEST always leads to Pending (also from Pending itself),
    RESET leads back to Idle from every other state.

    With ``request_on_loading`` the terminal states also accept SUCCESS and
    FAIL, so overlapping activations can each report. Without it, a completion
    arriving in Success or Fail has no handler and is ignored.
    """
    on_success = Transition(SUCCESS_STATE, actions="update_data")
    on_fail = Transition(FAIL_STATE, actions="update_error")
    reset = Transition(IDLE, actions="discard_in_flight")

    finished_on: Dict[str, TransitionLike] = {REQUEST: PENDING, RESET: reset}
    if request_on_loading:
        finished_on.update({SUCCESS: on_success, FAIL: on_fail})

    return MachineDefinition(
        id=id,
        initial=IDLE,
        context_factory=RequestContext,
        actions={"load_data": noop, "discard_in_flight": noop},
        states=[
            State(IDLE, entry=["clear_error", "clear_data"], on={REQUEST: PENDING}),
            State(
                PENDING,
                entry=["clear_error", "clear_data", "load_data"],
                on={REQUEST: PENDING, SUCCESS: on_success, FAIL: on_fail, RESET: reset},
            ),
            State(SUCCESS_STATE, exit=["clear_data", "clear_error"], on=finished_on),
            State(FAIL_STATE, exit=["clear_data", "clear_error"], on=finished_on),
        ],
    )


class RequestMachine(OperationMachine[RequestContext[T]]):
    """
    Wraps a request whose latest issuance always wins. Any number of
    activations may overlap; the context converges to the result of the one
    issued last, whatever order they complete in.
    """

    def __init__(
        self,
        request_fn: Callable[..., Awaitable[T]],
        name: Optional[str] = None,
        request_on_loading: bool = False,
        hooks: Optional[Iterable[object]] = None,
        invoker: Optional[TaskInvoker] = None,
    ) -> None:
        """
        :param request_fn: The operation; receives the input given to ``activate``.
        :param name: Diagnostic label.
        :param request_on_loading: Let every overlapping activation report
                                   unless a newer one already has.
        """
        self._request_fn = request_fn
        self._guard = StalenessGuard(request_on_loading)
        self._invoker = invoker or TaskInvoker()
        super().__init__(
            request_machine_definition(request_on_loading),
            MachineOptions(name=name, request_on_loading=request_on_loading),
            actions={"load_data": self._load_data, "discard_in_flight": self._discard_in_flight},
            hooks=hooks,
            invoker=self._invoker,
        )

    @property
    def guard(self) -> StalenessGuard:
        return self._guard

    def _load_data(self, context: RequestContext, event: Event) -> None:
        token = self._guard.mint()
        context.last_request_token = token
        self.machine.after_commit(lambda: self._start(token, event.data))

    def _start(self, token: int, input: Any) -> None:
        self._guard.begin(token)
        self._invoker.spawn(
            call_with_input,
            (self._request_fn, input),
            on_done=lambda value: self._deliver(token, SuccessEvent(value)),
            on_error=lambda error: self._deliver(token, FailEvent(error)),
        )

    def _discard_in_flight(self, context: RequestContext, event: Event) -> None:
        self.machine.after_commit(self._guard.invalidate)

    def _deliver(self, token: int, event: Event) -> None:
        if not self._guard.accept(token):
            logger.debug(
                "[%s] discarding %s of activation %d, latest is %d",
                self.name,
                event.name,
                token,
                self._guard.latest,
            )
            return
        self.machine.send(event)
