# opstate/core/state_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from collections import deque
from typing import Any, Callable, Deque, Dict, Generic, Iterable, List, Mapping, NamedTuple, Optional, Tuple, TypeVar

from opstate.core.actions import Action, _ActionExecutor
from opstate.core.context import OperationContext
from opstate.core.definition import MachineDefinition, Service
from opstate.core.errors import TransitionError, ValidationError
from opstate.core.events import DoneInvokeEvent, ErrorInvokeEvent, Event, as_event
from opstate.core.hooks import HookManager, LoggingHook
from opstate.core.states import Invoke
from opstate.core.transitions import Transition, _TransitionPrioritySorter
from opstate.runtime.invoker import TaskInvoker

logger = logging.getLogger(__name__)

C = TypeVar("C", bound=OperationContext)

INIT_EVENT = "opstate.init"


class MachineSnapshot(NamedTuple):
    """A consistent read of the state path and a copy of the context."""

    value: str
    context: OperationContext


class StateMachine(Generic[C]):
    """
    A live instance of a machine definition. It owns the current state path and
    the context, processes one event at a time and starts the services declared
    by the states it enters.

    Events sent while another event is being processed (by an action, or by a
    service that completes synchronously) are queued and processed afterwards in
    delivery order. Each event is processed atomically: if an action fails, the
    state and the context are restored, effects deferred with ``after_commit``
    are dropped, and a TransitionError is raised.
    """

    def __init__(
        self,
        definition: MachineDefinition,
        context: Optional[C] = None,
        actions: Optional[Mapping[str, Action]] = None,
        services: Optional[Mapping[str, Service]] = None,
        hooks: Optional[Iterable[object]] = None,
        name: Optional[str] = None,
        invoker: Optional[TaskInvoker] = None,
    ) -> None:
        """
        :param definition: The shared, immutable machine definition.
        :param context: Initial context; a fresh one from the definition by default.
        :param actions: Per-instance action implementations overriding the definition's.
        :param services: Per-instance service implementations overriding the definition's.
        :param hooks: Objects implementing any of the HookProtocol methods.
        :param name: Diagnostic label. Naming a machine attaches a LoggingHook.
        :param invoker: Runs services; a TaskInvoker on the running loop by default.
        """
        self._definition = definition
        merged_actions: Dict[str, Action] = dict(definition.actions)
        merged_actions.update(actions or {})
        self._actions = _ActionExecutor(merged_actions)
        self._services: Dict[str, Service] = dict(definition.services)
        self._services.update(services or {})
        self._check_services()

        self._name = name if name is not None else definition.id
        self._hooks = HookManager(hooks)
        if name:
            self._hooks.register_hook(LoggingHook(name))

        self._context: C = context if context is not None else definition.create_context()
        self._invoker = invoker or TaskInvoker()
        self._sorter = _TransitionPrioritySorter()
        self._queue: Deque[Event] = deque()
        self._deferred: List[Callable[[], None]] = []
        self._processing = False
        self._current: Optional[str] = None
        self._started = False

    def _check_services(self) -> None:
        missing = []
        for path in self._definition.states():
            invoke = self._definition.get_state(path).invoke
            if invoke is not None and invoke.src not in self._services:
                missing.append(f"State '{path}' invokes undefined service '{invoke.src}'")
        if missing:
            raise ValidationError("\n".join(missing))

    @property
    def name(self) -> Optional[str]:
        return self._name

    @property
    def definition(self) -> MachineDefinition:
        return self._definition

    @property
    def started(self) -> bool:
        return self._started

    @property
    def invoker(self) -> TaskInvoker:
        return self._invoker

    @property
    def current_state(self) -> Optional[str]:
        """Path of the active leaf state, or None before start."""
        return self._current

    @property
    def context(self) -> C:
        """A copy of the context; mutating it does not affect the machine."""
        return self._context.copy()

    def snapshot(self) -> MachineSnapshot:
        return MachineSnapshot(self._current, self._context.copy())

    def matches(self, state: str) -> bool:
        """
        True if ``state`` is the active leaf or one of its ancestors, so a
        composite name matches all of its children.
        """
        current = self._current
        if current is None:
            return False
        return current == state or current.startswith(state + ".")

    def start(self) -> None:
        """Enter the initial state. Calling start on a started machine does nothing."""
        if self._started:
            return
        self._started = True
        self._processing = True
        try:
            event = Event(INIT_EVENT)
            to_invoke = self._enter(None, self._definition.initial, event)
            self._run_deferred()
            self._start_invocations(to_invoke, event)
            self._drain()
        finally:
            self._deferred.clear()
            self._processing = False

    def stop(self) -> None:
        """
        Stop processing events and cancel outstanding service tasks. The state
        and the context are left as they are.
        """
        self._started = False
        self._queue.clear()
        self._deferred.clear()
        self._invoker.cancel_all()

    async def settle(self) -> None:
        """Wait until every service started by this machine has reported."""
        await self._invoker.join()

    def after_commit(self, effect: Callable[[], None]) -> None:
        """
        Run ``effect`` once the transition being processed has committed, in
        registration order and before the entered states' services start.
        Effects registered by a transition that fails are dropped. Outside of
        a transition the effect runs immediately.

        Actions use this for side effects that must not happen if the
        transition is rolled back.
        """
        if not self._processing:
            effect()
            return
        self._deferred.append(effect)

    def _run_deferred(self) -> None:
        effects, self._deferred = self._deferred, []
        for effect in effects:
            effect()

    def send(self, event: Any, data: Any = None) -> bool:
        """
        Deliver an event. Never raises for an event the current state does not
        handle; such events are ignored.

        :param event: An Event, or an event name combined with ``data``.
        :return: True if the event was processed now and caused a transition.
                 False if it was ignored, or queued behind the event currently
                 being processed.
        :raises TransitionError: If an action failed. Events queued behind the
                 failed one stay queued until the next send.
        """
        event = as_event(event, data)
        if not self._started:
            logger.debug("[%s] machine not started, dropping %s", self._name, event.name)
            return False

        self._queue.append(event)
        if self._processing:
            return False

        self._processing = True
        try:
            return self._drain(event)
        finally:
            self._processing = False

    def _drain(self, watched: Optional[Event] = None) -> bool:
        handled = False
        while self._queue and self._started:
            event = self._queue.popleft()
            result = self._process(event)
            if event is watched:
                handled = result
        return handled

    def _select(self, event: Event) -> Optional[Tuple[str, Transition]]:
        """Innermost state first; within a state, by priority then declaration order."""
        path: Optional[str] = self._current
        while path is not None:
            candidates = self._definition.transitions_for(path, event.name)
            for transition in self._sorter.sort(candidates):
                if transition.evaluate_guards(self._context, event):
                    return path, transition
            path = self._definition.get_parent(path)
        return None

    def _process(self, event: Event) -> bool:
        selected = self._select(event)
        if selected is None:
            logger.debug("[%s] %s ignored in %s", self._name, event.name, self._current)
            return False

        source, transition = selected
        saved_context = self._context.copy()
        saved_state = self._current
        try:
            to_invoke = self._execute_transition(source, transition, event)
        except Exception as e:
            self._context.restore(saved_context)
            self._current = saved_state
            self._deferred.clear()
            self._hooks.execute_on_error(e)
            raise TransitionError(f"Processing {event.name} in {saved_state} failed: {e}") from e

        logger.debug("[%s] %s --%s--> %s", self._name, saved_state, event.name, self._current)
        self._run_deferred()
        self._start_invocations(to_invoke, event)
        return True

    def _execute_transition(self, source: str, transition: Transition, event: Event) -> List[Tuple[str, Invoke]]:
        previous = self._current
        if transition.target is None:
            self._actions.execute(transition.actions, self._context, event)
            return []

        target = transition.target
        target_ancestors = self._definition.get_ancestors(target)
        domain = None
        for ancestor in self._definition.get_ancestors(source):
            if ancestor in target_ancestors:
                domain = ancestor
                break

        path = self._current
        while path is not None and path != domain:
            state = self._definition.get_state(path)
            self._actions.execute(state.exit, self._context, event)
            self._hooks.execute_on_exit(path)
            path = self._definition.get_parent(path)

        self._actions.execute(transition.actions, self._context, event)

        to_invoke = self._enter(domain, target, event)
        self._hooks.execute_on_transition(previous, self._current, event)
        return to_invoke

    def _enter(self, domain: Optional[str], target: str, event: Event) -> List[Tuple[str, Invoke]]:
        """Enter from just below ``domain`` down to the leaf resolved for ``target``."""
        chain = [target] + self._definition.get_ancestors(target)
        if domain is not None:
            chain = chain[: chain.index(domain)]
        chain.reverse()

        leaf = self._definition.resolve_leaf(target)
        below = leaf[len(target) :].strip(".")
        path = target
        for part in below.split(".") if below else []:
            path = f"{path}.{part}"
            chain.append(path)

        to_invoke: List[Tuple[str, Invoke]] = []
        for path in chain:
            state = self._definition.get_state(path)
            self._current = path
            self._actions.execute(state.entry, self._context, event)
            self._hooks.execute_on_enter(path)
            if state.invoke is not None:
                to_invoke.append((path, state.invoke))
        return to_invoke

    def _start_invocations(self, to_invoke: List[Tuple[str, Invoke]], event: Event) -> None:
        for path, invoke in to_invoke:
            service = self._services[invoke.src]
            logger.debug("[%s] %s invokes %s", self._name, path, invoke.src)
            self._invoker.spawn(
                service,
                (self._context.copy(), event),
                on_done=lambda value, i=invoke.id: self.send(DoneInvokeEvent(i, value)),
                on_error=lambda error, i=invoke.id: self.send(ErrorInvokeEvent(i, error)),
            )

    def __repr__(self) -> str:
        return f"StateMachine(name={self._name!r}, state={self._current!r})"
