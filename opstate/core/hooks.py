# opstate/core/hooks.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Iterable, List, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from opstate.core.events import Event

logger = logging.getLogger(__name__)


@runtime_checkable
class HookProtocol(Protocol):
    """
    Listener for machine lifecycle events. Every method is optional; the manager
    only calls the ones a hook defines. States are reported by path.
    """

    def on_enter(self, state: str) -> None: ...

    def on_exit(self, state: str) -> None: ...

    def on_transition(self, source: str, target: str, event: "Event") -> None: ...

    def on_error(self, error: Exception) -> None: ...


class HookManager:
    """
    Manages the registration and execution of hooks that listen to state machine
    lifecycle events (on_enter, on_exit, on_transition, on_error). Users can
    attach logging, monitoring, or custom side effects without altering core logic.
    """

    def __init__(self, hooks: Optional[Iterable[object]] = None) -> None:
        self._hooks: List[object] = list(hooks or [])

    @property
    def hooks(self) -> List[object]:
        return list(self._hooks)

    def register_hook(self, hook: object) -> None:
        """
        Add a new hook to the manager's list of hooks.

        :param hook: An object implementing any of the HookProtocol methods.
        """
        self._hooks.append(hook)

    def execute_on_enter(self, state: str) -> None:
        self._invoke("on_enter", state)

    def execute_on_exit(self, state: str) -> None:
        self._invoke("on_exit", state)

    def execute_on_transition(self, source: str, target: str, event: "Event") -> None:
        self._invoke("on_transition", source, target, event)

    def execute_on_error(self, error: Exception) -> None:
        self._invoke("on_error", error)

    def _invoke(self, method: str, *args) -> None:
        for hook in self._hooks:
            fn = getattr(hook, method, None)
            if fn is not None:
                fn(*args)


class LoggingHook:
    """
    Logs every lifecycle event of a machine under its diagnostic label.
    Machines created with a name attach one automatically.
    """

    def __init__(self, name: str, level: int = logging.DEBUG, log: Optional[logging.Logger] = None) -> None:
        self._name = name
        self._level = level
        self._log = log or logger

    def on_enter(self, state: str) -> None:
        self._log.log(self._level, "[%s] enter %s", self._name, state)

    def on_exit(self, state: str) -> None:
        self._log.log(self._level, "[%s] exit %s", self._name, state)

    def on_transition(self, source: str, target: str, event: "Event") -> None:
        self._log.log(self._level, "[%s] %s --%s--> %s", self._name, source, event.name, target)

    def on_error(self, error: Exception) -> None:
        self._log.error("[%s] transition failed: %s", self._name, error)
