# opstate/core/actions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, Callable, Dict

from opstate.core.context import OperationContext
from opstate.core.events import Event

Action = Callable[[OperationContext, Event], None]


def assign(**updaters: Callable[[OperationContext, Event], Any]) -> Action:
    """
    Build an action that sets context fields from the current context and event.

    Example:
        assign(data=lambda ctx, event: event.data)
    """

    def _assign(context: OperationContext, event: Event) -> None:
        values = {key: fn(context, event) for key, fn in updaters.items()}
        for key, value in values.items():
            setattr(context, key, value)

    _assign.__name__ = "assign_" + "_".join(sorted(updaters))
    return _assign


def _unset(context: OperationContext, event: Event) -> None:
    return None


def _payload(context: OperationContext, event: Event) -> Any:
    return event.data


# A result replaces any previous error and vice versa, so the two can never be
# set together regardless of which state the completion lands in.
update_data = assign(data=_payload, error=_unset)
update_error = assign(error=_payload, data=_unset)
clear_data = assign(data=_unset)
clear_error = assign(error=_unset)
store_request = assign(req_data=_payload)
clear_request = assign(req_data=_unset)


def noop(context: OperationContext, event: Event) -> None:
    """Placeholder for a side-effect action supplied by the driver of a machine."""


DEFAULT_ACTIONS: Dict[str, Action] = {
    "update_data": update_data,
    "update_error": update_error,
    "clear_data": clear_data,
    "clear_error": clear_error,
    "store_request": store_request,
    "clear_request": clear_request,
}


class _ActionExecutor:
    """
    Internal helper resolving action names and running them in order.
    """

    def __init__(self, implementations: Dict[str, Action]) -> None:
        self._implementations = implementations

    def resolve(self, name: str) -> Action:
        try:
            return self._implementations[name]
        except KeyError:
            raise KeyError(f"No implementation for action '{name}'") from None

    def execute(self, names, context: OperationContext, event: Event) -> None:
        """
        Run the named actions against the context.

        :raises Exception: If any action fails.
        """
        for name in names:
            self.resolve(name)(context, event)
