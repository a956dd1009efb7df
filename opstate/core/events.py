# opstate/core/events.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, Dict, Optional

REQUEST = "REQUEST"
RESET = "RESET"
SUCCESS = "SUCCESS"
FAIL = "FAIL"

DONE_PREFIX = "done.invoke."
ERROR_PREFIX = "error.platform."


def done_event_name(invoke_id: str) -> str:
    """Name of the event delivered when the invocation ``invoke_id`` resolves."""
    return f"{DONE_PREFIX}{invoke_id}"


def error_event_name(invoke_id: str) -> str:
    """Name of the event delivered when the invocation ``invoke_id`` fails."""
    return f"{ERROR_PREFIX}{invoke_id}"


class Event:
    """
    Represents a discrete message delivered to a machine instance. Events are
    consumed as soon as they are processed and never stored in the context.
    """

    def __init__(self, name: str, data: Any = None) -> None:
        """
        Create an event identified by a name, optionally carrying a payload.

        :param name: A string identifying this event.
        :param data: The payload; its meaning depends on the event kind.
        """
        self._name = name
        self._data = data
        self._metadata: Dict[str, Any] = {}

    @property
    def name(self) -> str:
        """The name of the event."""
        return self._name

    @property
    def data(self) -> Any:
        """The event payload."""
        return self._data

    @property
    def metadata(self) -> Dict[str, Any]:
        """Optional dictionary of additional event data, used for diagnostics."""
        return self._metadata

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self._name!r}, data={self._data!r})"


class RequestEvent(Event):
    """
    Asks the machine to start a new activation. ``params`` is handed to the
    operation unchanged.
    """

    def __init__(self, params: Any = None) -> None:
        super().__init__(REQUEST, params)

    @property
    def params(self) -> Any:
        return self._data


class ResetEvent(Event):
    """Returns the machine to Idle."""

    def __init__(self) -> None:
        super().__init__(RESET)


class SuccessEvent(Event):
    """Reports the result of an activation to the request machine."""

    def __init__(self, data: Any) -> None:
        super().__init__(SUCCESS, data)


class FailEvent(Event):
    """Reports the failure of an activation to the request machine."""

    def __init__(self, error: BaseException) -> None:
        super().__init__(FAIL, error)

    @property
    def error(self) -> BaseException:
        return self._data


class DoneInvokeEvent(Event):
    """
    Delivered by the machine to itself when the invocation started by a state
    resolves with a value.
    """

    def __init__(self, invoke_id: str, data: Any) -> None:
        super().__init__(done_event_name(invoke_id), data)
        self._invoke_id = invoke_id

    @property
    def invoke_id(self) -> str:
        return self._invoke_id


class ErrorInvokeEvent(Event):
    """
    Delivered by the machine to itself when the invocation started by a state
    fails. The error is carried verbatim.
    """

    def __init__(self, invoke_id: str, error: BaseException) -> None:
        super().__init__(error_event_name(invoke_id), error)
        self._invoke_id = invoke_id

    @property
    def invoke_id(self) -> str:
        return self._invoke_id

    @property
    def error(self) -> BaseException:
        return self._data


def as_event(event: Any, data: Optional[Any] = None) -> Event:
    """Accept either an Event or a bare event name."""
    if isinstance(event, Event):
        return event
    if isinstance(event, str):
        return Event(event, data)
    raise TypeError(f"Expected an Event or an event name, got {type(event).__name__}")
