# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import asyncio
from typing import Any, List, Tuple
from unittest.mock import MagicMock

import pytest


def pytest_configure(config):
    """Register custom marks."""
    config.addinivalue_line("markers", "property: mark test as a property-based test")
    config.addinivalue_line("markers", "race: mark test as exercising out-of-order completion")


class ControlledOperation:
    """
    An async operation whose calls stay pending until the test resolves them.
    Each call records its input and the future standing in for its result.
    """

    def __init__(self) -> None:
        self.calls: List[Tuple[Any, asyncio.Future]] = []

    def __call__(self, value: Any = None) -> asyncio.Future:
        future = asyncio.get_running_loop().create_future()
        self.calls.append((value, future))
        return future

    @property
    def inputs(self) -> List[Any]:
        return [value for value, _ in self.calls]

    def resolve(self, index: int, result: Any) -> None:
        self.calls[index][1].set_result(result)

    def fail(self, index: int, error: BaseException) -> None:
        self.calls[index][1].set_exception(error)


class NetworkError(Exception):
    """Stand-in for a transport failure raised by an operation."""


class TraceHook:
    """
    Records every lifecycle callback so tests can compare the order of
    exits, entries and transitions against an expected trace.
    """

    def __init__(self) -> None:
        self.trace: List[str] = []
        self.errors: List[Exception] = []

    def on_enter(self, state: str) -> None:
        self.trace.append(f"ENTER:{state}")

    def on_exit(self, state: str) -> None:
        self.trace.append(f"EXIT:{state}")

    def on_transition(self, source, target, event) -> None:
        self.trace.append(f"{source}--{event.name}-->{target}")

    def on_error(self, error: Exception) -> None:
        self.errors.append(error)


async def flush(iterations: int = 5) -> None:
    """Let ready tasks run so resolved operations deliver their outcome."""
    for _ in range(iterations):
        await asyncio.sleep(0)


@pytest.fixture
def operation():
    """A controllable async operation."""
    return ControlledOperation()


@pytest.fixture
def trace_hook():
    return TraceHook()


@pytest.fixture
def dummy_hooks():
    """A list of hook mocks for testing HookManager."""
    hook = MagicMock()
    hook.on_enter = MagicMock()
    hook.on_exit = MagicMock()
    hook.on_transition = MagicMock()
    hook.on_error = MagicMock()
    return [hook]


@pytest.fixture
def error_classes():
    """Provides a tuple of error classes for quick reference."""
    from opstate.core.errors import OpStateError, StateNotFoundError, TransitionError, ValidationError

    return (OpStateError, StateNotFoundError, TransitionError, ValidationError)


@pytest.fixture
def toggle_definition():
    """
    A small hierarchical definition used to exercise the interpreter:
    Off --ON--> On (composite: Low, High), On --OFF--> Off, Low --UP--> High.
    """
    from opstate.core.definition import MachineDefinition
    from opstate.core.states import CompositeState, State
    from opstate.core.transitions import Transition

    return MachineDefinition(
        id="toggle",
        initial="Off",
        states=[
            State("Off", entry="clear_data", on={"ON": "On"}),
            CompositeState(
                "On",
                on={"OFF": "Off"},
                states=[
                    State("Low", on={"UP": Transition("On.High", actions="update_data")}),
                    State("High", exit="clear_data", on={"DOWN": "On.Low"}),
                ],
            ),
        ],
    )
