"""
Core package: declarative machine definitions and the interpreter that runs them.

- states, transitions and definition describe a machine as a static table
- actions and context hold the context-mutation rules
- state_machine processes events one at a time against that table
"""

from .actions import assign
from .context import OperationContext, PostContext, RequestContext
from .definition import MachineDefinition, TransitionRow
from .errors import OpStateError, StateNotFoundError, TransitionError, ValidationError
from .events import Event
from .hooks import HookManager, HookProtocol, LoggingHook
from .state_machine import MachineSnapshot, StateMachine
from .states import CompositeState, Invoke, State
from .transitions import Transition

__all__ = [
    "assign",
    "CompositeState",
    "Event",
    "HookManager",
    "HookProtocol",
    "Invoke",
    "LoggingHook",
    "MachineDefinition",
    "MachineSnapshot",
    "OpStateError",
    "OperationContext",
    "PostContext",
    "RequestContext",
    "State",
    "StateMachine",
    "StateNotFoundError",
    "Transition",
    "TransitionError",
    "TransitionRow",
    "ValidationError",
]
