"""opstate: finite state machines around a single asynchronous operation

Each machine wraps one read, write or generic request and exposes exactly one
of idle, pending, succeeded and failed at a time. Results are stored in a
context record that never holds a result and an error together.

Machines:
    - FetchMachine: blocking read, ignores requests while pending
    - PostMachine: write, restarts on repeated requests, last completion wins
    - RequestMachine: request with a staleness guard, latest issuance wins

The definitions behind them are immutable tables that can be listed and
audited through MachineDefinition.
"""

from .core.context import OperationContext, PostContext, RequestContext
from .core.definition import MachineDefinition
from .core.errors import OpStateError, StateNotFoundError, TransitionError, ValidationError
from .core.events import Event
from .core.state_machine import MachineSnapshot, StateMachine
from .machines.base import MachineOptions, OperationMachine
from .machines.fetch import FetchMachine, fetch_machine_definition
from .machines.post import PostMachine, post_machine_definition
from .machines.request import RequestMachine, request_machine_definition

__version__ = "0.1.0"

__all__ = [
    "Event",
    "FetchMachine",
    "MachineDefinition",
    "MachineOptions",
    "MachineSnapshot",
    "OpStateError",
    "OperationContext",
    "OperationMachine",
    "PostContext",
    "PostMachine",
    "RequestContext",
    "RequestMachine",
    "StateMachine",
    "StateNotFoundError",
    "TransitionError",
    "ValidationError",
    "fetch_machine_definition",
    "post_machine_definition",
    "request_machine_definition",
]
