# opstate/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details


class OpStateError(Exception):
    """
    Base exception class for errors raised by the opstate library itself.

    Failures of the wrapped operation are never raised as OpStateError. They are
    stored verbatim in the machine context instead.
    """


class StateNotFoundError(OpStateError):
    """
    Raised when a requested state path does not exist in a machine definition.
    """


class TransitionError(OpStateError):
    """
    Raised when an action bound to a transition fails. The machine is rolled back
    to the state and context it had before the event was processed.
    """


class ValidationError(OpStateError):
    """
    Raised when a machine definition is malformed.
    """
