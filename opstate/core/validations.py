# opstate/core/validations.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import TYPE_CHECKING, List

from opstate.core.errors import ValidationError
from opstate.core.states import CompositeState

if TYPE_CHECKING:
    from opstate.core.definition import MachineDefinition


class Validator:
    """
    Performs construction-time validation of machine definitions, ensuring every
    state the table refers to exists and every named action has an implementation.
    """

    def __init__(self) -> None:
        self._rules_engine = _ValidationRulesEngine()

    def validate_definition(self, definition: "MachineDefinition") -> None:
        """
        Check the definition's states and transitions for consistency.

        :param definition: The definition to validate.
        :raises ValidationError: If validation fails.
        """
        errors = self._rules_engine.collect(definition)
        if errors:
            raise ValidationError("\n".join(errors))


class _ValidationRulesEngine:
    """
    Internal engine applying each rule of _DefaultValidationRules and gathering
    all failures so a broken definition is reported in one go.
    """

    def __init__(self) -> None:
        self._rules = (
            _DefaultValidationRules.check_initial,
            _DefaultValidationRules.check_unique_children,
            _DefaultValidationRules.check_targets,
            _DefaultValidationRules.check_actions,
        )

    def collect(self, definition: "MachineDefinition") -> List[str]:
        errors: List[str] = []
        for rule in self._rules:
            errors.extend(rule(definition))
        return errors


class _DefaultValidationRules:
    """
    Built-in rules. Each returns a list of human-readable problems.
    """

    @staticmethod
    def check_initial(definition: "MachineDefinition") -> List[str]:
        if not definition.states():
            return ["Machine definition has no states"]
        errors = []
        if not definition.has_state(definition.initial):
            errors.append(f"Initial state '{definition.initial}' is not a top-level state")
        for path in definition.states():
            state = definition.get_state(path)
            if isinstance(state, CompositeState) and not definition.has_state(f"{path}.{state.initial}"):
                errors.append(f"Composite state '{path}' has unknown initial child '{state.initial}'")
        return errors

    @staticmethod
    def check_unique_children(definition: "MachineDefinition") -> List[str]:
        errors = []
        scopes = [("<root>", definition._roots)]
        for path in definition.states():
            state = definition.get_state(path)
            if state.children:
                scopes.append((path, state.children))
        for scope, children in scopes:
            names = [c.name for c in children]
            duplicates = sorted({n for n in names if names.count(n) > 1})
            for name in duplicates:
                errors.append(f"State name '{name}' is declared more than once in '{scope}'")
        return errors

    @staticmethod
    def check_targets(definition: "MachineDefinition") -> List[str]:
        errors = []
        for row in definition.transitions():
            if row.target is not None and not definition.has_state(row.target):
                errors.append(f"Transition '{row.source}' --{row.event}--> '{row.target}' targets an unknown state")
        return errors

    @staticmethod
    def check_actions(definition: "MachineDefinition") -> List[str]:
        errors = []
        referenced = []
        for path in definition.states():
            state = definition.get_state(path)
            referenced.extend((path, name) for name in state.entry + state.exit)
        for row in definition.transitions():
            referenced.extend((row.source, name) for name in row.actions)
        for path, name in referenced:
            if name not in definition.actions:
                errors.append(f"State '{path}' refers to undefined action '{name}'")
        return errors
