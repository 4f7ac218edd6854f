# hstate/core/validations.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Any, Callable

from hstate.core.errors import ValidationError
from hstate.core.hooks import HookKind


class Validator:
    """
    Performs construction-time validation of declarations, ensuring state
    types, rules, and hooks are well-formed before they enter the registry.
    """

    def __init__(self) -> None:
        """
        Initialize the validator with the default rule set.
        """
        self._rules_engine = _ValidationRulesEngine()

    def validate_state_type(self, state_type: Any) -> None:
        """
        Check that a state type is a class.

        :param state_type: The declared state type.
        :raises ValidationError: If validation fails.
        """
        self._rules_engine.validate_state_type(state_type)

    def validate_transition(self, event_type: Any, body: Any) -> None:
        """
        Check that a rule matches a class of events and has a callable body.

        :param event_type: The matched event class.
        :param body: The rule body.
        :raises ValidationError: If validation fails.
        """
        self._rules_engine.validate_transition(event_type, body)

    def validate_hook(self, kind: Any, fn: Any) -> None:
        """
        Check that a hook has a known kind and is callable.

        :param kind: The hook kind.
        :param fn: The hook callable.
        :raises ValidationError: If validation fails.
        """
        self._rules_engine.validate_hook(kind, fn)


class _ValidationRulesEngine:
    """
    Internal engine applying the validation rules. Centralizes validation
    logic for easier maintenance.
    """

    def __init__(self) -> None:
        self._default_rules = _DefaultValidationRules

    def validate_state_type(self, state_type: Any) -> None:
        self._default_rules.validate_state_type(state_type)

    def validate_transition(self, event_type: Any, body: Any) -> None:
        self._default_rules.validate_transition(event_type, body)

    def validate_hook(self, kind: Any, fn: Any) -> None:
        self._default_rules.validate_hook(kind, fn)


class _DefaultValidationRules:
    """
    Built-in validation rules.
    """

    @staticmethod
    def validate_state_type(state_type: Any) -> None:
        if not isinstance(state_type, type):
            raise ValidationError(f"State type must be a class, got {state_type!r}.")

    @staticmethod
    def validate_transition(event_type: Any, body: Callable[..., Any]) -> None:
        if not isinstance(event_type, type):
            raise ValidationError(f"Transition event type must be a class, got {event_type!r}.")
        if not callable(body):
            raise ValidationError("Transition body must be callable.")

    @staticmethod
    def validate_hook(kind: Any, fn: Callable[..., Any]) -> None:
        if not isinstance(kind, HookKind):
            raise ValidationError(f"Unknown hook kind {kind!r}.")
        if not callable(fn):
            raise ValidationError(f"{kind.value} hook must be callable.")
