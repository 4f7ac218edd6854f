# hstate/core/errors.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Any, Optional


def _type_name(state_type: Any) -> str:
    return getattr(state_type, "__qualname__", repr(state_type))


class HSMError(Exception):
    """
    Base exception class for errors within the hierarchical state machine library.
    """


class DeclarationError(HSMError):
    """
    Raised when the declared state tree is misused at construction time, for
    example when declaring into a registry that has already been sealed.
    """


class DuplicateStateError(DeclarationError):
    """
    Raised when a state type is declared a second time anywhere in the tree.
    """

    def __init__(self, state_type: type) -> None:
        super().__init__(f"State type '{_type_name(state_type)}' is already declared")
        self.state_type = state_type


class UnknownParentError(DeclarationError):
    """
    Raised when a state type names a parent that has not been declared yet.
    """

    def __init__(self, state_type: type, parent: type) -> None:
        super().__init__(
            f"Parent '{_type_name(parent)}' of state type '{_type_name(state_type)}' must be declared first"
        )
        self.state_type = state_type
        self.parent = parent


class ValidationError(HSMError):
    """
    Raised when a declaration argument is malformed (not a class, not callable).
    """


class InvalidStateError(HSMError):
    """
    Raised when a state value's type was never declared. Fatal when raised by
    ``start``; otherwise local to the event that produced the value.
    """

    def __init__(self, state: Any, message: Optional[str] = None) -> None:
        super().__init__(message or f"State type '{_type_name(type(state))}' is not declared (value: {state!r})")
        self.state = state


class RuleEvaluationError(HSMError):
    """
    Raised when a transition rule body fails. The current state is left unchanged.
    """

    def __init__(self, event: Any, state: Any, transition: Any) -> None:
        super().__init__(f"Rule {transition!r} failed for event {event!r} in state {state!r}")
        self.event = event
        self.state = state
        self.transition = transition


class EventProcessingError(HSMError):
    """
    Raised when processing an event fails outside a rule body, e.g. when
    comparing the resolved state with the current one raises. The current
    state is left unchanged if the failure happened before the commit.
    """

    def __init__(self, event: Any, state: Any) -> None:
        super().__init__(f"Processing {event!r} failed in state {state!r}")
        self.event = event
        self.state = state


class HookError(HSMError):
    """
    Raised (and reported, never thrown into the event flow) when a lifecycle
    hook fails.
    """

    def __init__(self, hook: Any) -> None:
        super().__init__(f"{hook.kind.value} hook {hook!r} failed")
        self.hook = hook

    @property
    def kind(self):
        return self.hook.kind

    @property
    def state_type(self) -> type:
        return self.hook.owner


class ObserverError(HSMError):
    """
    Reported when a state listener raises while a committed state is published.
    """

    def __init__(self, listener: Any, state: Any) -> None:
        super().__init__(f"Listener {listener!r} failed while publishing {state!r}")
        self.listener = listener
        self.state = state


class MachineStateError(HSMError):
    """
    Raised when the machine is used outside its lifecycle, e.g. submitting
    events before ``start`` or after ``stop``.
    """
