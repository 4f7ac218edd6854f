# hstate/core/builder.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Any, Callable, Optional

from hstate.config import MachineOptions
from hstate.core.hooks import HookKind
from hstate.core.state_machine import StateMachine
from hstate.core.transitions import RuleBody
from hstate.core.validations import Validator
from hstate.runtime.graph import StateGraph

Configure = Callable[["StateDeclaration"], Any]


class StateDeclaration:
    """
    Configuration scope of one declared state type. Registers transition rules
    and lifecycle hooks on the state type and declares its children.

    ``on``, ``on_enter``, ``on_change`` and ``on_exit`` register and return the
    given callable, so they also work as decorators (with or without a call).

    A declaration is also a context manager returning itself, so a nested tree
    can be written as ``with builder.declare(Parent) as parent:`` blocks.
    Leaving the block does nothing else; declarations stay open until
    ``build()``.
    """

    def __init__(self, graph: StateGraph, state_type: type) -> None:
        self._graph = graph
        self._state_type = state_type

    @property
    def state_type(self) -> type:
        return self._state_type

    def on(self, event_type: type, body: Optional[RuleBody] = None):
        """
        Add a transition rule for events of ``event_type``.

        :param event_type: Event class to match (subclasses match too).
        :param body: ``(event, state) -> next state | None``, sync or async.
        """
        if body is None:

            def decorator(fn: RuleBody) -> RuleBody:
                self._graph.add_transition(self._state_type, event_type, fn)
                return fn

            return decorator
        self._graph.add_transition(self._state_type, event_type, body)
        return body

    def on_enter(self, hook: Optional[Callable[[Any], Any]] = None):
        """Add a hook called with the new state when this state type is entered."""
        return self._hook(HookKind.ENTER, hook)

    def on_change(self, hook: Optional[Callable[[Any, Any], Any]] = None):
        """Add a hook called with (old, new) when this state type is retained across a transition."""
        return self._hook(HookKind.CHANGE, hook)

    def on_exit(self, hook: Optional[Callable[[Any], Any]] = None):
        """Add a hook called with the old state when this state type is left."""
        return self._hook(HookKind.EXIT, hook)

    def _hook(self, kind: HookKind, hook: Optional[Callable[..., Any]]):
        if hook is None:

            def decorator(fn: Callable[..., Any]) -> Callable[..., Any]:
                self._graph.add_hook(self._state_type, kind, fn)
                return fn

            return decorator
        self._graph.add_hook(self._state_type, kind, hook)
        return hook

    def declare(self, state_type: type, configure: Optional[Configure] = None) -> "StateDeclaration":
        """
        Declare a child state type nested in this one.
        """
        return _declare(self._graph, state_type, self._state_type, configure)

    def __enter__(self) -> "StateDeclaration":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        return None

    def __repr__(self) -> str:
        return f"<StateDeclaration {self._state_type.__name__}>"


def _declare(
    graph: StateGraph, state_type: type, parent: Optional[type], configure: Optional[Configure]
) -> StateDeclaration:
    graph.add_state(state_type, parent)
    declaration = StateDeclaration(graph, state_type)
    if configure is not None:
        configure(declaration)
    return declaration


class MachineBuilder:
    """
    Builds state machines from a declared state tree.

    Declarations happen depth-first: a parent must be declared before its
    children, either through ``parent=`` or through a nested ``declare`` on the
    parent's declaration. ``build()`` seals the tree; every machine built from
    one builder shares it and runs independently.
    """

    def __init__(self, options: Optional[MachineOptions] = None) -> None:
        """
        :param options: Settings for the machines this builder creates.
        """
        self._options = options or MachineOptions()
        self._graph = StateGraph(validator=Validator() if self._options.validate else None)

    @property
    def graph(self) -> StateGraph:
        return self._graph

    def declare(
        self, state_type: type, parent: Optional[type] = None, configure: Optional[Configure] = None
    ) -> StateDeclaration:
        """
        Declare a state type.

        :param state_type: The class identifying the state.
        :param parent: An already declared parent state type, or None for a root.
        :param configure: Called with the new StateDeclaration.
        :raises DuplicateStateError: If the state type is already declared.
        :raises UnknownParentError: If the parent is not declared.
        :raises DeclarationError: If the builder has already built a machine.
        """
        return _declare(self._graph, state_type, parent, configure)

    def build(self, **changes: Any) -> StateMachine:
        """
        Seal the state tree and create a machine.

        :param changes: MachineOptions fields to override for this machine.
        """
        options = self._options.replace(**changes) if changes else self._options
        self._graph.seal()
        return StateMachine(self._graph, options)
