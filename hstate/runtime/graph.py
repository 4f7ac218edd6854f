# hstate/runtime/graph.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

"""Graph-based state machine structure management."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set, Tuple

from hstate.core.errors import DeclarationError, DuplicateStateError, InvalidStateError, UnknownParentError
from hstate.core.hooks import Hook, HookKind
from hstate.core.transitions import Transition
from hstate.core.validations import Validator

logger = logging.getLogger(__name__)


@dataclass(eq=False)
class _GraphNode:
    """Internal node representation for the state graph."""

    state_type: type
    parent: Optional["_GraphNode"] = None
    children: List["_GraphNode"] = field(default_factory=list)
    transitions: List[Transition] = field(default_factory=list)
    hooks: Dict[HookKind, List[Hook]] = field(default_factory=lambda: {kind: [] for kind in HookKind})


class StateGraph:
    """
    Registry of the declared state tree. Stores parent links, the transition
    rules and the lifecycle hooks of every state type.

    The graph is mutable only while the machine is being constructed. Once
    sealed it is read-only and may be read from any thread.
    """

    def __init__(self, validator: Optional[Validator] = None) -> None:
        self._nodes: Dict[type, _GraphNode] = {}
        self._validator = validator
        self._lock = threading.Lock()
        self._sealed = False
        self._ordinal = 0
        self._ancestry_cache: Dict[type, Tuple[type, ...]] = {}

    # -- construction -----------------------------------------------------

    def add_state(self, state_type: type, parent: Optional[type] = None) -> None:
        """
        Declare a state type, optionally under a parent.

        :param state_type: The class identifying the state.
        :param parent: A previously declared state type, or None for a root.
        :raises DuplicateStateError: If the state type is already declared.
        :raises UnknownParentError: If the parent is not declared.
        """
        if self._validator:
            self._validator.validate_state_type(state_type)
        with self._lock:
            self._check_open()
            if state_type in self._nodes:
                raise DuplicateStateError(state_type)
            parent_node = None
            if parent is not None:
                parent_node = self._nodes.get(parent)
                if parent_node is None:
                    raise UnknownParentError(state_type, parent)

            node = _GraphNode(state_type=state_type, parent=parent_node)
            self._nodes[state_type] = node
            if parent_node is not None:
                parent_node.children.append(node)

        logger.debug("Declared state %r (parent: %r)", state_type, parent)

    def add_transition(self, state_type: type, event_type: type, body: Callable[..., Any]) -> Transition:
        """
        Register a transition rule on a declared state type.

        :return: The created Transition.
        """
        if self._validator:
            self._validator.validate_transition(event_type, body)
        with self._lock:
            self._check_open()
            node = self._require(state_type)
            transition = Transition(state_type, event_type, body, ordinal=self._next_ordinal())
            node.transitions.append(transition)
        return transition

    def add_hook(self, state_type: type, kind: HookKind, fn: Callable[..., Any]) -> Hook:
        """
        Register a lifecycle hook on a declared state type.

        :return: The created Hook.
        """
        if self._validator:
            self._validator.validate_hook(kind, fn)
        with self._lock:
            self._check_open()
            node = self._require(state_type)
            hook = Hook(state_type, kind, fn, ordinal=self._next_ordinal())
            node.hooks[kind].append(hook)
        return hook

    def seal(self) -> None:
        """Make the graph read-only."""
        with self._lock:
            self._sealed = True

    @property
    def sealed(self) -> bool:
        return self._sealed

    def _check_open(self) -> None:
        if self._sealed:
            raise DeclarationError("State graph is sealed; declarations are only allowed during construction")

    def _next_ordinal(self) -> int:
        self._ordinal += 1
        return self._ordinal

    def _require(self, state_type: type) -> _GraphNode:
        node = self._nodes.get(state_type)
        if node is None:
            raise InvalidStateError(
                state_type, f"State type '{getattr(state_type, '__qualname__', state_type)}' is not declared"
            )
        return node

    # -- queries ----------------------------------------------------------

    def is_declared(self, state_type: type) -> bool:
        return state_type in self._nodes

    def __contains__(self, state_type: object) -> bool:
        return state_type in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def get_ancestry(self, state_type: type) -> Tuple[type, ...]:
        """
        Get the path from a state type up to its root, root last.

        :raises InvalidStateError: If the state type is not declared.
        """
        cached = self._ancestry_cache.get(state_type)
        if cached is not None:
            return cached

        chain = []
        node = self._require(state_type)
        while node is not None:
            chain.append(node.state_type)
            node = node.parent
        ancestry = tuple(chain)
        if self._sealed:
            self._ancestry_cache[state_type] = ancestry
        return ancestry

    def get_parent(self, state_type: type) -> Optional[type]:
        node = self._require(state_type)
        return node.parent.state_type if node.parent else None

    def get_children(self, state_type: type) -> List[type]:
        """Get immediate child state types in declaration order."""
        return [child.state_type for child in self._require(state_type).children]

    def get_root_states(self) -> List[type]:
        """Get all state types that have no parent."""
        return [node.state_type for node in self._nodes.values() if node.parent is None]

    def get_all_states(self) -> Set[type]:
        return set(self._nodes)

    def is_descendant(self, state_type: type, ancestor: type) -> bool:
        """True if ``ancestor`` is ``state_type`` itself or one of its ancestors."""
        if state_type not in self._nodes:
            return False
        return ancestor in self.get_ancestry(state_type)

    def get_transitions(self, state_type: type) -> List[Transition]:
        """
        Get the candidate rules for a state type: its own rules in registration
        order, followed by those of its parent, grandparent and so on.
        """
        transitions: List[Transition] = []
        for level in self.get_ancestry(state_type):
            transitions.extend(self._nodes[level].transitions)
        return transitions

    def get_hooks(self, state_type: type, kind: HookKind) -> List[Hook]:
        """Get the hooks of one kind declared on a single level, in registration order."""
        return list(self._require(state_type).hooks[kind])
