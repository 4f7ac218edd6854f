"""hstate: hierarchical, event-driven state machine runtime

Given a tree of declared state types, guarded transition rules per state type
and lifecycle hooks, a machine consumes events one at a time and
deterministically computes the next state, firing side effects in a
well-defined order.

Responsibilities:
    - State tree declaration (parent-before-child, each type declared once)
    - Sequential, ancestor-aware transition rule evaluation
    - Exit/change/enter hook ordering from the ancestry diff
    - Serialized event processing and state publication

Interactions:
    - Client code declares states through MachineBuilder
    - Event sources feed the machine through submit() or attach()
    - Observers receive committed states through subscribe() or stream()

Cross-cutting Concerns:
    Concurrency:
        - One asyncio worker per machine, one event in flight at a time
        - Rule bodies and hooks may be coroutines; hooks are never awaited
        - The sealed state graph may be read from any thread

    Error Handling:
        - Structured error hierarchy rooted at HSMError
        - Per-event failures fail that event only
        - Hook and observer failures go to the diagnostic sink

    Logging:
        - Standard library logging, one logger per module
        - NullHandler installed on the package logger
"""

import logging

from hstate.config import MachineOptions
from hstate.core.builder import MachineBuilder, StateDeclaration
from hstate.core.errors import (
    DeclarationError,
    DuplicateStateError,
    EventProcessingError,
    HookError,
    HSMError,
    InvalidStateError,
    MachineStateError,
    ObserverError,
    RuleEvaluationError,
    UnknownParentError,
    ValidationError,
)
from hstate.core.events import Event
from hstate.core.hooks import Hook, HookKind
from hstate.core.state_machine import StateMachine
from hstate.core.states import State
from hstate.core.transitions import NO_MATCH, Matched, Transition

logging.getLogger(__name__).addHandler(logging.NullHandler())

__version__ = "0.1.0"

__all__ = [
    "MachineBuilder",
    "StateDeclaration",
    "StateMachine",
    "MachineOptions",
    "State",
    "Event",
    "Transition",
    "Matched",
    "NO_MATCH",
    "Hook",
    "HookKind",
    "HSMError",
    "DeclarationError",
    "DuplicateStateError",
    "UnknownParentError",
    "ValidationError",
    "InvalidStateError",
    "RuleEvaluationError",
    "EventProcessingError",
    "HookError",
    "ObserverError",
    "MachineStateError",
]
