# hstate/core/transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from hstate.core.errors import RuleEvaluationError

RuleBody = Callable[[Any, Any], Union[Any, Awaitable[Any]]]


class Transition:
    """
    A transition rule owned by one declared state type. When an event of the
    matching type arrives while the machine is in the owning state (or one of
    its descendants), the rule body computes the next state value, or ``None``
    to let the next candidate rule decide.
    """

    def __init__(self, owner: type, event_type: type, body: RuleBody, ordinal: int = 0) -> None:
        """
        :param owner: The state type that defines this rule.
        :param event_type: Events that are instances of this class are matched.
        :param body: ``(event, state) -> state | None``; may return an awaitable.
        :param ordinal: Registration position, used for ordering within a level.
        """
        self._owner = owner
        self._event_type = event_type
        self._body = body
        self._ordinal = ordinal

    @property
    def owner(self) -> type:
        """The state type that declared this rule."""
        return self._owner

    @property
    def event_type(self) -> type:
        """The event class this rule reacts to."""
        return self._event_type

    @property
    def body(self) -> RuleBody:
        return self._body

    @property
    def ordinal(self) -> int:
        return self._ordinal

    def matches(self, event: Any) -> bool:
        """
        Polymorphic match of the event's runtime type against the declared type.
        """
        return isinstance(event, self._event_type)

    async def resolve(self, event: Any, state: Any) -> Any:
        """
        Run the rule body, awaiting it if it suspends.

        :param event: The triggering event.
        :param state: The machine's current state value.
        :return: The next state value, or None for no match.
        :raises RuleEvaluationError: If the body raises.
        """
        try:
            result = self._body(event, state)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            raise RuleEvaluationError(event, state, self) from e
        return result

    def __repr__(self) -> str:
        name = getattr(self._body, "__qualname__", repr(self._body))
        return f"<Transition {self._owner.__name__} on {self._event_type.__name__} -> {name} #{self._ordinal}>"


class Matched:
    """
    Evaluation result carrying the state value a rule produced.
    """

    __slots__ = ("state", "transition")

    def __init__(self, state: Any, transition: Optional[Transition] = None) -> None:
        self.state = state
        self.transition = transition

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Matched):
            return NotImplemented
        return type(self.state) is type(other.state) and self.state == other.state

    __hash__ = None

    def __repr__(self) -> str:
        return f"Matched({self.state!r})"


class _NoMatch:
    """
    Evaluation result when no candidate rule produced a state value.
    """

    _instance: Optional["_NoMatch"] = None

    def __new__(cls) -> "_NoMatch":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "NO_MATCH"


NO_MATCH = _NoMatch()

Resolution = Union[Matched, _NoMatch]
