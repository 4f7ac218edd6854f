# hstate/core/hooks.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from enum import Enum
from typing import Any, Callable


class HookKind(Enum):
    """
    Lifecycle points a state type can react to.
    """

    ENTER = "on_enter"
    CHANGE = "on_change"
    EXIT = "on_exit"


class Hook:
    """
    A lifecycle side effect bound to one state type. ENTER and EXIT hooks are
    called with the state value being entered or left; CHANGE hooks with the
    old and the new value. The callable may be a coroutine function, in which
    case its coroutine is scheduled and never awaited by the engine.
    """

    def __init__(self, owner: type, kind: HookKind, fn: Callable[..., Any], ordinal: int = 0) -> None:
        """
        :param owner: The state type the hook belongs to.
        :param kind: Which lifecycle point triggers it.
        :param fn: The side effect.
        :param ordinal: Registration position.
        """
        self.owner = owner
        self.kind = kind
        self.fn = fn
        self.ordinal = ordinal

    def __call__(self, *args: Any) -> Any:
        return self.fn(*args)

    def __repr__(self) -> str:
        name = getattr(self.fn, "__qualname__", repr(self.fn))
        return f"<Hook {self.owner.__name__}.{self.kind.value} {name}>"
