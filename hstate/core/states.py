# hstate/core/states.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

from typing import Any, Dict


class State:
    """
    Convenience base class for state values. The class of a value is its state
    type; instance attributes are its payload.

    Two values are the same state when they have exactly the same type and
    their payloads compare equal. Hierarchy is NOT expressed through
    subclassing: parent links live in the ``StateGraph``, so a child state
    class normally derives straight from ``State``.

    Any class can serve as a state type; dataclasses are a good fit too.
    """

    def __init__(self, **payload: Any) -> None:
        """
        Create a state value carrying optional payload attributes.

        :param payload: Keyword attributes stored on the instance.
        """
        for key, value in payload.items():
            setattr(self, key, value)

    @property
    def payload(self) -> Dict[str, Any]:
        """A shallow copy of the carried data."""
        return dict(vars(self))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, State):
            return NotImplemented
        return type(self) is type(other) and vars(self) == vars(other)

    def __hash__(self) -> int:
        # Payloads may be unhashable; equal values always share a type.
        return hash(type(self))

    def __repr__(self) -> str:
        fields = ", ".join(f"{key}={value!r}" for key, value in vars(self).items())
        return f"{type(self).__name__}({fields})"


def same_state(left: Any, right: Any) -> bool:
    """
    Value identity of two state values: same type and equal payload.
    """
    return type(left) is type(right) and left == right
