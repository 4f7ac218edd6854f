# hstate/core/events.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from typing import Any, Dict, Optional


class Event:
    """
    Represents a signal or trigger within the state machine. Events cause the
    machine to evaluate transitions and possibly change states.

    Rules match events by class (``isinstance``), so subclass ``Event`` per
    kind of signal. Any other class works as an event type as well.
    """

    def __init__(self, name: Optional[str] = None, **metadata: Any) -> None:
        """
        Create an event. Metadata may be attached as needed.

        :param name: A string identifying this event; defaults to the class name.
        :param metadata: Additional event data.
        """
        self._name = name or type(self).__name__
        self._metadata: Dict[str, Any] = dict(metadata)

    @property
    def name(self) -> str:
        """The name of the event."""
        return self._name

    @property
    def metadata(self) -> Dict[str, Any]:
        """Optional dictionary of additional event data."""
        return self._metadata

    def __repr__(self) -> str:
        if self._metadata:
            return f"{type(self).__name__}({self._name!r}, {self._metadata!r})"
        return f"{type(self).__name__}({self._name!r})"
