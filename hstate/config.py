# hstate/config.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Optional

if TYPE_CHECKING:
    from hstate.core.errors import HSMError


@dataclass(frozen=True)
class MachineOptions:
    """
    Per-machine settings.

    :param name: Label used in log messages and ``repr``.
    :param on_error: Diagnostic sink receiving every reported error
        (failed hooks, failed listeners, per-event failures).
    :param on_publish: Listener registered when the machine is built.
    :param fatal_rule_errors: Stop the machine when a rule body raises.
    :param queue_maxsize: Bound on pending events, 0 for unbounded.
    :param validate: Check declaration arguments with ``Validator``.
    """

    name: str = "machine"
    on_error: Optional[Callable[["HSMError"], None]] = None
    on_publish: Optional[Callable[[Any], None]] = None
    fatal_rule_errors: bool = False
    queue_maxsize: int = 0
    validate: bool = True

    def __post_init__(self) -> None:
        if self.queue_maxsize < 0:
            raise ValueError("queue_maxsize must be >= 0")

    def replace(self, **changes: Any) -> "MachineOptions":
        """Return a copy with the given fields changed."""
        return dataclasses.replace(self, **changes)
