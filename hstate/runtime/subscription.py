# hstate/runtime/subscription.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any, AsyncIterable, Iterable, Optional, Union

if TYPE_CHECKING:
    from hstate.core.state_machine import StateMachine

logger = logging.getLogger(__name__)

EventSource = Union[AsyncIterable[Any], Iterable[Any]]


class EventSubscription:
    """
    Pumps events from an external source into a machine, one at a time and in
    arrival order. The next event is pulled from the source only after the
    previous one has been processed. On a bounded machine the subscription
    waits for room in the queue rather than dropping events.
    """

    def __init__(self, machine: "StateMachine", source: EventSource) -> None:
        """
        :param machine: The running machine that receives the events.
        :param source: An async iterable (or plain iterable) of events.
        """
        self._machine = machine
        self._source = source
        self._delivered = 0
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        """Begin consuming the source."""
        if self._task is None:
            self._task = asyncio.ensure_future(self._run())
            self._task.add_done_callback(self._on_done)

    @property
    def active(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def delivered(self) -> int:
        """Number of events handed to the machine so far."""
        return self._delivered

    async def _run(self) -> None:
        if hasattr(self._source, "__aiter__"):
            async for event in self._source:
                await self._deliver(event)
        else:
            for event in self._source:
                await self._deliver(event)

    async def _deliver(self, event: Any) -> None:
        future = await self._machine.put(event)
        self._delivered += 1
        # Per-event failures are reported by the machine; only wait for completion.
        await asyncio.wait({future})

    def _on_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.debug("Subscription of %s cancelled after %d event(s)", self._machine.name, self._delivered)
            return
        error = task.exception()
        if error is not None:
            logger.error("Event source of %s failed", self._machine.name, exc_info=error)
        else:
            logger.debug("Event source of %s exhausted after %d event(s)", self._machine.name, self._delivered)

    async def wait(self) -> None:
        """
        Wait until the source is exhausted. Re-raises a failure of the source.
        """
        if self._task is not None:
            await self._task

    def cancel(self) -> None:
        """Release the subscription; no further events are pulled."""
        if self._task is not None and not self._task.done():
            self._task.cancel()
