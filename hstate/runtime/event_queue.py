# hstate/runtime/event_queue.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import collections
from typing import Any, Deque, List, Optional


class _Submission:
    """
    Internal pairing of an accepted event with the future its submitter holds.
    """

    __slots__ = ("event", "future")

    def __init__(self, event: Any, future: asyncio.Future) -> None:
        self.event = event
        self.future = future


class AsyncEventQueue:
    """
    FIFO queue of accepted events waiting for the machine's single worker.
    ``enqueue`` never blocks; producers that prefer back-pressure over
    ``asyncio.QueueFull`` await ``wait_for_space`` first. The worker awaits the
    next submission and calls ``task_done`` once it is fully processed.
    """

    def __init__(self, maxsize: int = 0) -> None:
        """
        :param maxsize: Upper bound on pending events; 0 means unbounded.
        """
        self._queue: asyncio.Queue = asyncio.Queue()
        self._maxsize = maxsize
        self._closed = False
        self._space_waiters: Deque[asyncio.Future] = collections.deque()

    def enqueue(self, event: Any, future: asyncio.Future) -> None:
        """
        Accept an event.

        :raises asyncio.QueueFull: If the queue is bounded and full.
        """
        if self.full():
            raise asyncio.QueueFull(f"Event queue is full ({self._maxsize} pending)")
        self._queue.put_nowait(_Submission(event, future))

    async def dequeue(self) -> Optional[_Submission]:
        """
        Wait for and return the next submission, or None once the queue has
        been closed and everything before the close was handed out.
        """
        item = await self._queue.get()
        self._wake_space_waiters()
        return item

    def task_done(self) -> None:
        self._queue.task_done()

    async def join(self) -> None:
        """Wait until every handed-out submission has been marked done."""
        await self._queue.join()

    def close(self) -> None:
        """Stop accepting events; the worker exits after what is already queued."""
        if not self._closed:
            self._closed = True
            self._queue.put_nowait(None)
            self._wake_space_waiters()

    @property
    def closed(self) -> bool:
        return self._closed

    def is_empty(self) -> bool:
        return self._queue.empty()

    def __len__(self) -> int:
        return self._queue.qsize()

    def clear(self) -> List[_Submission]:
        """
        Remove and return every pending submission. A close marker that was
        already queued is dropped too, so a worker still waiting on ``dequeue``
        must be cancelled or the queue closed afterwards.
        """
        drained = []
        while True:
            try:
                item = self._queue.get_nowait()
            except asyncio.QueueEmpty:
                break
            self._queue.task_done()
            if item is not None:
                drained.append(item)
        self._wake_space_waiters()
        return drained

    def full(self) -> bool:
        """True if the queue is bounded and holds ``maxsize`` pending events."""
        return bool(self._maxsize) and self._queue.qsize() >= self._maxsize

    async def wait_for_space(self) -> None:
        """
        Wait until ``enqueue`` would not raise ``asyncio.QueueFull``, or until
        the queue is closed.
        """
        while self.full() and not self._closed:
            waiter = asyncio.get_running_loop().create_future()
            self._space_waiters.append(waiter)
            try:
                await waiter
            finally:
                if waiter in self._space_waiters:
                    self._space_waiters.remove(waiter)

    def _wake_space_waiters(self) -> None:
        while self._space_waiters:
            waiter = self._space_waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
