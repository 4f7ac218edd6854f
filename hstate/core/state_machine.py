# hstate/core/state_machine.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import collections
import concurrent.futures
import logging
from typing import Any, AsyncIterator, Callable, Deque, List, Optional

from hstate.config import MachineOptions
from hstate.core.errors import (
    EventProcessingError,
    HSMError,
    InvalidStateError,
    MachineStateError,
    ObserverError,
    RuleEvaluationError,
)
from hstate.core.states import same_state
from hstate.core.transitions import NO_MATCH
from hstate.runtime.dispatcher import LifecycleDispatcher
from hstate.runtime.evaluator import TransitionEvaluator
from hstate.runtime.event_queue import AsyncEventQueue, _Submission
from hstate.runtime.graph import StateGraph
from hstate.runtime.subscription import EventSource, EventSubscription

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]


def _settle(future: asyncio.Future, result: Any = None, error: Optional[BaseException] = None) -> None:
    if future.done():
        return
    if error is not None:
        future.set_exception(error)
    else:
        future.set_result(result)


def _mark_retrieved(future: asyncio.Future) -> None:
    # Failures are already logged and reported; submitters may ignore the future.
    if not future.cancelled():
        future.exception()


class _StateStream:
    """
    Internal async iterator over committed states, ended when the machine stops.

    Unbounded unless ``maxsize`` is set; a bounded stream that is not read
    fast enough drops its oldest states.
    """

    def __init__(self, machine: "StateMachine", maxsize: int = 0) -> None:
        self._machine = machine
        self._maxsize = maxsize
        self._items: Deque[Any] = collections.deque()
        self._closed = False
        self._ready = asyncio.Event()

    def push(self, state: Any) -> None:
        if self._maxsize and len(self._items) >= self._maxsize:
            self._items.popleft()
        self._items.append(state)
        self._ready.set()

    def close(self) -> None:
        self._closed = True
        self._ready.set()

    def __aiter__(self) -> "_StateStream":
        return self

    async def __anext__(self) -> Any:
        while not self._items:
            if self._closed:
                self._machine._streams.discard(self)
                raise StopAsyncIteration
            self._ready.clear()
            await self._ready.wait()
        return self._items.popleft()

    async def aclose(self) -> None:
        self._machine._streams.discard(self)


class StateMachine:
    """
    Hierarchical state machine controller. Owns the current state, processes
    submitted events one at a time in arrival order, commits resolved states,
    fires lifecycle hooks and publishes every committed state to its listeners.

    Machines are created by ``MachineBuilder.build()``; several machines may
    share one sealed ``StateGraph`` and run independently.
    """

    def __init__(self, graph: StateGraph, options: Optional[MachineOptions] = None) -> None:
        """
        :param graph: The declared state tree. Sealed here if it is not yet.
        :param options: Machine settings.
        """
        if not graph.sealed:
            graph.seal()
        self._graph = graph
        self._options = options or MachineOptions()
        self._evaluator = TransitionEvaluator(graph)
        self._dispatcher = LifecycleDispatcher(graph, report=self._report)
        self._current: Any = None
        self._queue: Optional[AsyncEventQueue] = None
        self._worker: Optional[asyncio.Task] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._started = False
        self._stopped = False
        self._listeners: List[Listener] = []
        self._subscriptions: List[EventSubscription] = []
        self._streams = set()
        if self._options.on_publish is not None:
            self._listeners.append(self._options.on_publish)

    # -- properties -------------------------------------------------------

    @property
    def name(self) -> str:
        return self._options.name

    @property
    def options(self) -> MachineOptions:
        return self._options

    @property
    def graph(self) -> StateGraph:
        """The sealed state registry."""
        return self._graph

    @property
    def current_state(self) -> Any:
        """The committed state value, or None before ``start``."""
        return self._current

    @property
    def running(self) -> bool:
        """True between ``start`` and ``stop``."""
        return self._started and not self._stopped

    def is_in(self, state_type: type) -> bool:
        """True if the current state is ``state_type`` or one of its descendants."""
        if self._current is None:
            return False
        return self._graph.is_descendant(type(self._current), state_type)

    # -- lifecycle --------------------------------------------------------

    async def start(self, initial: Any) -> None:
        """
        Commit the initial state, fire its enter hooks (root-most first) and
        begin accepting events.

        :param initial: A value of a declared state type.
        :raises InvalidStateError: If the initial state's type is not declared.
        :raises MachineStateError: If the machine was already started.
        """
        if self._started:
            raise MachineStateError(f"Machine '{self.name}' has already been started")
        if not self._graph.is_declared(type(initial)):
            raise InvalidStateError(initial)

        self._loop = asyncio.get_running_loop()
        self._queue = AsyncEventQueue(maxsize=self._options.queue_maxsize)
        self._current = initial
        self._started = True
        logger.info("[%s] Started in %r", self.name, initial)

        self._dispatcher.enter_initial(initial)
        self._worker = self._loop.create_task(self._run())

    async def stop(self, cancel: bool = False) -> None:
        """
        Stop accepting events and release event-source subscriptions.

        Events accepted before the call are still processed, then outstanding
        async hooks are awaited. With ``cancel`` set, the in-flight evaluation,
        the queued submissions and the pending hooks are cancelled instead.

        :param cancel: Cancel instead of finishing outstanding work.
        """
        if not self._started or self._stopped:
            return
        self._shutdown()

        if cancel:
            for submission in self._queue.clear():
                submission.future.cancel()
            self._worker.cancel()
            self._dispatcher.cancel_pending()

        if self._worker is not asyncio.current_task():
            await asyncio.wait({self._worker})
            await self._dispatcher.drain()
        logger.info("[%s] Stopped in %r", self.name, self._current)

    def _shutdown(self) -> None:
        self._stopped = True
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()
        self._queue.close()
        for stream in list(self._streams):
            stream.close()

    async def join(self) -> None:
        """Wait until every accepted event has been processed."""
        if self._queue is not None:
            await self._queue.join()

    async def settle(self) -> None:
        """Wait for accepted events and for the async hooks they scheduled."""
        await self.join()
        await self._dispatcher.drain()

    # -- event ingestion --------------------------------------------------

    def submit(self, event: Any) -> asyncio.Future:
        """
        Accept an event for processing behind any in-flight work. Returns at
        once; the returned future resolves to the current state after the
        event, or fails with the event's InvalidStateError,
        RuleEvaluationError or EventProcessingError.

        :raises MachineStateError: If the machine is not running.
        :raises asyncio.QueueFull: If the bounded queue is full.
        """
        if not self.running:
            raise MachineStateError(f"Machine '{self.name}' is not running")
        future = self._loop.create_future()
        future.add_done_callback(_mark_retrieved)
        self._queue.enqueue(event, future)
        return future

    async def put(self, event: Any) -> asyncio.Future:
        """
        Like ``submit``, but waits for room in a bounded queue instead of
        raising ``asyncio.QueueFull``.

        :raises MachineStateError: If the machine is not running, or stops
            while waiting.
        """
        if not self.running:
            raise MachineStateError(f"Machine '{self.name}' is not running")
        await self._queue.wait_for_space()
        return self.submit(event)

    async def send(self, event: Any) -> Any:
        """Submit an event and wait for its outcome."""
        return await self.submit(event)

    def submit_threadsafe(self, event: Any) -> concurrent.futures.Future:
        """
        Submit from a thread other than the machine's event loop thread.
        """
        if self._loop is None:
            raise MachineStateError(f"Machine '{self.name}' is not running")
        return asyncio.run_coroutine_threadsafe(self.send(event), self._loop)

    def attach(self, source: EventSource) -> EventSubscription:
        """
        Subscribe the machine to an event source. The subscription is released
        by ``stop`` or by cancelling it.
        """
        if not self.running:
            raise MachineStateError(f"Machine '{self.name}' is not running")
        subscription = EventSubscription(self, source)
        self._subscriptions.append(subscription)
        subscription.start()
        return subscription

    # -- observation ------------------------------------------------------

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a listener called with every committed state, in commit order.

        :return: A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def stream(self, maxsize: int = 0) -> AsyncIterator[Any]:
        """
        Async iterator over states committed from now on. Ends when the
        machine stops.

        Undelivered states are buffered until read. With the default
        ``maxsize`` of 0 the buffer is unbounded, so a stream that is never
        iterated holds every committed state until ``stop``.

        :param maxsize: Keep at most this many undelivered states, dropping
            the oldest ones first.
        """
        if maxsize < 0:
            raise ValueError("maxsize must be >= 0")
        stream = _StateStream(self, maxsize)
        if self._stopped:
            stream.close()
        else:
            self._streams.add(stream)
        return stream

    # -- processing -------------------------------------------------------

    async def _run(self) -> None:
        while True:
            submission = await self._queue.dequeue()
            try:
                if submission is None:
                    break
                await self._process(submission)
            except asyncio.CancelledError:
                if submission is not None:
                    submission.future.cancel()
                raise
            except Exception as e:
                self._fail_event(submission, e)
            finally:
                self._queue.task_done()

    async def _process(self, submission: _Submission) -> None:
        event, future = submission.event, submission.future
        state = self._current

        try:
            resolution = await self._evaluator.evaluate(state, event)
        except RuleEvaluationError as error:
            self._reject(future, error)
            if self._options.fatal_rule_errors and not self._stopped:
                logger.error("[%s] Stopping after rule failure", self.name)
                self._halt()
            return

        if resolution is NO_MATCH:
            _settle(future, state)
            return

        target = resolution.state
        if not self._graph.is_declared(type(target)):
            self._reject(future, InvalidStateError(target))
            return

        if same_state(target, state):
            logger.debug("[%s] %r resolved to the current state; unchanged", self.name, event)
            _settle(future, state)
            return

        self._current = target
        logger.debug("[%s] %r -> %r on %r", self.name, state, target, event)
        self._dispatcher.dispatch(state, target)
        self._publish(target)
        _settle(future, target)

    def _halt(self) -> None:
        # Drop queued work before closing so the close marker stays queued.
        for submission in self._queue.clear():
            _settle(
                submission.future,
                error=MachineStateError(f"Machine '{self.name}' stopped before processing {submission.event!r}"),
            )
        self._shutdown()

    def _fail_event(self, submission: _Submission, cause: Exception) -> None:
        error = EventProcessingError(submission.event, self._current)
        error.__cause__ = cause
        logger.error("[%s] %s", self.name, error, exc_info=cause)
        self._report(error)
        _settle(submission.future, error=error)

    def _reject(self, future: asyncio.Future, error: HSMError) -> None:
        logger.warning("[%s] %s", self.name, error)
        self._report(error)
        _settle(future, error=error)

    def _publish(self, state: Any) -> None:
        for listener in list(self._listeners):
            try:
                listener(state)
            except Exception as e:
                error = ObserverError(listener, state)
                error.__cause__ = e
                logger.error("[%s] %s", self.name, error, exc_info=e)
                self._report(error)
        for stream in list(self._streams):
            stream.push(state)

    def _report(self, error: HSMError) -> None:
        sink = self._options.on_error
        if sink is None:
            return
        try:
            sink(error)
        except Exception:
            logger.exception("[%s] Diagnostic sink failed while reporting %r", self.name, error)

    def __repr__(self) -> str:
        status = "running" if self.running else ("stopped" if self._stopped else "new")
        return f"<StateMachine {self.name!r} {status} state={self._current!r}>"
