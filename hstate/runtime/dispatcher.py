# hstate/runtime/dispatcher.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
from typing import Any, Callable, List, Optional, Set, Tuple

from hstate.core.errors import HookError, HSMError
from hstate.core.hooks import Hook, HookKind
from hstate.runtime.graph import StateGraph

logger = logging.getLogger(__name__)

HookCall = Tuple[Hook, Tuple[Any, ...]]


class LifecycleDispatcher:
    """
    Computes which lifecycle hooks a state change triggers by diffing the old
    and new ancestries, and fires them without waiting for them to finish.

    Order for one transition: exit hooks (leaf-most first), change hooks on
    the retained levels (leaf-most first), then enter hooks (root-most first).
    Within one level, hooks fire in registration order.
    """

    def __init__(self, graph: StateGraph, report: Optional[Callable[[HSMError], None]] = None) -> None:
        """
        :param graph: The state registry.
        :param report: Diagnostic sink receiving a HookError per failed hook.
        """
        self._graph = graph
        self._report = report
        self._pending: Set[asyncio.Future] = set()

    @property
    def pending(self) -> Set[asyncio.Future]:
        """Hook tasks that have been scheduled and have not finished yet."""
        return set(self._pending)

    def plan(self, old: Any, new: Any) -> List[HookCall]:
        """
        Ordered hook calls for a transition from ``old`` to ``new``. Pure; no
        hook is invoked.
        """
        old_chain = self._graph.get_ancestry(type(old))
        new_chain = self._graph.get_ancestry(type(new))
        old_levels = set(old_chain)
        new_levels = set(new_chain)

        calls: List[HookCall] = []
        for level in old_chain:
            if level not in new_levels:
                calls.extend((hook, (old,)) for hook in self._graph.get_hooks(level, HookKind.EXIT))
        for level in old_chain:
            if level in new_levels:
                calls.extend((hook, (old, new)) for hook in self._graph.get_hooks(level, HookKind.CHANGE))
        for level in reversed(new_chain):
            if level not in old_levels:
                calls.extend((hook, (new,)) for hook in self._graph.get_hooks(level, HookKind.ENTER))
        return calls

    def plan_initial(self, state: Any) -> List[HookCall]:
        """Enter hooks for every level of the initial state, root-most first."""
        calls: List[HookCall] = []
        for level in reversed(self._graph.get_ancestry(type(state))):
            calls.extend((hook, (state,)) for hook in self._graph.get_hooks(level, HookKind.ENTER))
        return calls

    def dispatch(self, old: Any, new: Any) -> None:
        """Fire the hooks of a committed transition."""
        calls = self.plan(old, new)
        logger.debug("Firing %d hook(s) for %r -> %r", len(calls), old, new)
        self._fire(calls)

    def enter_initial(self, state: Any) -> None:
        """Fire the initial-entry sequence for the machine's first state."""
        self._fire(self.plan_initial(state))

    def _fire(self, calls: List[HookCall]) -> None:
        for hook, args in calls:
            self._invoke(hook, args)

    def _invoke(self, hook: Hook, args: Tuple[Any, ...]) -> None:
        try:
            result = hook(*args)
        except Exception as e:
            self._fail(hook, e)
            return
        if inspect.isawaitable(result):
            task = asyncio.ensure_future(result)
            self._pending.add(task)
            task.add_done_callback(functools.partial(self._on_done, hook))

    def _on_done(self, hook: Hook, task: asyncio.Future) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._fail(hook, error)

    def _fail(self, hook: Hook, cause: BaseException) -> None:
        error = HookError(hook)
        error.__cause__ = cause
        logger.error("%s", error, exc_info=cause)
        if self._report is not None:
            self._report(error)

    async def drain(self) -> None:
        """
        Wait until every scheduled hook task has finished, including hooks
        scheduled while waiting. A hook calling this does not wait for itself.
        """
        current = asyncio.current_task()
        while True:
            pending = {task for task in self._pending if task is not current}
            if not pending:
                return
            await asyncio.wait(pending)

    def cancel_pending(self) -> None:
        for task in list(self._pending):
            task.cancel()
