# hstate/runtime/evaluator.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from __future__ import annotations

import logging
from typing import Any, List

from hstate.core.transitions import NO_MATCH, Matched, Resolution, Transition
from hstate.runtime.graph import StateGraph

logger = logging.getLogger(__name__)


class TransitionEvaluator:
    """
    Finds the next state for an event by trying candidate rules one at a time:
    the concrete state's rules first, then each ancestor's, each level in
    registration order. The first rule producing a state value wins.
    """

    def __init__(self, graph: StateGraph) -> None:
        """
        :param graph: The (sealed) state registry to read rules from.
        """
        self._graph = graph

    def candidates(self, state: Any, event: Any) -> List[Transition]:
        """
        Rules that may react to ``event`` while in ``state``, in evaluation order.
        """
        return [t for t in self._graph.get_transitions(type(state)) if t.matches(event)]

    async def evaluate(self, state: Any, event: Any) -> Resolution:
        """
        Evaluate candidate rules strictly sequentially, awaiting suspending
        bodies before trying the next candidate.

        :param state: The current state value.
        :param event: The event being processed.
        :return: Matched(next_state) or NO_MATCH.
        :raises RuleEvaluationError: If a rule body raises.
        """
        for transition in self.candidates(state, event):
            result = await transition.resolve(event, state)
            if result is not None:
                logger.debug("%r matched %r in %r -> %r", transition, event, state, result)
                return Matched(result, transition)
        logger.debug("No rule matched %r in %r", event, state)
        return NO_MATCH
