# tests/unit/test_transitions.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import asyncio

import pytest

from hstate.core.errors import RuleEvaluationError
from hstate.core.transitions import NO_MATCH, Matched, Transition
from tests.machines import Idle, Running, Start, Stop, UrgentStop


def test_matches_is_polymorphic_over_event_type():
    transition = Transition(Idle, Stop, lambda e, s: None)
    assert transition.matches(Stop())
    assert transition.matches(UrgentStop())
    assert not transition.matches(Start())


def test_properties_and_repr():
    def go(event, state):
        return Running(0)

    transition = Transition(Idle, Start, go, ordinal=3)
    assert transition.owner is Idle
    assert transition.event_type is Start
    assert transition.body is go
    assert transition.ordinal == 3
    assert "Idle on Start" in repr(transition)
    assert "go" in repr(transition)


@pytest.mark.asyncio
async def test_resolve_sync_body():
    transition = Transition(Idle, Start, lambda e, s: Running(0))
    assert await transition.resolve(Start(), Idle()) == Running(0)


@pytest.mark.asyncio
async def test_resolve_async_body():
    async def body(event, state):
        await asyncio.sleep(0)
        return Running(1)

    transition = Transition(Idle, Start, body)
    assert await transition.resolve(Start(), Idle()) == Running(1)


@pytest.mark.asyncio
async def test_resolve_wraps_failures():
    def body(event, state):
        raise RuntimeError("boom")

    transition = Transition(Idle, Start, body)
    event, state = Start(), Idle()
    with pytest.raises(RuleEvaluationError) as exc:
        await transition.resolve(event, state)
    assert isinstance(exc.value.__cause__, RuntimeError)
    assert exc.value.event is event
    assert exc.value.transition is transition


@pytest.mark.asyncio
async def test_resolve_wraps_async_failures():
    async def body(event, state):
        raise ValueError("late")

    with pytest.raises(RuleEvaluationError):
        await Transition(Idle, Start, body).resolve(Start(), Idle())


def test_no_match_is_a_falsy_singleton():
    assert not NO_MATCH
    assert type(NO_MATCH)() is NO_MATCH
    assert repr(NO_MATCH) == "NO_MATCH"


def test_matched_compares_by_state_value():
    assert Matched(Running(2)) == Matched(Running(2))
    assert Matched(Running(2)) != Matched(Running(3))
    assert repr(Matched(Idle())) == "Matched(Idle())"
