# tests/unit/test_builder.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from hstate import MachineBuilder, MachineOptions, StateMachine
from hstate.core.errors import DeclarationError, DuplicateStateError, UnknownParentError, ValidationError
from hstate.core.hooks import HookKind
from tests.machines import Idle, Paused, Running, Start, Started, Stop, Stopped, Tick


def test_declare_root_and_children(builder):
    started = builder.declare(Started)
    started.declare(Running)
    builder.declare(Paused, parent=Started)
    assert builder.graph.get_ancestry(Running) == (Running, Started)
    assert builder.graph.get_children(Started) == [Running, Paused]


def test_configure_callback_runs_depth_first(builder):
    seen = []

    def configure_started(started):
        seen.append(started.state_type)
        started.declare(Running, lambda running: seen.append(running.state_type))

    builder.declare(Started, configure=configure_started)
    assert seen == [Started, Running]


def test_direct_registration_returns_callable(builder):
    def start(event, state):
        return Running(0)

    idle = builder.declare(Idle)
    assert idle.state_type is Idle
    assert idle.on(Start, start) is start
    idle.on_enter(lambda s: None)
    idle.on_change(lambda old, new: None)
    idle.on_exit(lambda s: None)

    graph = builder.graph
    assert len(graph.get_transitions(Idle)) == 1
    for kind in HookKind:
        assert len(graph.get_hooks(Idle, kind)) == 1


def test_decorator_registration(builder):
    running = builder.declare(Running)

    @running.on(Tick)
    def tick(event, state):
        return Running(state.ticks + 1)

    @running.on_enter
    def entered(state):
        return None

    @running.on_exit()
    def left(state):
        return None

    assert tick.__name__ == "tick"
    assert builder.graph.get_transitions(Running)[0].body is tick
    assert builder.graph.get_hooks(Running, HookKind.ENTER)[0].fn is entered
    assert builder.graph.get_hooks(Running, HookKind.EXIT)[0].fn is left


def test_declaration_as_context_manager(builder):
    declaration = builder.declare(Started)
    with declaration as started:
        assert started is declaration
        started.declare(Running)
        started.on(Stop, lambda e, s: Stopped())
    assert builder.graph.get_parent(Running) is Started
    assert len(builder.graph.get_transitions(Started)) == 1


def test_duplicate_declaration(builder):
    builder.declare(Idle)
    with pytest.raises(DuplicateStateError):
        builder.declare(Idle)


def test_duplicate_nested_declaration(builder):
    builder.declare(Running)
    started = builder.declare(Started)
    with pytest.raises(DuplicateStateError):
        started.declare(Running)


def test_unknown_parent(builder):
    with pytest.raises(UnknownParentError):
        builder.declare(Running, parent=Started)


def test_validation_can_be_disabled():
    builder = MachineBuilder(MachineOptions(validate=False))
    builder.declare(Idle).on(Start, "not callable")
    with pytest.raises(ValidationError):
        MachineBuilder().declare(Idle).on(Start, "not callable")


def test_build_seals_declarations(builder):
    builder.declare(Idle)
    machine = builder.build()
    assert isinstance(machine, StateMachine)
    assert machine.graph.sealed
    with pytest.raises(DeclarationError):
        builder.declare(Stopped)


def test_build_option_overrides(builder):
    builder.declare(Idle)
    first = builder.build(name="first")
    second = builder.build(name="second")
    assert first.name == "first"
    assert second.name == "second"
    assert first.graph is second.graph
