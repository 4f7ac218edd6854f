# tests/unit/test_graph.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from hstate.core.errors import (
    DeclarationError,
    DuplicateStateError,
    InvalidStateError,
    UnknownParentError,
    ValidationError,
)
from hstate.core.hooks import HookKind
from hstate.runtime.graph import StateGraph
from tests.machines import Idle, Pause, Paused, Running, Start, Started, Stop, Stopped, Tick


@pytest.fixture
def tree(graph):
    graph.add_state(Idle)
    graph.add_state(Started)
    graph.add_state(Running, parent=Started)
    graph.add_state(Paused, parent=Started)
    return graph


def test_add_state_and_query_hierarchy(tree):
    assert tree.is_declared(Running)
    assert Paused in tree
    assert len(tree) == 4
    assert tree.get_parent(Running) is Started
    assert tree.get_parent(Idle) is None
    assert tree.get_children(Started) == [Running, Paused]
    assert tree.get_root_states() == [Idle, Started]
    assert tree.get_all_states() == {Idle, Started, Running, Paused}


def test_duplicate_state_rejected(tree):
    with pytest.raises(DuplicateStateError) as exc:
        tree.add_state(Running)
    assert exc.value.state_type is Running


def test_duplicate_rejected_under_other_parent(tree):
    with pytest.raises(DuplicateStateError):
        tree.add_state(Idle, parent=Started)


def test_unknown_parent_rejected(graph):
    with pytest.raises(UnknownParentError) as exc:
        graph.add_state(Running, parent=Started)
    assert exc.value.parent is Started
    assert not graph.is_declared(Running)


def test_validator_rejects_non_class(graph):
    with pytest.raises(ValidationError):
        graph.add_state("Idle")


def test_without_validator_declarations_are_not_checked():
    graph = StateGraph()
    graph.add_state(Idle)
    transition = graph.add_transition(Idle, Start, "not callable")
    assert graph.get_transitions(Idle) == [transition]


def test_ancestry_is_leaf_to_root(tree):
    assert tree.get_ancestry(Running) == (Running, Started)
    assert tree.get_ancestry(Idle) == (Idle,)


def test_ancestry_of_undeclared_type(tree):
    with pytest.raises(InvalidStateError):
        tree.get_ancestry(Stopped)


def test_is_descendant(tree):
    assert tree.is_descendant(Running, Started)
    assert tree.is_descendant(Running, Running)
    assert not tree.is_descendant(Started, Running)
    assert not tree.is_descendant(Stopped, Started)


def test_transitions_concrete_first_then_ancestors(tree):
    outer = tree.add_transition(Started, Stop, lambda e, s: Idle())
    first = tree.add_transition(Running, Tick, lambda e, s: None)
    second = tree.add_transition(Running, Pause, lambda e, s: Paused())
    assert tree.get_transitions(Running) == [first, second, outer]
    assert tree.get_transitions(Started) == [outer]
    assert tree.get_transitions(Paused) == [outer]
    assert first.ordinal < second.ordinal


def test_transition_on_undeclared_state(tree):
    with pytest.raises(InvalidStateError):
        tree.add_transition(Stopped, Stop, lambda e, s: None)


def test_transition_validation(tree):
    with pytest.raises(ValidationError):
        tree.add_transition(Idle, "Start", lambda e, s: None)
    with pytest.raises(ValidationError):
        tree.add_transition(Idle, Start, "not callable")


def test_hooks_are_per_level_in_registration_order(tree):
    first = tree.add_hook(Running, HookKind.ENTER, lambda s: None)
    second = tree.add_hook(Running, HookKind.ENTER, lambda s: None)
    tree.add_hook(Started, HookKind.ENTER, lambda s: None)
    assert tree.get_hooks(Running, HookKind.ENTER) == [first, second]
    assert tree.get_hooks(Running, HookKind.EXIT) == []


def test_hook_validation(tree):
    with pytest.raises(ValidationError):
        tree.add_hook(Idle, "enter", lambda s: None)
    with pytest.raises(ValidationError):
        tree.add_hook(Idle, HookKind.EXIT, None)


def test_sealed_graph_rejects_declarations(tree):
    tree.seal()
    assert tree.sealed
    with pytest.raises(DeclarationError):
        tree.add_state(Stopped)
    with pytest.raises(DeclarationError):
        tree.add_transition(Idle, Start, lambda e, s: None)
    with pytest.raises(DeclarationError):
        tree.add_hook(Idle, HookKind.ENTER, lambda s: None)


def test_sealed_graph_caches_ancestry(tree):
    tree.seal()
    assert tree.get_ancestry(Paused) is tree.get_ancestry(Paused)
