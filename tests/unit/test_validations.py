# tests/unit/test_validations.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

import pytest

from hstate.core.errors import ValidationError
from hstate.core.hooks import HookKind
from hstate.core.validations import Validator
from tests.machines import Idle, Start


@pytest.fixture
def validator():
    return Validator()


def test_valid_declarations_pass(validator):
    validator.validate_state_type(Idle)
    validator.validate_transition(Start, lambda e, s: None)
    validator.validate_hook(HookKind.CHANGE, lambda old, new: None)


@pytest.mark.parametrize("state_type", ["Idle", Idle(), None, 3])
def test_state_type_must_be_class(validator, state_type):
    with pytest.raises(ValidationError, match="State type must be a class"):
        validator.validate_state_type(state_type)


def test_transition_event_type_must_be_class(validator):
    with pytest.raises(ValidationError, match="event type must be a class"):
        validator.validate_transition(Start(), lambda e, s: None)


def test_transition_body_must_be_callable(validator):
    with pytest.raises(ValidationError, match="body must be callable"):
        validator.validate_transition(Start, Idle())


def test_hook_kind_must_be_known(validator):
    with pytest.raises(ValidationError, match="Unknown hook kind"):
        validator.validate_hook("on_enter", print)


def test_hook_must_be_callable(validator):
    with pytest.raises(ValidationError, match="on_exit hook must be callable"):
        validator.validate_hook(HookKind.EXIT, "print")
