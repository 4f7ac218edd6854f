# tests/conftest.py
# Copyright (c) 2024 Brad Edwards
# Licensed under the MIT License - see LICENSE file for details

from unittest.mock import MagicMock

import pytest
import pytest_asyncio

from hstate import MachineBuilder, MachineOptions
from hstate.runtime.graph import StateGraph
from hstate.core.validations import Validator
from tests.machines import Idle, TraceHook, player_builder


@pytest.fixture
def graph():
    """An empty, validating state graph."""
    return StateGraph(validator=Validator())


@pytest.fixture
def builder():
    """A builder with default options."""
    return MachineBuilder()


@pytest.fixture
def hook():
    """A hook object recording lifecycle traces."""
    return TraceHook()


@pytest.fixture
def diagnostics():
    """A diagnostic sink collecting reported errors."""
    sink = MagicMock()
    sink.errors = []
    sink.side_effect = sink.errors.append
    return sink


@pytest.fixture
def options(diagnostics):
    return MachineOptions(name="player", on_error=diagnostics)


@pytest_asyncio.fixture
async def player(hook, options):
    """A started player machine in Idle; stopped after the test."""
    machine = player_builder(hook, options).build()
    await machine.start(Idle())
    yield machine
    await machine.stop(cancel=True)
