# tests/conftest.py
import random

import pytest

from dda.dda_types import ControllerConfig
from helpers import RecordingActuator, StubTelemetry


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def cfg():
    return ControllerConfig(seed=7)


@pytest.fixture
def telemetry():
    return StubTelemetry()


@pytest.fixture
def actuator():
    return RecordingActuator()
