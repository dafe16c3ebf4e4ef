"""Adaptive difficulty controller: population optimizers tuning spawn rate and enemy speed."""

from .dda_bounds import ParameterSpace, ParameterVector
from .dda_controller import Actuator, AdaptiveController, TelemetrySource
from .dda_gate import WaveEventBus, WaveState
from .dda_io import load_config, save_config
from .dda_types import ControllerConfig, PerformanceSample

__all__ = [
    "Actuator",
    "AdaptiveController",
    "ControllerConfig",
    "ParameterSpace",
    "ParameterVector",
    "PerformanceSample",
    "TelemetrySource",
    "WaveEventBus",
    "WaveState",
    "load_config",
    "save_config",
]
