# dda/dda_schedule.py
from __future__ import annotations

import math
from typing import Protocol, Tuple

from .dda_types import GeneticParams, PerformanceSample


def lerp(a: float, b: float, t: float) -> float:
    t = 0.0 if t < 0.0 else (1.0 if t > 1.0 else t)
    return a + (b - a) * t


def decay_coefficient(elapsed: float, window: float, start: float = 2.0) -> float:
    """GWO 'a': start at `start`, fall linearly to 0 after `window` seconds."""
    return start * (1.0 - lerp(0.0, 1.0, elapsed / window))


# ------------- GA aggressiveness policies -------------
# Each returns a value in [0, 1]; 0 = calm (low mutation, high crossover),
# 1 = aggressive (high mutation, low crossover).

class Aggressiveness(Protocol):
    def value(self, elapsed: float, sample: PerformanceSample | None) -> float: ...


class SineAggressiveness:
    """Two summed sine waves of elapsed time; ignores telemetry entirely."""

    def __init__(self, params: GeneticParams):
        self.p = params

    def value(self, elapsed: float, sample: PerformanceSample | None) -> float:
        p = self.p
        wave1 = math.sin(elapsed * p.sine_slow)
        wave2 = math.sin(elapsed * p.sine_fast + p.sine_phase) * p.sine_fast_amp
        return lerp(0.0, 1.0, (wave1 + wave2) * p.sine_gain + 0.5)


class FixedAggressiveness:
    """Constant rates straight from GeneticParams.mutation_rate / crossover_rate."""

    def __init__(self, params: GeneticParams):
        self.p = params

    def value(self, elapsed: float, sample: PerformanceSample | None) -> float:
        return 0.5

    def rates(self) -> Tuple[float, float]:
        return self.p.mutation_rate, self.p.crossover_rate


class PerformanceAggressiveness:
    """Explore harder the more health the player has lost."""

    def __init__(self, params: GeneticParams):
        self.p = params

    def value(self, elapsed: float, sample: PerformanceSample | None) -> float:
        if sample is None:
            return 0.5
        return lerp(0.0, 1.0, 1.0 - sample.health_fraction)


def make_aggressiveness(params: GeneticParams) -> Aggressiveness:
    if params.aggressiveness == "fixed":
        return FixedAggressiveness(params)
    if params.aggressiveness == "performance":
        return PerformanceAggressiveness(params)
    return SineAggressiveness(params)


def rates_for(params: GeneticParams, policy: Aggressiveness, elapsed: float,
              sample: PerformanceSample | None) -> Tuple[float, float, float]:
    """Return (mutation_rate, crossover_rate, aggressiveness)."""
    if isinstance(policy, FixedAggressiveness):
        m, c = policy.rates()
        return m, c, policy.value(elapsed, sample)
    a = policy.value(elapsed, sample)
    return (lerp(params.mutation_rate_min, params.mutation_rate_max, a),
            lerp(params.crossover_rate_max, params.crossover_rate_min, a),
            a)
