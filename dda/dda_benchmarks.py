# dda/dda_benchmarks.py
from __future__ import annotations

import math
from typing import Callable, Dict

from .dda_bounds import ParameterVector
from .dda_types import PerformanceSample


# Classical test surfaces, each with global minimum 0 at (0, 0).

def sphere(x: float, y: float) -> float:
    return x * x + y * y


def rosenbrock(x: float, y: float) -> float:
    # shifted so the valley floor sits at the origin instead of (1, 1)
    x, y = x + 1.0, y + 1.0
    return 100.0 * (y - x * x) ** 2 + (x - 1.0) ** 2


def rastrigin(x: float, y: float) -> float:
    return (20.0 + (x * x - 10.0 * math.cos(2.0 * math.pi * x))
            + (y * y - 10.0 * math.cos(2.0 * math.pi * y)))


def ackley(x: float, y: float) -> float:
    t1 = -20.0 * math.exp(-0.2 * math.sqrt(0.5 * (x * x + y * y)))
    t2 = -math.exp(0.5 * (math.cos(2.0 * math.pi * x) + math.cos(2.0 * math.pi * y)))
    return t1 + t2 + 20.0 + math.e


FUNCTIONS: Dict[str, Callable[[float, float], float]] = {
    "sphere": sphere,
    "rosenbrock": rosenbrock,
    "rastrigin": rastrigin,
    "ackley": ackley,
}


class BenchmarkObjective:
    """
    Telemetry-blind objective: fitness = peak - f(candidate - optimum).

    The analytic optimum fitness is `peak`, reached at `optimum`. Handy for
    checking that a strategy actually converges.
    """

    def __init__(self, function: str = "sphere", optimum: ParameterVector | None = None,
                 peak: float = 1.0, scale: float = 1.0):
        if function not in FUNCTIONS:
            raise ValueError(f"BenchmarkObjective: function must be one of {sorted(FUNCTIONS)} (got {function!r})")
        if scale <= 0:
            raise ValueError(f"BenchmarkObjective: scale must be > 0 (got {scale})")
        self.name = function
        self.fn = FUNCTIONS[function]
        self.optimum = optimum or ParameterVector(0.0, 0.0)
        self.peak = float(peak)
        self.scale = float(scale)

    def evaluate(self, candidate: ParameterVector, sample: PerformanceSample, spawner_count: int) -> float:
        d = candidate - self.optimum
        return self.peak - self.fn(d.spawn_rate * self.scale, d.speed * self.scale)

    def sample_struggling(self, sample: PerformanceSample) -> bool:
        return False
