# dda/dda_metrics.py
from __future__ import annotations

import statistics as stats
from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Optional

from .dda_bounds import ParameterVector
from .dda_timing import StepTimer
from .dda_types import PerformanceSample


@dataclass(frozen=True)
class WindowSummary:
    samples: int
    avg_fitness: float
    parameter_variance: float


def parameter_variance(points: List[ParameterVector]) -> float:
    """Mean squared distance from the centroid."""
    if not points:
        return 0.0
    mx = sum(p.spawn_rate for p in points) / len(points)
    my = sum(p.speed for p in points) / len(points)
    return sum((p.spawn_rate - mx) ** 2 + (p.speed - my) ** 2 for p in points) / len(points)


class ControllerMetrics:
    """
    Bookkeeping for one controller: evaluation/skip counters, step timing,
    and a fitness/parameter window flushed every `history_limit` records.
    """

    def __init__(self, history_limit: int = 100, track_memory: bool = False):
        self.history_limit = history_limit
        self.evaluations = 0
        self.emitted = 0
        self.skips: Counter = Counter()
        self.timer = StepTimer(track_memory)

        self._fitness: List[float] = []
        self._params: List[ParameterVector] = []
        self.windows: List[WindowSummary] = []

        self.last_sample: Optional[PerformanceSample] = None
        self.last_ratio = 0.0
        self.last_struggling = False
        self.last_best_fitness = 0.0

    def skip(self, reason: str) -> None:
        self.skips[reason] += 1

    def record(self, fitness: float, params: ParameterVector) -> Optional[WindowSummary]:
        """Returns the flushed window summary when the window fills up."""
        self._fitness.append(fitness)
        self._params.append(params)
        if len(self._fitness) < self.history_limit:
            return None
        summary = WindowSummary(
            samples=len(self._fitness),
            avg_fitness=stats.fmean(self._fitness),
            parameter_variance=parameter_variance(self._params),
        )
        self.windows.append(summary)
        self._fitness.clear()
        self._params.clear()
        return summary

    def snapshot(self) -> Dict[str, float]:
        out: Dict[str, float] = {
            "evaluations": float(self.evaluations),
            "emitted": float(self.emitted),
            "avg_step_ms": self.timer.average_ms,
            "worst_step_ms": self.timer.worst_ms,
            "avg_step_kb": self.timer.average_kb,
            "worst_step_kb": self.timer.worst_kb,
            "last_ratio": self.last_ratio,
            "last_best_fitness": self.last_best_fitness,
        }
        for reason, n in self.skips.items():
            out[f"skipped_{reason}"] = float(n)
        return out
