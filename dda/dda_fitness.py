# dda/dda_fitness.py
from __future__ import annotations

from typing import Protocol

from .dda_bounds import ParameterSpace, ParameterVector
from .dda_types import FitnessParams, PerformanceSample


class Objective(Protocol):
    """What a population strategy needs to score its candidates."""

    def evaluate(self, candidate: ParameterVector, sample: PerformanceSample, spawner_count: int) -> float: ...

    def sample_struggling(self, sample: PerformanceSample) -> bool: ...


def _clamp01(x: float) -> float:
    return max(0.0, min(1.0, x))


class FitnessEvaluator:
    """
    Scores a candidate (spawn_rate, speed) against the latest telemetry.

    Higher is better. Two regimes:
      - struggling: reward easier parameters (1 - spawn_n * speed_n)
      - otherwise: reward parameters whose expected kill rate tracks the
        observed one, with a nudge upward when the player outperforms.
    The kill-rate score is blended with the player's health fraction.
    """

    def __init__(self, space: ParameterSpace, params: FitnessParams | None = None):
        self.space = space
        self.params = params or FitnessParams()

    def expected_kill_rate(self, candidate: ParameterVector, spawner_count: int) -> float:
        p = self.params
        return (p.base_kill_rate_per_spawner * max(0, int(spawner_count))
                * (candidate.spawn_rate / max(self.space.max_spawn_rate, p.epsilon))
                * (candidate.speed / max(self.space.max_speed, p.epsilon)))

    def performance_ratio(self, kill_rate: float, expected: float) -> float:
        return kill_rate / max(expected, self.params.epsilon)

    def is_struggling(self, sample: PerformanceSample, candidate: ParameterVector, spawner_count: int) -> bool:
        ratio = self.performance_ratio(sample.kill_rate, self.expected_kill_rate(candidate, spawner_count))
        return (sample.health_fraction < self.params.low_health_threshold
                or ratio < self.params.struggling_ratio_threshold)

    def sample_struggling(self, sample: PerformanceSample) -> bool:
        return (sample.health_fraction < self.params.low_health_threshold
                or sample.kill_rate < self.params.low_kill_rate_threshold)

    def evaluate(self, candidate: ParameterVector, sample: PerformanceSample, spawner_count: int) -> float:
        p = self.params
        kill_rate = sample.kill_rate

        # enemies are out but nobody is dying: never a good place to be
        if kill_rate <= 0 and candidate.spawn_rate > self.space.min_spawn_rate:
            return p.no_kills_penalty

        expected = self.expected_kill_rate(candidate, spawner_count)
        ratio = self.performance_ratio(kill_rate, expected)
        struggling = sample.health_fraction < p.low_health_threshold or ratio < p.struggling_ratio_threshold

        n = self.space.normalize(candidate)
        intensity = n.spawn_rate * n.speed
        if struggling:
            score = 1.0 - intensity
        else:
            score = 1.0 - (kill_rate - expected) ** 2
            if ratio > p.outperform_ratio:
                # harder candidates must rank higher whatever the sign of the score
                if score >= 0:
                    score *= 0.8 + 0.2 * intensity
                else:
                    score *= 1.2 - 0.2 * intensity

        return score * p.kill_rate_weight + _clamp01(sample.health_fraction) * p.health_weight
