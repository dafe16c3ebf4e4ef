# dda/dda_pack.py
from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .dda_bounds import ParameterSpace, ParameterVector
from .dda_fitness import Objective
from .dda_schedule import decay_coefficient
from .dda_types import PackParams, PerformanceSample


@dataclass
class Wolf:
    position: ParameterVector
    fitness: float = -math.inf

    def copy(self) -> "Wolf":
        return Wolf(self.position, self.fitness)


class PackStrategy:
    """
    Grey wolf optimizer.

    Leaders (alpha, beta, delta) are re-derived from a full sort at the start
    of every step and held as copies, so a wolf moving never drags a leader
    with it. The exploration coefficient `a` decays with elapsed clock time,
    not with the number of steps.
    """

    name = "gwo"

    def __init__(self, space: ParameterSpace, objective: Objective, size: int,
                 params: PackParams | None = None, rng: random.Random | None = None,
                 clock: Optional[Callable[[], float]] = None):
        if size < 1:
            raise ValueError(f"PackStrategy: size must be >= 1 (got {size})")
        self.space = space
        self.objective = objective
        self.params = params or PackParams()
        self._rng = rng or random.Random()
        self._clock = clock or time.monotonic
        self._t0: Optional[float] = None

        self.wolves: List[Wolf] = [Wolf(space.random_point(self._rng)) for _ in range(size)]
        self.alpha = Wolf(space.midpoint())
        self.beta = self.alpha.copy()
        self.delta = self.alpha.copy()
        self.a = self.params.a_start

    # ------------- Public -------------

    def on_wave_start(self, progress: float) -> None:
        # the decay runs on its own clock window; wave progress does not touch it
        return None

    def step(self, sample: PerformanceSample, spawner_count: int) -> None:
        now = self._clock()
        if self._t0 is None:
            self._t0 = now
        self.a = decay_coefficient(now - self._t0, self.params.decay_window, self.params.a_start)

        for w in self.wolves:
            w.fitness = self.objective.evaluate(w.position, sample, spawner_count)
        self._rank_leaders()

        for w in self.wolves:
            pulls = [self._pull(w, leader) for leader in (self.alpha, self.beta, self.delta)]
            w.position = self.space.clamp((pulls[0] + pulls[1] + pulls[2]) * (1.0 / 3.0))
            w.fitness = self.objective.evaluate(w.position, sample, spawner_count)
            self._promote(w)

    def get_best(self) -> ParameterVector:
        return self.alpha.position

    @property
    def best_fitness(self) -> float:
        return self.alpha.fitness

    @property
    def aggressiveness(self) -> float:
        # lower 'a' means more exploitation
        return 1.0 - self.a / max(self.params.a_start, 1e-9)

    def positions(self) -> List[ParameterVector]:
        return [w.position for w in self.wolves]

    # ------------- Core steps -------------

    def _rank_leaders(self) -> None:
        ranked = sorted(self.wolves, key=lambda w: w.fitness, reverse=True)
        # packs smaller than three reuse the weakest leader available
        self.alpha = ranked[0].copy()
        self.beta = ranked[min(1, len(ranked) - 1)].copy()
        self.delta = ranked[min(2, len(ranked) - 1)].copy()

    def _pull(self, wolf: Wolf, leader: Wolf) -> ParameterVector:
        r1 = self._rng.random()
        r2 = self._rng.random()
        A = 2.0 * self.a * r1 - self.a
        C = 2.0 * r2
        d = leader.position * C - wolf.position
        dist = ParameterVector(abs(d.spawn_rate), abs(d.speed))
        return leader.position - dist * A

    def _promote(self, wolf: Wolf) -> None:
        if wolf.fitness > self.alpha.fitness:
            self.delta = self.beta
            self.beta = self.alpha
            self.alpha = wolf.copy()
        elif wolf.fitness > self.beta.fitness:
            self.delta = self.beta
            self.beta = wolf.copy()
        elif wolf.fitness > self.delta.fitness:
            self.delta = wolf.copy()
