# dda/dda_swarm.py
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import List, Tuple

from .dda_bounds import ParameterSpace, ParameterVector
from .dda_fitness import Objective
from .dda_schedule import lerp
from .dda_types import PerformanceSample, SwarmParams


@dataclass
class Particle:
    position: ParameterVector
    velocity: ParameterVector
    best_position: ParameterVector
    fitness: float = -math.inf


class SwarmStrategy:
    """
    Particle swarm over the (spawn_rate, speed) plane.

    One step() = find the global best under the current sample, move every
    particle, then refresh personal bests. Weights follow wave progress from
    exploration (high inertia/cognitive) to exploitation (high social).
    """

    name = "pso"

    def __init__(self, space: ParameterSpace, objective: Objective, size: int,
                 params: SwarmParams | None = None, rng: random.Random | None = None):
        if size < 1:
            raise ValueError(f"SwarmStrategy: size must be >= 1 (got {size})")
        self.space = space
        self.objective = objective
        self.params = params or SwarmParams()
        self._rng = rng or random.Random()

        self.inertia = self.params.inertia_start
        self.cognitive = self.params.cognitive_start
        self.social = self.params.social_start

        self.particles: List[Particle] = self._init_particles(size)
        self._best = space.midpoint()
        self._best_fitness = -math.inf

    # ------------- Public -------------

    def on_wave_start(self, progress: float) -> None:
        p = self.params
        self.inertia = lerp(p.inertia_start, p.inertia_end, progress)
        self.cognitive = lerp(p.cognitive_start, p.cognitive_end, progress)
        self.social = lerp(p.social_start, p.social_end, progress)

    def step(self, sample: PerformanceSample, spawner_count: int) -> None:
        struggling = self.objective.sample_struggling(sample)
        global_best, _ = self._global_best(sample, spawner_count, struggling)

        for pt in self.particles:
            self._move(pt, global_best)
            pt.fitness = self.objective.evaluate(pt.position, sample, spawner_count)
            # personal best is re-scored under the same sample so the comparison is fair
            if pt.fitness > self.objective.evaluate(pt.best_position, sample, spawner_count):
                pt.best_position = pt.position

        self._best, self._best_fitness = self._global_best(sample, spawner_count, struggling)

    def get_best(self) -> ParameterVector:
        return self._best

    @property
    def best_fitness(self) -> float:
        return self._best_fitness

    def positions(self) -> List[ParameterVector]:
        return [pt.position for pt in self.particles]

    # ------------- Core steps -------------

    def _init_particles(self, size: int) -> List[Particle]:
        vmax = self.space.span() * self.params.max_velocity_frac
        out: List[Particle] = []
        for _ in range(size):
            pos = self.space.random_point(self._rng)
            vel = ParameterVector(self._rng.uniform(-1.0, 1.0) * vmax.spawn_rate,
                                  self._rng.uniform(-1.0, 1.0) * vmax.speed)
            out.append(Particle(position=pos, velocity=vel, best_position=pos))
        return out

    def _biased(self, pos: ParameterVector, fitness: float, struggling: bool) -> float:
        if not struggling:
            return fitness
        n = self.space.normalize(pos)
        penalty = (n.spawn_rate + n.speed) / 2.0
        return fitness * (1.0 - penalty * self.params.struggle_bias)

    def _global_best(self, sample: PerformanceSample, spawner_count: int,
                     struggling: bool) -> Tuple[ParameterVector, float]:
        best_pos = self.particles[0].position
        best_fit = -math.inf
        for pt in self.particles:
            fit = self._biased(pt.position, self.objective.evaluate(pt.position, sample, spawner_count), struggling)
            if fit > best_fit:
                best_pos, best_fit = pt.position, fit
        return best_pos, best_fit

    def _move(self, pt: Particle, global_best: ParameterVector) -> None:
        r1 = self._rng.random()
        r2 = self._rng.random()
        v = (pt.velocity * self.inertia
             + (pt.best_position - pt.position) * (self.cognitive * r1)
             + (global_best - pt.position) * (self.social * r2))

        vmax = self.space.span() * self.params.max_velocity_frac
        pt.velocity = ParameterVector(max(-vmax.spawn_rate, min(vmax.spawn_rate, v.spawn_rate)),
                                      max(-vmax.speed, min(vmax.speed, v.speed)))
        pt.position = self.space.clamp(pt.position + pt.velocity)
