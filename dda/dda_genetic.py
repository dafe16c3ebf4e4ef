# dda/dda_genetic.py
from __future__ import annotations

import math
import random
import time
from dataclasses import dataclass
from typing import Callable, List, Optional

from .dda_bounds import ParameterSpace, ParameterVector
from .dda_crossover import CrossoverOperator
from .dda_fitness import Objective
from .dda_mutation import Mutator
from .dda_schedule import make_aggressiveness, rates_for
from .dda_selection import Selector
from .dda_types import GeneticParams, PerformanceSample


@dataclass
class Individual:
    genes: ParameterVector
    fitness: float = -math.inf


class GeneticStrategy:
    """
    Generational GA: elitism, tournament selection, uniform crossover,
    gaussian mutation. One step() is one generation.

    Mutation/crossover rates are re-read from the aggressiveness policy at the
    start of each generation.
    """

    name = "ga"

    def __init__(self, space: ParameterSpace, objective: Objective, size: int,
                 params: GeneticParams | None = None, rng: random.Random | None = None,
                 clock: Optional[Callable[[], float]] = None):
        if size < 1:
            raise ValueError(f"GeneticStrategy: size must be >= 1 (got {size})")
        self.space = space
        self.objective = objective
        self.params = params or GeneticParams()
        self._rng = rng or random.Random()
        self._clock = clock or time.monotonic
        self._t0: Optional[float] = None

        self.selector = Selector(self.params.tournament_size)
        self.crosser = CrossoverOperator(space, self.params.crossover_rate)
        self.mutator = Mutator(space, self.params.sigma_frac, self.params.mutation_rate)
        self.policy = make_aggressiveness(self.params)

        self.mutation_rate = self.params.mutation_rate
        self.crossover_rate = self.params.crossover_rate
        self.aggressiveness = 0.5

        self.population: List[Individual] = [Individual(space.random_point(self._rng)) for _ in range(size)]
        self._best = Individual(space.midpoint())

    # ------------- Public -------------

    def on_wave_start(self, progress: float) -> None:
        return None

    def step(self, sample: PerformanceSample, spawner_count: int) -> None:
        now = self._clock()
        if self._t0 is None:
            self._t0 = now
        self.mutation_rate, self.crossover_rate, self.aggressiveness = rates_for(
            self.params, self.policy, now - self._t0, sample)

        # cached fitness is stale once the sample changes
        for ind in self.population:
            ind.fitness = self.objective.evaluate(ind.genes, sample, spawner_count)

        ranked = sorted(self.population, key=lambda i: i.fitness, reverse=True)
        n_elite = max(1, int(math.floor(len(ranked) * self.params.elitism_rate)))

        next_gen: List[Individual] = [Individual(i.genes, i.fitness) for i in ranked[:n_elite]]
        while len(next_gen) < len(self.population):
            p1, p2 = self.selector.tournament(ranked, k=2, rng=self._rng)
            genes = self.crosser.crossover(p1.genes, p2.genes, rng=self._rng, rate=self.crossover_rate)
            genes = self.mutator.mutate(genes, rng=self._rng, rate=self.mutation_rate)
            next_gen.append(Individual(genes, self.objective.evaluate(genes, sample, spawner_count)))

        # same objects, same size; only their contents change
        for ind, new in zip(self.population, next_gen):
            ind.genes, ind.fitness = new.genes, new.fitness

        best = max(self.population, key=lambda i: i.fitness)
        self._best = Individual(best.genes, best.fitness)

    def get_best(self) -> ParameterVector:
        return self._best.genes

    @property
    def best_fitness(self) -> float:
        return self._best.fitness

    def positions(self) -> List[ParameterVector]:
        return [i.genes for i in self.population]
