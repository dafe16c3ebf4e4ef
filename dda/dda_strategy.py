# dda/dda_strategy.py
from __future__ import annotations

import random
from typing import Callable, List, Optional, Protocol

from .dda_bounds import ParameterVector
from .dda_fitness import Objective
from .dda_genetic import GeneticStrategy
from .dda_pack import PackStrategy
from .dda_swarm import SwarmStrategy
from .dda_types import ControllerConfig, PerformanceSample


class DifficultyStrategy(Protocol):
    """The only surface the controller sees of an optimizer."""

    name: str

    def step(self, sample: PerformanceSample, spawner_count: int) -> None: ...

    def get_best(self) -> ParameterVector: ...

    def on_wave_start(self, progress: float) -> None: ...

    def positions(self) -> List[ParameterVector]: ...

    @property
    def best_fitness(self) -> float: ...


def build_strategy(cfg: ControllerConfig, objective: Objective, rng: random.Random,
                   clock: Optional[Callable[[], float]] = None) -> DifficultyStrategy:
    kind = cfg.strategy_kind
    if kind == "pso":
        return SwarmStrategy(cfg.space, objective, cfg.population_size, cfg.swarm, rng)
    if kind == "gwo":
        return PackStrategy(cfg.space, objective, cfg.population_size, cfg.pack, rng, clock)
    return GeneticStrategy(cfg.space, objective, cfg.population_size, cfg.genetic, rng, clock)
