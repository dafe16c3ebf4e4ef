# dda/dda_crossover.py
from __future__ import annotations

import random
from typing import Optional

from .dda_bounds import ParameterSpace, ParameterVector


class CrossoverOperator:
    """
    Per-gene uniform crossover: with probability `rate` the child takes each
    gene from either parent at random, otherwise it is a copy of parent A.
    """

    def __init__(self, space: ParameterSpace, rate: float = 0.7):
        self.space = space
        self.rate = rate

    def crossover(self, a: ParameterVector, b: ParameterVector, rng: Optional[random.Random] = None,
                  rate: Optional[float] = None) -> ParameterVector:
        rnd = rng or random
        p = self.rate if rate is None else rate
        if rnd.random() >= p:
            return a
        child = ParameterVector(
            a.spawn_rate if rnd.random() < 0.5 else b.spawn_rate,
            a.speed if rnd.random() < 0.5 else b.speed,
        )
        return self.space.clamp(child)
