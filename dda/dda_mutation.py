# dda/dda_mutation.py
from __future__ import annotations

import random
from typing import Optional

from .dda_bounds import AXES, ParameterSpace, ParameterVector


class Mutator:
    """
    Gaussian-within-bounds mutator.

    Each gene mutates independently with probability `rate`; the jitter's
    stddev is `sigma_frac` of that gene's bound span, and the result is
    clamped back into bounds.
    """

    def __init__(self, space: ParameterSpace, sigma_frac: float = 0.11, rate: float = 0.1):
        self.space = space
        self.sigma_frac = sigma_frac
        self.rate = rate

    def mutate(self, genes: ParameterVector, rng: Optional[random.Random] = None,
               rate: Optional[float] = None) -> ParameterVector:
        rnd = rng or random
        p = self.rate if rate is None else rate
        vals = dict(zip(AXES, genes.as_tuple()))
        for axis in AXES:
            if rnd.random() >= p:
                continue
            lo, hi = self.space.range_for(axis)
            sigma = self.sigma_frac * (hi - lo)
            vals[axis] = self.space.clamp_value(axis, vals[axis] + rnd.gauss(0.0, sigma))
        return ParameterVector(**vals)
