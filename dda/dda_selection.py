# dda/dda_selection.py
from __future__ import annotations

import random
from typing import List, Optional, Sequence, TypeVar

T = TypeVar("T")


class Selector:
    """Tournament selection over anything carrying a `.fitness` (higher is better)."""

    def __init__(self, tourney_size: int = 3):
        if tourney_size < 1:
            raise ValueError(f"Selector: tourney_size must be >= 1 (got {tourney_size})")
        self.tourney_size = tourney_size

    def tournament(self, pop: Sequence[T], k: int = 1, rng: Optional[random.Random] = None) -> List[T]:
        """
        Draw `tourney_size` contestants with replacement, keep the fittest.
        Repeats k times. Returns references; callers copy what they keep.
        """
        if not pop:
            raise ValueError("Selector.tournament: population is empty")
        rnd = rng or random
        size = min(self.tourney_size, len(pop))
        selected: List[T] = []
        for _ in range(k):
            best = pop[rnd.randrange(len(pop))]
            for _ in range(size - 1):
                cand = pop[rnd.randrange(len(pop))]
                if cand.fitness > best.fitness:  # type: ignore[attr-defined]
                    best = cand
            selected.append(best)
        return selected
