# dda/dda_bounds.py
from __future__ import annotations

import math
import random
from dataclasses import dataclass
from typing import Tuple

AXES = ("spawn_rate", "speed")


@dataclass(frozen=True)
class ParameterVector:
    """A point in the (spawn_rate, speed) control space."""
    spawn_rate: float
    speed: float

    def __add__(self, other: "ParameterVector") -> "ParameterVector":
        return ParameterVector(self.spawn_rate + other.spawn_rate, self.speed + other.speed)

    def __sub__(self, other: "ParameterVector") -> "ParameterVector":
        return ParameterVector(self.spawn_rate - other.spawn_rate, self.speed - other.speed)

    def __mul__(self, k: float) -> "ParameterVector":
        return ParameterVector(self.spawn_rate * k, self.speed * k)

    __rmul__ = __mul__

    def as_tuple(self) -> Tuple[float, float]:
        return self.spawn_rate, self.speed

    def is_finite(self) -> bool:
        return math.isfinite(self.spawn_rate) and math.isfinite(self.speed)


def _clamp(lo: float, hi: float, val: float) -> float:
    # NaN compares false against everything; pin it to the easy end
    if math.isnan(val):
        return lo
    return max(lo, min(hi, float(val)))


@dataclass(frozen=True)
class ParameterSpace:
    """Bounded two-dimensional control domain."""
    min_spawn_rate: float = 0.5
    max_spawn_rate: float = 1.0
    min_speed: float = 0.3
    max_speed: float = 1.0
    epsilon: float = 1e-9

    def __post_init__(self) -> None:
        for name in ("min_spawn_rate", "max_spawn_rate", "min_speed", "max_speed"):
            v = getattr(self, name)
            if not isinstance(v, (int, float)) or not math.isfinite(v):
                raise ValueError(f"ParameterSpace: {name} must be a finite number (got {v!r})")
        if self.min_spawn_rate > self.max_spawn_rate:
            raise ValueError(
                f"ParameterSpace: min_spawn_rate must be <= max_spawn_rate "
                f"(got {self.min_spawn_rate} > {self.max_spawn_rate})"
            )
        if self.min_speed > self.max_speed:
            raise ValueError(
                f"ParameterSpace: min_speed must be <= max_speed "
                f"(got {self.min_speed} > {self.max_speed})"
            )
        if self.epsilon <= 0:
            raise ValueError(f"ParameterSpace: epsilon must be > 0 (got {self.epsilon})")

    # ------------- ranges -------------

    def range_for(self, axis: str) -> Tuple[float, float]:
        if axis == "spawn_rate":
            return self.min_spawn_rate, self.max_spawn_rate
        if axis == "speed":
            return self.min_speed, self.max_speed
        raise KeyError(axis)

    def span(self) -> ParameterVector:
        return ParameterVector(self.max_spawn_rate - self.min_spawn_rate, self.max_speed - self.min_speed)

    @property
    def lower(self) -> ParameterVector:
        return ParameterVector(self.min_spawn_rate, self.min_speed)

    @property
    def upper(self) -> ParameterVector:
        return ParameterVector(self.max_spawn_rate, self.max_speed)

    # ------------- clamping -------------

    def clamp_value(self, axis: str, val: float) -> float:
        lo, hi = self.range_for(axis)
        return _clamp(lo, hi, val)

    def clamp(self, v: ParameterVector) -> ParameterVector:
        return ParameterVector(
            _clamp(self.min_spawn_rate, self.max_spawn_rate, v.spawn_rate),
            _clamp(self.min_speed, self.max_speed, v.speed),
        )

    def contains(self, v: ParameterVector) -> bool:
        return (self.min_spawn_rate <= v.spawn_rate <= self.max_spawn_rate
                and self.min_speed <= v.speed <= self.max_speed)

    # ------------- normalisation -------------

    def normalize(self, v: ParameterVector) -> ParameterVector:
        """Map into [0,1]^2. A zero-width axis normalises to 0."""
        s = self.span()
        return ParameterVector(
            (v.spawn_rate - self.min_spawn_rate) / max(s.spawn_rate, self.epsilon),
            (v.speed - self.min_speed) / max(s.speed, self.epsilon),
        )

    def denormalize(self, n: ParameterVector) -> ParameterVector:
        s = self.span()
        return ParameterVector(
            self.min_spawn_rate + n.spawn_rate * s.spawn_rate,
            self.min_speed + n.speed * s.speed,
        )

    def point_at_fraction(self, frac: float) -> ParameterVector:
        return self.denormalize(ParameterVector(frac, frac))

    def midpoint(self) -> ParameterVector:
        return self.point_at_fraction(0.5)

    def random_point(self, rng: random.Random) -> ParameterVector:
        return ParameterVector(
            rng.uniform(self.min_spawn_rate, self.max_spawn_rate),
            rng.uniform(self.min_speed, self.max_speed),
        )
