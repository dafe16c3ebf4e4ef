# dda/dda_types.py
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Optional

from .dda_bounds import ParameterSpace


def _finite(owner: str, name: str, v) -> float:
    if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
        raise ValueError(f"{owner}: {name} must be a finite number (got {v!r})")
    return float(v)


def _unit(owner: str, name: str, v) -> None:
    if not 0.0 <= _finite(owner, name, v) <= 1.0:
        raise ValueError(f"{owner}: {name} must be in [0, 1] (got {v})")


def _positive(owner: str, name: str, v) -> None:
    if _finite(owner, name, v) <= 0.0:
        raise ValueError(f"{owner}: {name} must be > 0 (got {v})")


def _non_negative(owner: str, name: str, v) -> None:
    if _finite(owner, name, v) < 0.0:
        raise ValueError(f"{owner}: {name} must be >= 0 (got {v})")


# ------------ Telemetry ------------

@dataclass(frozen=True)
class PerformanceSample:
    """One evaluation interval's worth of player telemetry."""
    kill_rate: float
    health_fraction: float

    @classmethod
    def from_counters(cls, kills: float, elapsed_seconds: float, health_fraction: float,
                      epsilon: float = 0.01) -> "PerformanceSample":
        """
        kills: kills since the previous sample (negative deltas count as 0)
        elapsed_seconds: seconds since the previous sample
        health_fraction: current health / max health (clamped to [0,1])
        """
        for name, v in (("kills", kills), ("elapsed_seconds", elapsed_seconds),
                        ("health_fraction", health_fraction)):
            _finite("PerformanceSample", name, v)
        rate = max(0.0, float(kills)) / max(float(elapsed_seconds), epsilon)
        return cls(kill_rate=rate, health_fraction=max(0.0, min(1.0, float(health_fraction))))


# ------------ Hyperparameter bundles ------------

@dataclass(frozen=True)
class FitnessParams:
    """Fitness-evaluation knobs shared by every strategy."""
    base_kill_rate_per_spawner: float = 0.3
    no_kills_penalty: float = 0.1           # fitness when nothing dies but enemies are out
    kill_rate_weight: float = 0.7
    health_weight: float = 0.3
    low_health_threshold: float = 0.5
    low_kill_rate_threshold: float = 0.2    # coarse struggle check for the swarm bias
    struggling_ratio_threshold: float = 0.85
    outperform_ratio: float = 1.1
    epsilon: float = 0.01

    def __post_init__(self) -> None:
        o = "FitnessParams"
        _non_negative(o, "base_kill_rate_per_spawner", self.base_kill_rate_per_spawner)
        _finite(o, "no_kills_penalty", self.no_kills_penalty)
        _non_negative(o, "kill_rate_weight", self.kill_rate_weight)
        _non_negative(o, "health_weight", self.health_weight)
        _unit(o, "low_health_threshold", self.low_health_threshold)
        _non_negative(o, "low_kill_rate_threshold", self.low_kill_rate_threshold)
        _non_negative(o, "struggling_ratio_threshold", self.struggling_ratio_threshold)
        _non_negative(o, "outperform_ratio", self.outperform_ratio)
        _positive(o, "epsilon", self.epsilon)


@dataclass(frozen=True)
class SwarmParams:
    """PSO weights, interpolated from *_start to *_end across wave progress."""
    inertia_start: float = 0.7
    inertia_end: float = 0.4
    cognitive_start: float = 1.5
    cognitive_end: float = 0.8
    social_start: float = 0.8
    social_end: float = 1.5
    max_velocity_frac: float = 0.5      # per-axis velocity cap as fraction of span
    struggle_bias: float = 0.5          # global-best penalty scale while struggling

    def __post_init__(self) -> None:
        o = "SwarmParams"
        for name in ("inertia_start", "inertia_end", "cognitive_start", "cognitive_end",
                     "social_start", "social_end"):
            _non_negative(o, name, getattr(self, name))
        _positive(o, "max_velocity_frac", self.max_velocity_frac)
        _unit(o, "struggle_bias", self.struggle_bias)


@dataclass(frozen=True)
class PackParams:
    """GWO exploration coefficient decays a_start -> 0 over decay_window seconds."""
    decay_window: float = 30.0
    a_start: float = 2.0

    def __post_init__(self) -> None:
        _positive("PackParams", "decay_window", self.decay_window)
        _non_negative("PackParams", "a_start", self.a_start)


AGGRESSIVENESS_POLICIES = ("sine", "fixed", "performance")


@dataclass(frozen=True)
class GeneticParams:
    """GA operators plus the policy that modulates mutation/crossover rates."""
    elitism_rate: float = 0.1
    tournament_size: int = 3
    mutation_rate: float = 0.1          # used as-is by the 'fixed' policy
    crossover_rate: float = 0.7
    sigma_frac: float = 0.11            # gaussian stddev as fraction of each span
    aggressiveness: str = "sine"
    mutation_rate_min: float = 0.05
    mutation_rate_max: float = 0.3
    crossover_rate_min: float = 0.6
    crossover_rate_max: float = 0.9
    sine_slow: float = 0.2
    sine_fast: float = 0.5
    sine_phase: float = 0.5
    sine_fast_amp: float = 0.3
    sine_gain: float = 0.4

    def __post_init__(self) -> None:
        o = "GeneticParams"
        _unit(o, "elitism_rate", self.elitism_rate)
        if not isinstance(self.tournament_size, int) or self.tournament_size < 1:
            raise ValueError(f"{o}: tournament_size must be an int >= 1 (got {self.tournament_size!r})")
        for name in ("mutation_rate", "crossover_rate", "mutation_rate_min", "mutation_rate_max",
                     "crossover_rate_min", "crossover_rate_max"):
            _unit(o, name, getattr(self, name))
        _non_negative(o, "sigma_frac", self.sigma_frac)
        if self.aggressiveness not in AGGRESSIVENESS_POLICIES:
            raise ValueError(
                f"{o}: aggressiveness must be one of {AGGRESSIVENESS_POLICIES} (got {self.aggressiveness!r})"
            )
        for name in ("sine_slow", "sine_fast", "sine_phase", "sine_fast_amp", "sine_gain"):
            _finite(o, name, getattr(self, name))


# ------------ Controller configuration ------------

STRATEGY_ALIASES: Dict[str, str] = {
    "pso": "pso", "swarm": "pso",
    "gwo": "gwo", "pack": "gwo",
    "ga": "ga", "genetic": "ga",
}


def canonical_strategy(name: str) -> str:
    key = str(name).strip().lower()
    if key not in STRATEGY_ALIASES:
        raise ValueError(
            f"ControllerConfig: strategy must be one of {sorted(STRATEGY_ALIASES)} (got {name!r})"
        )
    return STRATEGY_ALIASES[key]


@dataclass(frozen=True)
class ControllerConfig:
    """Top-level configuration for an adaptive controller."""
    strategy: str = "pso"
    population_size: int = 10
    evaluation_interval: float = 2.0

    space: ParameterSpace = field(default_factory=ParameterSpace)
    fitness: FitnessParams = field(default_factory=FitnessParams)
    swarm: SwarmParams = field(default_factory=SwarmParams)
    pack: PackParams = field(default_factory=PackParams)
    genetic: GeneticParams = field(default_factory=GeneticParams)

    # smoothing toward the strategy's best
    big_drop_factor: float = 0.7
    small_up_factor: float = 0.1
    strong_outperform_ratio: float = 1.2
    struggle_floor_frac: float = 0.3
    snap_tolerance: float = 1e-3

    initial_spawn_rate: Optional[float] = None
    initial_speed: Optional[float] = None

    metrics_history_limit: int = 100
    track_memory: bool = False          # tracemalloc peak per evaluation
    seed: Optional[int] = None

    def __post_init__(self) -> None:
        o = "ControllerConfig"
        canonical_strategy(self.strategy)
        if isinstance(self.population_size, bool) or not isinstance(self.population_size, int) \
                or self.population_size <= 0:
            raise ValueError(f"{o}: population_size must be an int > 0 (got {self.population_size!r})")
        _positive(o, "evaluation_interval", self.evaluation_interval)
        _unit(o, "big_drop_factor", self.big_drop_factor)
        _unit(o, "small_up_factor", self.small_up_factor)
        _non_negative(o, "strong_outperform_ratio", self.strong_outperform_ratio)
        _unit(o, "struggle_floor_frac", self.struggle_floor_frac)
        _non_negative(o, "snap_tolerance", self.snap_tolerance)
        if self.initial_spawn_rate is not None:
            lo, hi = self.space.range_for("spawn_rate")
            if not lo <= _finite(o, "initial_spawn_rate", self.initial_spawn_rate) <= hi:
                raise ValueError(f"{o}: initial_spawn_rate must be within [{lo}, {hi}] (got {self.initial_spawn_rate})")
        if self.initial_speed is not None:
            lo, hi = self.space.range_for("speed")
            if not lo <= _finite(o, "initial_speed", self.initial_speed) <= hi:
                raise ValueError(f"{o}: initial_speed must be within [{lo}, {hi}] (got {self.initial_speed})")
        if not isinstance(self.metrics_history_limit, int) or self.metrics_history_limit < 1:
            raise ValueError(f"{o}: metrics_history_limit must be an int >= 1 (got {self.metrics_history_limit!r})")
        if not isinstance(self.track_memory, bool):
            raise ValueError(f"{o}: track_memory must be a bool (got {self.track_memory!r})")

    @property
    def strategy_kind(self) -> str:
        return canonical_strategy(self.strategy)
