# dda/dda_controller.py
from __future__ import annotations

import math
import random
from typing import Callable, Optional, Protocol, Tuple

from .dda_bounds import ParameterVector
from .dda_fitness import FitnessEvaluator, Objective
from .dda_gate import Transition, WaveEvent, WaveEventBus, WaveGate, WaveState
from .dda_metrics import ControllerMetrics
from .dda_schedule import lerp
from .dda_strategy import DifficultyStrategy, build_strategy
from .dda_types import ControllerConfig, PerformanceSample


class TelemetrySource(Protocol):
    def get_kills_since_wave_start(self) -> int: ...

    def get_elapsed_wave_seconds(self) -> float: ...

    def get_health_fraction(self) -> float: ...

    def get_active_spawner_count(self) -> int: ...

    def is_in_cooldown(self) -> bool: ...


class Actuator(Protocol):
    def set_spawn_rate(self, value: float) -> None: ...

    def set_enemy_speed(self, value: float) -> None: ...


class AdaptiveController:
    """
    Periodic difficulty loop.

    The host calls tick(dt) every frame. Every `evaluation_interval` seconds of
    active wave time the controller samples telemetry, advances its strategy
    one step, smooths toward the strategy's best candidate and pushes the
    result to the actuator. Lifecycle events are queued and applied at the
    start of the next tick.

    Nothing raised by collaborators escapes tick(): the tick is skipped, a
    warning is printed and the last applied output stays in force.
    """

    def __init__(
        self,
        cfg: ControllerConfig,
        telemetry: Optional[TelemetrySource],
        actuator: Optional[Actuator],
        total_waves: int = 5,
        events: Optional[WaveEventBus] = None,
        objective: Optional[Objective] = None,
        strategy: Optional[DifficultyStrategy] = None,
        rng: Optional[random.Random] = None,
        verbose: int = 0,
    ):
        self.cfg = cfg
        self.space = cfg.space
        self.telemetry = telemetry
        self.actuator = actuator
        self.verbose = int(verbose)
        self._log = self._setup_logger(2)
        self._info = self._setup_logger(1)

        self.rng = rng or random.Random(cfg.seed)
        self.elapsed = 0.0
        self.evaluator = FitnessEvaluator(cfg.space, cfg.fitness)
        self.objective: Objective = objective or self.evaluator
        self.strategy: DifficultyStrategy = strategy or build_strategy(
            cfg, self.objective, self.rng, clock=lambda: self.elapsed)

        self.gate = WaveGate(total_waves, warn=self._warn)
        self.metrics = ControllerMetrics(cfg.metrics_history_limit, cfg.track_memory)

        mid = self.space.midpoint()
        self.output = ParameterVector(
            cfg.initial_spawn_rate if cfg.initial_spawn_rate is not None else mid.spawn_rate,
            cfg.initial_speed if cfg.initial_speed is not None else mid.speed,
        )

        self._timer = 0.0
        self._kill_baseline = 0
        self._last_wave_seconds = 0.0

        self._unsubscribe: Optional[Callable[[], None]] = None
        if events is not None:
            self._unsubscribe = events.subscribe(self._on_event)

    # ------------- Public -------------

    @property
    def state(self) -> WaveState:
        return self.gate.state

    def on_wave_start(self, wave_index: int) -> None:
        self.gate.notify_wave_start(wave_index)

    def on_wave_end(self, wave_index: int) -> None:
        self.gate.notify_wave_end(wave_index)

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def tick(self, dt: float) -> bool:
        """Advance by dt seconds. Returns True when a new output was emitted."""
        if isinstance(dt, bool) or not isinstance(dt, (int, float)) or not math.isfinite(dt) or dt < 0:
            self._warn(f"ignoring tick with bad dt={dt!r}")
            return False
        self.elapsed += dt

        for t in self.gate.apply_pending():
            self._on_transition(t)

        if not self.gate.is_active:
            self.metrics.skip(self.gate.state.value)
            return False

        if self.telemetry is not None:
            try:
                cooling = bool(self.telemetry.is_in_cooldown())
            except Exception as e:
                self.metrics.skip("bad_telemetry")
                self._warn(f"cooldown flag unavailable: {e}")
                return False
            if cooling:
                self.metrics.skip("spawner_cooldown")
                return False

        self._timer += dt
        if self._timer < self.cfg.evaluation_interval:
            return False
        self._timer = 0.0
        return self._evaluate()

    # ------------- Core steps -------------

    def _evaluate(self) -> bool:
        try:
            sample, spawners = self._read_sample()
        except Exception as e:
            self.metrics.skip("bad_telemetry")
            self._warn(f"telemetry unavailable this tick: {e}")
            return False

        if self.actuator is None:
            self.metrics.skip("no_actuator")
            self._warn("no actuator attached; holding output")
            return False

        try:
            with self.metrics.timer.measure(self.strategy.name):
                self.strategy.step(sample, spawners)
                best = self.strategy.get_best()
        except Exception as e:
            self.metrics.skip("strategy_error")
            self._warn(f"{self.strategy.name} step failed: {e}")
            return False
        self.metrics.evaluations += 1

        new, struggling, ratio = self._smooth(best, sample, spawners)
        if not new.is_finite():
            self.metrics.skip("non_finite")
            self._warn(f"discarding non-finite output {new}")
            return False

        try:
            self.actuator.set_spawn_rate(new.spawn_rate)
            self.actuator.set_enemy_speed(new.speed)
        except Exception as e:
            self.metrics.skip("actuator_error")
            self._warn(f"actuator rejected update: {e}")
            return False

        self.output = new
        self.metrics.emitted += 1
        self.metrics.last_sample = sample
        self.metrics.last_ratio = ratio
        self.metrics.last_struggling = struggling
        self.metrics.last_best_fitness = self.strategy.best_fitness

        self._log(f"[dda_controller] wave {self.gate.current_wave}/{self.gate.total_waves} "
                  f"kill/s={sample.kill_rate:.2f} hp={sample.health_fraction:.2f} ratio={ratio:.2f} "
                  f"struggling={struggling} best=({best.spawn_rate:.3f}, {best.speed:.3f}) "
                  f"-> spawn={new.spawn_rate:.3f} speed={new.speed:.3f}")

        window = self.metrics.record(self.strategy.best_fitness, best)
        if window is not None:
            self._info(f"[dda_controller] metrics: avg fitness={window.avg_fitness:.3f} "
                       f"param variance={window.parameter_variance:.4f} | "
                       + self.metrics.timer.pretty_line())
        return True

    def _read_sample(self) -> Tuple[PerformanceSample, int]:
        t = self.telemetry
        if t is None:
            raise RuntimeError("no telemetry source attached")
        kills = t.get_kills_since_wave_start()
        wave_secs = t.get_elapsed_wave_seconds()
        health = t.get_health_fraction()
        spawners = t.get_active_spawner_count()

        for name, v in (("kills", kills), ("elapsed", wave_secs), ("health", health), ("spawners", spawners)):
            if isinstance(v, bool) or not isinstance(v, (int, float)) or not math.isfinite(v):
                raise ValueError(f"{name} is not a finite number ({v!r})")

        delta = kills - self._kill_baseline
        elapsed = wave_secs - self._last_wave_seconds
        if elapsed <= 0:
            elapsed = self.cfg.evaluation_interval
        self._kill_baseline = kills
        self._last_wave_seconds = wave_secs

        sample = PerformanceSample.from_counters(delta, elapsed, health, self.cfg.fitness.epsilon)
        return sample, max(0, int(spawners))

    def _smooth(self, best: ParameterVector, sample: PerformanceSample,
                spawners: int) -> Tuple[ParameterVector, bool, float]:
        cfg = self.cfg
        cur = self.output
        struggling = self.evaluator.is_struggling(sample, cur, spawners)
        ratio = self.evaluator.performance_ratio(
            sample.kill_rate, self.evaluator.expected_kill_rate(cur, spawners))

        if struggling:
            # never harder than now; head for the struggle floor fast
            floor = self.space.point_at_fraction(cfg.struggle_floor_frac)
            target = ParameterVector(min(cur.spawn_rate, floor.spawn_rate), min(cur.speed, floor.speed))
            factor = cfg.big_drop_factor
        else:
            target = self.space.clamp(best)
            factor = cfg.small_up_factor
            if ratio > cfg.strong_outperform_ratio:
                factor *= 2.0

        span = self.space.span()
        new_x = self._approach(cur.spawn_rate, target.spawn_rate, factor, span.spawn_rate)
        new_y = self._approach(cur.speed, target.speed, factor, span.speed)
        return self.space.clamp(ParameterVector(new_x, new_y)), struggling, ratio

    def _approach(self, cur: float, target: float, factor: float, span: float) -> float:
        v = lerp(cur, target, factor)
        if abs(v - target) <= self.cfg.snap_tolerance * span:
            return target
        return v

    # ------------- Lifecycle -------------

    def _on_event(self, ev: WaveEvent) -> None:
        self.gate.notify(ev)

    def _on_transition(self, t: Transition) -> None:
        if t.entered_active:
            self._timer = 0.0
            self._kill_baseline = 0
            self._last_wave_seconds = 0.0
            self.strategy.on_wave_start(self.gate.progress)
            self._info(f"[dda_controller] wave {t.wave_index}/{self.gate.total_waves} started; "
                       f"{self.strategy.name} resumed (progress={self.gate.progress:.2f})")
        elif t.left_active:
            self._info(f"[dda_controller] wave {t.wave_index} ended; {self.strategy.name} paused "
                       f"({t.new.value}) at spawn={self.output.spawn_rate:.3f} speed={self.output.speed:.3f}")

    # ------------- Logging -------------

    def _setup_logger(self, level: int):
        if self.verbose >= level:
            return lambda msg: print(msg)
        return lambda msg: None

    def _warn(self, msg: str) -> None:
        print(f"[dda_controller] WARN: {msg}")
