# sim_host.py
from __future__ import annotations

import math
from typing import List, Optional

from dda.dda_bounds import ParameterVector
from dda.dda_controller import AdaptiveController
from dda.dda_fitness import Objective
from dda.dda_gate import WaveEventBus
from dda.dda_io import config_to_dict
from dda.dda_repository import RunSummary, TracePoint
from dda.dda_types import ControllerConfig
from sim_players import BasePlayer


class WaveScheduler:
    """
    Stand-in for the game's spawner: runs timed waves separated by cooldowns,
    ends with a boss wave, feeds kills/health from a synthetic player and
    applies whatever spawn rate / speed the controller sends.

    Serves as both the controller's telemetry source and its actuator.
    """

    def __init__(self, player: BasePlayer, events: Optional[WaveEventBus] = None,
                 total_waves: int = 5, wave_duration: float = 30.0, cooldown_duration: float = 10.0,
                 spawner_count: int = 4, boss_wave: bool = True, boss_kills: int = 12,
                 boss_timeout: float = 60.0, spawn_rate: float = 0.75, speed: float = 0.65,
                 verbose: int | bool = 0):
        assert total_waves >= 1, "Need at least one wave."
        self.player = player
        self.events = events if events is not None else WaveEventBus()
        self.total_waves = total_waves
        self.wave_duration = wave_duration
        self.cooldown_duration = cooldown_duration
        self.spawner_count = spawner_count
        self.boss_wave = boss_wave
        self.boss_kills = boss_kills
        self.boss_timeout = boss_timeout
        self.verbose = 2 if isinstance(verbose, bool) and verbose else int(verbose)
        self._log = self._setup_logger()

        self.spawn_rate = spawn_rate
        self.speed = speed
        self.updates = 0

        self.current_wave = 0
        self.total_kills = 0
        self.total_time = 0.0
        self.finished = False
        self._kill_float = 0.0
        self._wave_start_kills = 0
        self._wave_time = 0.0
        self._in_cooldown = False
        self._cooldown_left = 0.0
        self._started = False

    def _setup_logger(self):
        if self.verbose >= 2:
            return lambda msg: print(msg)
        return lambda msg: None

    # ------------- telemetry -------------

    def get_kills_since_wave_start(self) -> int:
        return self.total_kills - self._wave_start_kills

    def get_elapsed_wave_seconds(self) -> float:
        return self._wave_time

    def get_health_fraction(self) -> float:
        return self.player.health_fraction()

    def get_active_spawner_count(self) -> int:
        if self.is_boss_wave:
            return 1
        return self.spawner_count

    def is_in_cooldown(self) -> bool:
        return self._in_cooldown

    # ------------- actuator -------------

    def set_spawn_rate(self, value: float) -> None:
        self.spawn_rate = value
        self.updates += 1
        self._log(f"  [spawner] spawn rate -> {value:.3f}")

    def set_enemy_speed(self, value: float) -> None:
        self.speed = value
        self._log(f"  [spawner] enemy speed -> {value:.3f}")

    # ------------- timeline -------------

    @property
    def is_boss_wave(self) -> bool:
        return self.boss_wave and self.current_wave == self.total_waves

    def update(self, dt: float) -> None:
        if self.finished:
            return
        self.total_time += dt
        if not self._started:
            self._started = True
            self._start_wave()
            return

        if self._in_cooldown:
            self.player.recover(dt)
            self._cooldown_left -= dt
            if self._cooldown_left <= 0:
                self._in_cooldown = False
                self._start_wave()
            return

        self._wave_time += dt
        self._kill_float += self.player.update(dt, self.spawn_rate, self.speed, self.get_active_spawner_count())
        self.total_kills = int(math.floor(self._kill_float))

        if self.is_boss_wave:
            if self.get_kills_since_wave_start() >= self.boss_kills or self._wave_time >= self.boss_timeout:
                self._end_wave()
        elif self._wave_time >= self.wave_duration:
            self._end_wave()

    def _start_wave(self) -> None:
        self.current_wave += 1
        self._wave_start_kills = self.total_kills
        self._wave_time = 0.0
        self._log(f"\n=== Wave {self.current_wave}/{self.total_waves}"
                  f"{' (BOSS)' if self.is_boss_wave else ''} ===")
        self.events.publish_wave_start(self.current_wave)

    def _end_wave(self) -> None:
        self._log(f"Wave {self.current_wave} ended: kills={self.get_kills_since_wave_start()} "
                  f"hp={self.player.health_fraction():.2f}")
        self.events.publish_wave_end(self.current_wave)
        if self.current_wave >= self.total_waves:
            self.finished = True
            self._log("All waves completed!")
            return
        self._in_cooldown = True
        self._cooldown_left = self.cooldown_duration


class Session:
    """One simulated game: scheduler + controller ticked at a fixed frame dt."""

    def __init__(self, cfg: ControllerConfig, player: BasePlayer, total_waves: int = 5,
                 wave_duration: float = 30.0, cooldown_duration: float = 10.0, spawner_count: int = 4,
                 boss_wave: bool = True, dt: float = 0.1, objective: Optional[Objective] = None,
                 verbose: int = 0):
        if dt <= 0:
            raise ValueError(f"Session: dt must be > 0 (got {dt})")
        self.cfg = cfg
        self.dt = dt
        self.events = WaveEventBus()
        self.scheduler = WaveScheduler(
            player, self.events, total_waves=total_waves, wave_duration=wave_duration,
            cooldown_duration=cooldown_duration, spawner_count=spawner_count, boss_wave=boss_wave,
            verbose=verbose,
        )
        self.controller = AdaptiveController(
            cfg, self.scheduler, self.scheduler, total_waves=total_waves, events=self.events,
            objective=objective, verbose=verbose,
        )
        out = self.controller.output
        self.scheduler.spawn_rate = out.spawn_rate
        self.scheduler.speed = out.speed
        self.trace: List[TracePoint] = []
        self._min_health = player.health_fraction()

    @property
    def finished(self) -> bool:
        return self.scheduler.finished

    @property
    def output(self) -> ParameterVector:
        return self.controller.output

    def step(self) -> bool:
        """Advance one frame. Returns True when the controller emitted an update."""
        self.scheduler.update(self.dt)
        emitted = self.controller.tick(self.dt)
        self._min_health = min(self._min_health, self.scheduler.player.health_fraction())
        if emitted:
            m = self.controller.metrics
            self.trace.append(TracePoint(
                t=round(self.controller.elapsed, 4),
                wave=self.scheduler.current_wave,
                state=self.controller.state.value,
                spawn_rate=self.output.spawn_rate,
                speed=self.output.speed,
                health=m.last_sample.health_fraction if m.last_sample else 1.0,
                kill_rate=m.last_sample.kill_rate if m.last_sample else 0.0,
                struggling=m.last_struggling,
            ))
        return emitted

    def run(self, max_seconds: float = 3600.0) -> RunSummary:
        while not self.finished and self.controller.elapsed < max_seconds:
            self.step()
        # let the final wave-end reach the gate
        self.controller.tick(0.0)
        self.controller.close()
        return self.summary()

    def summary(self) -> RunSummary:
        return RunSummary(
            strategy=self.controller.strategy.name,
            player=self.scheduler.player.name,
            seed=self.cfg.seed,
            waves=self.scheduler.total_waves,
            duration=self.controller.elapsed,
            evaluations=self.controller.metrics.evaluations,
            final_spawn_rate=self.output.spawn_rate,
            final_speed=self.output.speed,
            min_health=self._min_health,
            total_kills=self.scheduler.total_kills,
            config=config_to_dict(self.cfg),
            metrics=self.controller.metrics.snapshot(),
            trace=list(self.trace),
        )
