# tests/test_controller.py
import math
import random

import pytest

from helpers import RecordingActuator, StubTelemetry, run_ticks
from dda.dda_bounds import ParameterVector
from dda.dda_controller import AdaptiveController
from dda.dda_gate import WaveEventBus, WaveState
from dda.dda_types import ControllerConfig


class CountingStrategy:
    name = "counting"

    def __init__(self, best):
        self.best = best
        self.steps = 0
        self.wave_starts = []
        self.fail = None

    def step(self, sample, spawner_count):
        if self.fail is not None:
            raise self.fail
        self.steps += 1

    def get_best(self):
        return self.best

    def on_wave_start(self, progress):
        self.wave_starts.append(progress)

    def positions(self):
        return [self.best]

    @property
    def best_fitness(self):
        return 1.0


def started(cfg, tel, act, **kwargs):
    ctrl = AdaptiveController(cfg, tel, act, **kwargs)
    ctrl.on_wave_start(1)
    return ctrl


def test_no_steps_outside_active_waves(cfg, telemetry, actuator):
    strat = CountingStrategy(ParameterVector(1.0, 1.0))
    ctrl = AdaptiveController(cfg, telemetry, actuator, strategy=strat)

    assert run_ticks(ctrl, telemetry, 40) == 0
    assert strat.steps == 0
    assert actuator.calls == 0
    assert ctrl.metrics.skips["inactive"] == 40


def test_evaluates_once_per_interval(cfg, telemetry, actuator):
    strat = CountingStrategy(ParameterVector(1.0, 1.0))
    ctrl = started(cfg, telemetry, actuator, strategy=strat)

    emitted = [ctrl.tick(0.5) for _ in range(8)]
    assert emitted == [False, False, False, True, False, False, False, True]
    assert strat.steps == 2
    assert strat.wave_starts == [pytest.approx(0.2)]
    assert actuator.calls == 2


def test_event_bus_drives_the_gate(cfg, telemetry, actuator):
    bus = WaveEventBus()
    ctrl = AdaptiveController(cfg, telemetry, actuator, total_waves=2, events=bus)
    bus.publish_wave_start(1)
    assert ctrl.state is WaveState.INACTIVE
    ctrl.tick(0.1)
    assert ctrl.state is WaveState.ACTIVE

    bus.publish_wave_end(1)
    ctrl.tick(0.1)
    assert ctrl.state is WaveState.COOLDOWN

    ctrl.close()
    assert len(bus) == 0


@pytest.mark.parametrize("strategy", ["pso", "gwo", "ga"])
def test_output_always_within_bounds(strategy):
    rnd = random.Random(99)
    cfg = ControllerConfig(strategy=strategy, seed=3)
    tel, act = StubTelemetry(), RecordingActuator()
    ctrl = started(cfg, tel, act)
    sp = cfg.space

    for _ in range(300):
        tel.kill_rate = rnd.uniform(0.0, 4.0)
        tel.health = rnd.random()
        tel.spawners = rnd.randint(0, 8)
        run_ticks(ctrl, tel, 1, dt=rnd.uniform(0.05, 1.0))
        assert sp.contains(ctrl.output)

    assert act.calls > 20
    assert all(sp.min_spawn_rate <= v <= sp.max_spawn_rate for v in act.spawn_rates)
    assert all(sp.min_speed <= v <= sp.max_speed for v in act.speeds)


@pytest.mark.parametrize("strategy", ["pso", "gwo", "ga"])
@pytest.mark.parametrize("kill_rate", [1e6, 1e150])
@pytest.mark.parametrize("health", [0.0, 1.0])
def test_extreme_telemetry_stays_within_bounds(strategy, kill_rate, health):
    cfg = ControllerConfig(strategy=strategy, seed=11)
    tel, act = StubTelemetry(kill_rate=kill_rate, health=health), RecordingActuator()
    ctrl = started(cfg, tel, act)
    sp = cfg.space

    for _ in range(80):
        run_ticks(ctrl, tel, 1)
        assert sp.contains(ctrl.output)
        assert all(math.isfinite(v) for v in ctrl.output.as_tuple())

    assert act.calls == 20
    assert all(sp.min_spawn_rate <= v <= sp.max_spawn_rate for v in act.spawn_rates)
    assert all(sp.min_speed <= v <= sp.max_speed for v in act.speeds)
    if health == 0.0:
        # dying player: nothing may end above the starting midpoint
        mid = sp.midpoint()
        assert ctrl.output.spawn_rate <= mid.spawn_rate
        assert ctrl.output.speed <= mid.speed


def test_struggling_never_raises_difficulty(telemetry, actuator):
    # best candidate points at maximum difficulty; struggling must still win
    strat = CountingStrategy(ParameterVector(1.0, 1.0))
    telemetry.health = 0.2
    ctrl = started(ControllerConfig(), telemetry, actuator, strategy=strat)

    run_ticks(ctrl, telemetry, 80)
    assert actuator.calls == 20
    pairs = list(zip(actuator.spawn_rates, actuator.speeds))
    for (s0, v0), (s1, v1) in zip([ctrl.space.midpoint().as_tuple()] + pairs, pairs):
        assert s1 <= s0
        assert v1 <= v0


def test_recovery_settles_on_floor(telemetry, actuator):
    cfg = ControllerConfig()
    telemetry.health = 0.3
    ctrl = started(cfg, telemetry, actuator)
    assert ctrl.output == cfg.space.midpoint()

    run_ticks(ctrl, telemetry, 4 * 10)
    floor = cfg.space.point_at_fraction(0.3)
    assert ctrl.output.spawn_rate == pytest.approx(floor.spawn_rate)
    assert ctrl.output.speed == pytest.approx(floor.speed)

    # and it holds there
    run_ticks(ctrl, telemetry, 4 * 5)
    assert ctrl.output.spawn_rate == pytest.approx(floor.spawn_rate)
    assert ctrl.output.speed == pytest.approx(floor.speed)


def test_outperforming_player_pushes_difficulty_up(telemetry, actuator):
    strat = CountingStrategy(ParameterVector(1.0, 1.0))
    telemetry.kill_rate = 5.0
    ctrl = started(ControllerConfig(), telemetry, actuator, strategy=strat)

    run_ticks(ctrl, telemetry, 4)
    # ratio > 1.2 doubles the 0.1 step
    assert ctrl.output.spawn_rate == pytest.approx(0.75 + 0.2 * 0.25)
    assert ctrl.metrics.last_struggling is False


def test_cooldown_is_silent(telemetry, actuator):
    ctrl = started(ControllerConfig(), telemetry, actuator)
    run_ticks(ctrl, telemetry, 8)
    calls = actuator.calls
    assert calls == 2

    telemetry.cooldown = True
    assert run_ticks(ctrl, telemetry, 40) == 0
    assert actuator.calls == calls
    assert ctrl.metrics.skips["spawner_cooldown"] == 40

    ctrl.on_wave_end(1)
    telemetry.cooldown = False
    assert run_ticks(ctrl, telemetry, 40) == 0
    assert actuator.calls == calls
    assert ctrl.state is WaveState.COOLDOWN


def test_new_wave_resets_kill_baseline(telemetry, actuator):
    ctrl = started(ControllerConfig(), telemetry, actuator, total_waves=3)
    run_ticks(ctrl, telemetry, 4)
    ctrl.on_wave_end(1)
    ctrl.tick(0.1)

    telemetry.new_wave()
    ctrl.on_wave_start(2)
    run_ticks(ctrl, telemetry, 4)
    assert ctrl.metrics.last_sample.kill_rate == pytest.approx(1.0)


def test_telemetry_failure_skips_tick(telemetry, actuator, capsys):
    ctrl = started(ControllerConfig(), telemetry, actuator)
    telemetry.fail = RuntimeError("sensor offline")
    assert run_ticks(ctrl, telemetry, 8) == 0
    assert actuator.calls == 0
    assert ctrl.output == ctrl.space.midpoint()
    assert ctrl.metrics.skips["bad_telemetry"] == 2
    assert "WARN" in capsys.readouterr().out


def test_non_finite_telemetry_skips_tick(telemetry, actuator):
    ctrl = started(ControllerConfig(), telemetry, actuator)
    telemetry.health = math.nan
    assert run_ticks(ctrl, telemetry, 4) == 0
    assert ctrl.metrics.skips["bad_telemetry"] == 1

    telemetry.health = 1.0
    assert run_ticks(ctrl, telemetry, 4) == 1


def test_actuator_failure_keeps_last_output(telemetry):
    act = RecordingActuator()
    act.fail = RuntimeError("spawner gone")
    ctrl = started(ControllerConfig(), telemetry, act)
    before = ctrl.output
    assert run_ticks(ctrl, telemetry, 4) == 0
    assert ctrl.output == before
    assert ctrl.metrics.skips["actuator_error"] == 1


def test_strategy_failure_is_contained(telemetry, actuator):
    strat = CountingStrategy(ParameterVector(1.0, 1.0))
    strat.fail = ZeroDivisionError("boom")
    ctrl = started(ControllerConfig(), telemetry, actuator, strategy=strat)
    assert run_ticks(ctrl, telemetry, 4) == 0
    assert ctrl.metrics.skips["strategy_error"] == 1


def test_missing_collaborators(telemetry):
    ctrl = started(ControllerConfig(), telemetry, None)
    assert run_ticks(ctrl, telemetry, 4) == 0
    assert ctrl.metrics.skips["no_actuator"] == 1

    ctrl = started(ControllerConfig(), None, RecordingActuator())
    for _ in range(4):
        ctrl.tick(0.5)
    assert ctrl.metrics.skips["bad_telemetry"] == 1


@pytest.mark.parametrize("dt", [-1.0, math.nan, math.inf, "0.5"])
def test_bad_dt_is_ignored(dt, telemetry, actuator):
    ctrl = started(ControllerConfig(), telemetry, actuator)
    assert ctrl.tick(dt) is False
    assert ctrl.elapsed == 0.0


def test_initial_output_from_config(telemetry, actuator):
    cfg = ControllerConfig(initial_spawn_rate=0.6, initial_speed=0.4)
    ctrl = AdaptiveController(cfg, telemetry, actuator)
    assert ctrl.output == ParameterVector(0.6, 0.4)


def test_metrics_window_flushes(telemetry, actuator):
    cfg = ControllerConfig(metrics_history_limit=3)
    ctrl = started(cfg, telemetry, actuator)
    run_ticks(ctrl, telemetry, 4 * 7)
    assert len(ctrl.metrics.windows) == 2
    snap = ctrl.metrics.snapshot()
    assert snap["evaluations"] == 7.0
    assert snap["emitted"] == 7.0
    assert snap["avg_step_kb"] == 0.0


@pytest.mark.parametrize("strategy", ["pso", "gwo", "ga"])
def test_memory_tracked_per_evaluation(strategy, telemetry, actuator):
    ctrl = started(ControllerConfig(strategy=strategy, track_memory=True, seed=2), telemetry, actuator)
    run_ticks(ctrl, telemetry, 4 * 5)
    timer = ctrl.metrics.timer
    assert timer.runs == 5
    assert timer.worst_kb > 0.0
    assert ctrl.metrics.snapshot()["worst_step_kb"] == timer.worst_kb


def test_recovery_scenario_strictly_decreases_then_holds(actuator):
    tel = StubTelemetry(kill_rate=0.0, health=0.2)
    cfg = ControllerConfig(seed=1)
    ctrl = started(cfg, tel, actuator)
    floor = cfg.space.point_at_fraction(0.3).spawn_rate

    run_ticks(ctrl, tel, 4 * 12)
    rates = actuator.spawn_rates
    reached = rates.index(floor)
    assert reached >= 4
    prev = cfg.space.midpoint().spawn_rate
    for r in rates[:reached + 1]:
        assert r < prev
        prev = r
    assert all(r == floor for r in rates[reached:])


def test_cooldown_scenario_output_is_frozen(telemetry, actuator):
    ctrl = AdaptiveController(ControllerConfig(seed=1), telemetry, actuator, total_waves=5)
    ctrl.on_wave_start(3)
    run_ticks(ctrl, telemetry, 8)
    snapshot = ctrl.output

    ctrl.on_wave_end(3)
    telemetry.cooldown = True
    for _ in range(10):
        telemetry.advance(2.0)
        assert ctrl.tick(2.0) is False
        assert ctrl.output == snapshot
    assert actuator.calls == 2


@pytest.mark.parametrize("strategy", ["pso", "gwo", "ga"])
def test_every_strategy_eases_off_a_struggling_player(strategy, actuator):
    cfg = ControllerConfig(strategy=strategy, seed=17)
    tel = StubTelemetry(kill_rate=0.1, health=0.25)
    ctrl = started(cfg, tel, actuator)
    start = ctrl.output

    run_ticks(ctrl, tel, 4 * 10)
    assert actuator.calls == 10
    assert cfg.space.contains(ctrl.output)
    assert ctrl.output.spawn_rate < start.spawn_rate
    assert ctrl.output.speed < start.speed
