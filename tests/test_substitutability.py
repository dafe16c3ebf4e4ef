# tests/test_substitutability.py
import pytest

from dda.dda_strategy import build_strategy
from dda.dda_types import ControllerConfig
from sim_host import Session
from sim_players import SteadyPlayer


@pytest.mark.parametrize("name,kind", [
    ("pso", "pso"), ("swarm", "pso"),
    ("gwo", "gwo"), ("pack", "gwo"),
    ("ga", "ga"), ("genetic", "ga"),
])
def test_every_strategy_drives_a_full_session(name, kind):
    cfg = ControllerConfig(strategy=name, population_size=8, seed=21)
    session = Session(cfg, SteadyPlayer(seed=21), total_waves=3, wave_duration=12.0, cooldown_duration=4.0)
    summary = session.run()

    strategy = session.controller.strategy
    assert strategy.name == kind
    assert summary.strategy == kind
    assert len(strategy.positions()) == 8
    assert summary.evaluations > 5
    assert cfg.space.contains(session.output)
    assert all(cfg.space.contains(p) for p in strategy.positions())
    assert all(cfg.space.min_spawn_rate <= p.spawn_rate <= cfg.space.max_spawn_rate for p in summary.trace)


@pytest.mark.parametrize("kind", ["pso", "gwo", "ga"])
def test_same_seed_same_run(kind):
    def once():
        cfg = ControllerConfig(strategy=kind, seed=5)
        return Session(cfg, SteadyPlayer(seed=5), total_waves=2, wave_duration=10.0).run()

    a, b = once(), once()
    assert [(p.spawn_rate, p.speed) for p in a.trace] == [(p.spawn_rate, p.speed) for p in b.trace]
    assert a.id == b.id


def test_build_strategy_uses_canonical_names(rng):
    from dda.dda_fitness import FitnessEvaluator

    for alias, expected in (("swarm", "pso"), ("pack", "gwo"), ("genetic", "ga")):
        cfg = ControllerConfig(strategy=alias)
        opt = build_strategy(cfg, FitnessEvaluator(cfg.space), rng, clock=lambda: 0.0)
        assert opt.name == expected
