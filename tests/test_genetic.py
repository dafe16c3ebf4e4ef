# tests/test_genetic.py
import random
from dataclasses import dataclass

import pytest

from dda.dda_benchmarks import BenchmarkObjective
from dda.dda_bounds import ParameterSpace, ParameterVector
from dda.dda_crossover import CrossoverOperator
from dda.dda_genetic import GeneticStrategy
from dda.dda_mutation import Mutator
from dda.dda_schedule import rates_for, make_aggressiveness
from dda.dda_selection import Selector
from dda.dda_types import GeneticParams, PerformanceSample

SAMPLE = PerformanceSample(kill_rate=1.0, health_fraction=1.0)


@dataclass
class Scored:
    name: str
    fitness: float


def test_tournament_picks_fittest_contestant():
    pop = [Scored("a", 1.0), Scored("b", 10.0), Scored("c", 2.0)]
    picked = Selector(tourney_size=50).tournament(pop, k=5, rng=random.Random(0))
    assert [p.name for p in picked] == ["b"] * 5


def test_tournament_of_one_is_uniform_draw():
    pop = [Scored(str(i), float(i)) for i in range(10)]
    picked = Selector(tourney_size=1).tournament(pop, k=200, rng=random.Random(0))
    assert len({p.name for p in picked}) > 5


def test_tournament_rejects_empty_population():
    with pytest.raises(ValueError):
        Selector().tournament([], rng=random.Random(0))


def test_crossover_mixes_parent_genes():
    sp = ParameterSpace()
    a, b = ParameterVector(0.5, 0.3), ParameterVector(1.0, 1.0)
    cx = CrossoverOperator(sp)
    rnd = random.Random(4)
    assert cx.crossover(a, b, rng=rnd, rate=0.0) == a
    children = {cx.crossover(a, b, rng=rnd, rate=1.0) for _ in range(100)}
    for c in children:
        assert c.spawn_rate in (0.5, 1.0)
        assert c.speed in (0.3, 1.0)
    assert len(children) == 4


def test_mutation_respects_rate_and_bounds():
    sp = ParameterSpace()
    g = ParameterVector(0.75, 0.65)
    rnd = random.Random(8)
    assert Mutator(sp, sigma_frac=0.5).mutate(g, rng=rnd, rate=0.0) == g

    wild = Mutator(sp, sigma_frac=5.0)
    out = [wild.mutate(g, rng=rnd, rate=1.0) for _ in range(200)]
    assert all(sp.contains(o) for o in out)
    assert any(o != g for o in out)


def test_rate_policies():
    p = GeneticParams()
    sine = make_aggressiveness(p)
    for t in range(0, 120, 3):
        m, c, a = rates_for(p, sine, float(t), SAMPLE)
        assert 0.05 <= m <= 0.3
        assert 0.6 <= c <= 0.9
        assert 0.0 <= a <= 1.0

    fixed = GeneticParams(aggressiveness="fixed", mutation_rate=0.2, crossover_rate=0.8)
    assert rates_for(fixed, make_aggressiveness(fixed), 10.0, SAMPLE)[:2] == (0.2, 0.8)

    perf = GeneticParams(aggressiveness="performance")
    m, c, a = rates_for(perf, make_aggressiveness(perf), 0.0, PerformanceSample(1.0, 0.2))
    assert a == pytest.approx(0.8)
    assert m == pytest.approx(0.05 + 0.25 * 0.8)
    assert c == pytest.approx(0.9 - 0.3 * 0.8)


def test_generation_keeps_population_objects_and_elite():
    sp = ParameterSpace()
    clock = iter(float(i) for i in range(1000))
    ga = GeneticStrategy(sp, BenchmarkObjective("sphere", optimum=ParameterVector(0.9, 0.4)), 12,
                         rng=random.Random(11), clock=lambda: next(clock))
    ids = [id(i) for i in ga.population]

    best = []
    for _ in range(40):
        ga.step(SAMPLE, 4)
        best.append(ga.best_fitness)
        assert all(sp.contains(p) for p in ga.positions())

    assert [id(i) for i in ga.population] == ids
    # elitism on a fixed surface: the best never gets worse
    assert all(b2 >= b1 for b1, b2 in zip(best, best[1:]))
    assert best[-1] >= 0.95
    assert 0.05 <= ga.mutation_rate <= 0.3
