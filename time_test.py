# time_test.py
import random
import time

from dda.dda_strategy import build_strategy
from dda.dda_fitness import FitnessEvaluator
from dda.dda_types import ControllerConfig, PerformanceSample


def time_steps(strategy, population_size, num_steps=2000):
    """
    Runs `num_steps` strategy steps on a fixed telemetry sample.
    Returns the elapsed time.
    """
    cfg = ControllerConfig(strategy=strategy, population_size=population_size, seed=0)
    objective = FitnessEvaluator(cfg.space, cfg.fitness)
    clock = {"t": 0.0}
    opt = build_strategy(cfg, objective, random.Random(0), clock=lambda: clock["t"])
    sample = PerformanceSample(kill_rate=0.8, health_fraction=0.9)

    start_time = time.perf_counter()
    for _ in range(num_steps):
        clock["t"] += cfg.evaluation_interval
        opt.step(sample, 4)
        opt.get_best()
    end_time = time.perf_counter()
    return end_time - start_time


if __name__ == "__main__":
    print("--- Strategy step timing ---")
    results = {}

    for strategy in ("pso", "gwo", "ga"):
        for size in (5, 10, 20, 50, 100):
            print(f"Timing 2000 {strategy} steps with population {size}...")
            elapsed_time = time_steps(strategy, size)
            results[(strategy, size)] = elapsed_time
            print(f"Completed in {elapsed_time:.4f} seconds.\n")

    print("\n--- Summary of Results ---")
    for (strategy, size), duration in results.items():
        print(f"{strategy:>3} | Pop: {size:3d} | Time: {duration:.4f} s | per step: {1000*duration/2000:.3f} ms")
