#!/usr/bin/env python3
# sim_runner.py

from __future__ import annotations

import argparse
import dataclasses
import json
import sys
from typing import List, Optional

from dda.dda_benchmarks import FUNCTIONS, BenchmarkObjective
from dda.dda_io import config_to_dict, load_config
from dda.dda_repository import RunRepository, RunSummary
from dda.dda_types import ControllerConfig, canonical_strategy
from sim_host import Session
from sim_players import PLAYERS, make_player

# ANSI colors
COLORS = {
    "HEADER": "\033[95m",
    "BLUE": "\033[94m",
    "CYAN": "\033[96m",
    "GREEN": "\033[92m",
    "YELLOW": "\033[93m",
    "RED": "\033[91m",
    "BOLD": "\033[1m",
    "END": "\033[0m",
}


def color_print(text: str, color: str = "GREEN", bold: bool = False) -> None:
    style = COLORS["BOLD"] if bold else ""
    print(f"{style}{COLORS.get(color,'')}{text}{COLORS['END']}")


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(description="Simulate wave sessions driven by the adaptive difficulty controller.")
    ap.add_argument("--strategy", default=None, help="pso | gwo | ga (aliases: swarm, pack, genetic)")
    ap.add_argument("--player", default="steady", choices=sorted(PLAYERS), help="Synthetic player model")
    ap.add_argument("--waves", type=int, default=5, help="Waves per session (last one is the boss wave)")
    ap.add_argument("--wave-duration", type=float, default=30.0, help="Seconds per regular wave")
    ap.add_argument("--cooldown", type=float, default=10.0, help="Seconds between waves")
    ap.add_argument("--spawners", type=int, default=4, help="Active spawners per regular wave")
    ap.add_argument("--dt", type=float, default=0.1, help="Frame time in seconds")
    ap.add_argument("--seed", type=int, default=None, help="RNG seed (controller and player)")
    ap.add_argument("--config", default=None, help="Controller config JSON (missing keys use defaults)")
    ap.add_argument("--objective", default="telemetry",
                    help="telemetry | " + " | ".join(sorted(FUNCTIONS)) + " (benchmark surface)")
    ap.add_argument("--verbose", type=int, default=0, help="0 silent, 1 per-wave, 2 per-evaluation")
    ap.add_argument("--save", default=None, metavar="DIR", help="Persist run summaries under DIR")
    ap.add_argument("--compare", action="store_true", help="Run every strategy on the same player/seed")
    ap.add_argument("--track-memory", action="store_true", help="Record tracemalloc peak per evaluation")
    return ap


def make_objective(name: str, cfg: ControllerConfig) -> Optional[BenchmarkObjective]:
    if name == "telemetry":
        return None
    if name not in FUNCTIONS:
        raise ValueError(f"--objective must be 'telemetry' or one of {sorted(FUNCTIONS)} (got {name!r})")
    # optimum sits inside the bounds so the run has something to find
    return BenchmarkObjective(name, optimum=cfg.space.point_at_fraction(0.7), scale=4.0)


def run_one(cfg: ControllerConfig, args: argparse.Namespace) -> RunSummary:
    player = make_player(args.player, seed=args.seed)
    session = Session(
        cfg, player,
        total_waves=args.waves,
        wave_duration=args.wave_duration,
        cooldown_duration=args.cooldown,
        spawner_count=args.spawners,
        dt=args.dt,
        objective=make_objective(args.objective, cfg),
        verbose=args.verbose,
    )
    return session.run()


def print_summary(s: RunSummary) -> None:
    hp_color = "GREEN" if s.min_health >= 0.5 else ("YELLOW" if s.min_health >= 0.2 else "RED")
    print(
        f"{COLORS['BOLD']}{s.strategy.upper():>4}{COLORS['END']} vs {s.player:<7} "
        f"evals={COLORS['CYAN']}{s.evaluations:3d}{COLORS['END']}  "
        f"final=({COLORS['BLUE']}{s.final_spawn_rate:.3f}{COLORS['END']}, "
        f"{COLORS['BLUE']}{s.final_speed:.3f}{COLORS['END']})  "
        f"mean=({s.mean_spawn_rate():.3f}, {s.mean_speed():.3f})  "
        f"min hp={COLORS[hp_color]}{100*s.min_health:.1f}%{COLORS['END']}  "
        f"kills={COLORS['YELLOW']}{s.total_kills}{COLORS['END']}  "
        f"t={s.duration:.1f}s"
    )
    skips = {k[len("skipped_"):]: int(v) for k, v in s.metrics.items() if k.startswith("skipped_")}
    if skips:
        print("      skipped ticks: " + ", ".join(f"{k}={v}" for k, v in sorted(skips.items())))


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config)
        overrides = {}
        if args.strategy is not None:
            overrides["strategy"] = canonical_strategy(args.strategy)
        if args.seed is not None:
            overrides["seed"] = args.seed
        if args.track_memory:
            overrides["track_memory"] = True
        if overrides:
            cfg = dataclasses.replace(cfg, **overrides)
        make_objective(args.objective, cfg)
    except (OSError, json.JSONDecodeError, ValueError) as e:
        color_print(f"Config error: {e}", "RED", bold=True)
        return 2

    color_print("\n=== Adaptive Difficulty Simulation ===", "HEADER", bold=True)
    print(
        f"""
    Player: {COLORS['CYAN']}{args.player}{COLORS['END']}
    Waves: {COLORS['CYAN']}{args.waves}{COLORS['END']} x {args.wave_duration:.0f}s (cooldown {args.cooldown:.0f}s)
    Spawners: {COLORS['CYAN']}{args.spawners}{COLORS['END']}
    Objective: {COLORS['YELLOW']}{args.objective}{COLORS['END']}
    Population: {COLORS['GREEN']}{cfg.population_size}{COLORS['END']}
    Evaluation Interval: {COLORS['GREEN']}{cfg.evaluation_interval}s{COLORS['END']}
    Bounds: spawn [{cfg.space.min_spawn_rate}, {cfg.space.max_spawn_rate}]  speed [{cfg.space.min_speed}, {cfg.space.max_speed}]
    Seed: {COLORS['RED']}{cfg.seed}{COLORS['END']}
        """.rstrip()
    )

    strategies = ["pso", "gwo", "ga"] if args.compare else [cfg.strategy_kind]
    repo = RunRepository(root=args.save) if args.save else None

    color_print("\n=== Results ===", "HEADER", bold=True)
    for name in strategies:
        summary = run_one(dataclasses.replace(cfg, strategy=name), args)
        print_summary(summary)
        if repo is not None:
            path = repo.save_run(summary)
            print(f"      saved -> {path}")

    if args.verbose >= 2:
        color_print("\n=== Effective Config ===", "HEADER", bold=True)
        print(json.dumps(config_to_dict(cfg), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
