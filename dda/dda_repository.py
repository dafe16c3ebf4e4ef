# dda/dda_repository.py
from __future__ import annotations

import datetime
import hashlib
import json
import os
import statistics as stats
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class TracePoint:
    t: float
    wave: int
    state: str
    spawn_rate: float
    speed: float
    health: float
    kill_rate: float
    struggling: bool


@dataclass
class RunSummary:
    """Outcome of one simulated session."""
    strategy: str
    player: str
    seed: Optional[int]
    waves: int
    duration: float
    evaluations: int
    final_spawn_rate: float
    final_speed: float
    min_health: float
    total_kills: int
    config: Dict[str, Any] = field(default_factory=dict)
    metrics: Dict[str, float] = field(default_factory=dict)
    trace: List[TracePoint] = field(default_factory=list)

    @property
    def id(self) -> str:
        s = json.dumps({"strategy": self.strategy, "player": self.player, "seed": self.seed,
                        "config": self.config}, sort_keys=True, separators=(",", ":"))
        return hashlib.blake2s(s.encode("utf-8"), digest_size=8).hexdigest()

    def mean_spawn_rate(self) -> float:
        return stats.fmean(p.spawn_rate for p in self.trace) if self.trace else self.final_spawn_rate

    def mean_speed(self) -> float:
        return stats.fmean(p.speed for p in self.trace) if self.trace else self.final_speed

    def to_json(self) -> Dict[str, Any]:
        d = asdict(self)
        d["id"] = self.id
        return d


class RunRepository:
    """
    ID-based store for simulated runs:
      - Canonical file per run config at:  runs/<ID>/latest.json  (overwritten each save)
      - Optional timestamped snapshot at:  runs/<ID>/run_<timestamp>.json
      - One manifest row appended per save.
    """

    MANIFEST_HEADER = ("id,timestamp,strategy,player,seed,waves,duration,evaluations,"
                       "final_spawn_rate,final_speed,mean_spawn_rate,mean_speed,min_health,"
                       "total_kills,filename\n")

    def __init__(self, root: str = "runs", keep_snapshots: bool = True, keep_trace: bool = True):
        self.root = root
        self.keep_snapshots = keep_snapshots
        self.keep_trace = keep_trace
        os.makedirs(self.root, exist_ok=True)
        self.manifest_path = os.path.join(self.root, "manifest.csv")
        if not os.path.exists(self.manifest_path):
            with open(self.manifest_path, "w", encoding="utf-8") as f:
                f.write(self.MANIFEST_HEADER)

    def save_run(self, summary: RunSummary) -> str:
        rid = summary.id
        run_dir = os.path.join(self.root, rid)
        os.makedirs(run_dir, exist_ok=True)

        ts = datetime.datetime.now().strftime("%Y%m%d_%H%M%S")
        latest_path = os.path.join(run_dir, "latest.json")

        payload = summary.to_json()
        if not self.keep_trace:
            payload["trace"] = []
        payload["meta"] = {"id": rid, "timestamp": ts}

        with open(latest_path, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2)

        if self.keep_snapshots:
            with open(os.path.join(run_dir, f"run_{ts}.json"), "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2)

        with open(self.manifest_path, "a", encoding="utf-8") as f:
            f.write(
                ",".join(
                    [
                        rid,
                        ts,
                        summary.strategy,
                        summary.player,
                        "" if summary.seed is None else str(summary.seed),
                        str(summary.waves),
                        f"{summary.duration:.2f}",
                        str(summary.evaluations),
                        f"{summary.final_spawn_rate:.4f}",
                        f"{summary.final_speed:.4f}",
                        f"{summary.mean_spawn_rate():.4f}",
                        f"{summary.mean_speed():.4f}",
                        f"{summary.min_health:.4f}",
                        str(summary.total_kills),
                        os.path.join(rid, "latest.json").replace("\\", "/"),
                    ]
                )
                + "\n"
            )

        return latest_path

    def load_latest(self, run_id: str) -> Dict[str, Any]:
        with open(os.path.join(self.root, run_id, "latest.json"), "r", encoding="utf-8") as f:
            return json.load(f)
