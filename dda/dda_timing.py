# dda/dda_timing.py
import time
import tracemalloc
from contextlib import contextmanager
from typing import Iterator, List, Tuple


class StepTimer:
    """
    Rolling wall-clock cost of controller evaluations, in milliseconds.

    With track_memory=True each measured block also records its peak traced
    allocation (KB) via tracemalloc.
    """

    def __init__(self, track_memory: bool = False):
        self.track_memory = track_memory
        self.runs = 0
        self.total_ms = 0.0
        self.last_ms = 0.0
        self.worst_ms = 0.0
        self.total_kb = 0.0
        self.last_kb = 0.0
        self.worst_kb = 0.0
        self._splits: List[Tuple[str, float]] = []

    @contextmanager
    def measure(self, label: str = "step") -> Iterator[None]:
        started_here = False
        if self.track_memory:
            if tracemalloc.is_tracing():
                tracemalloc.reset_peak()
            else:
                tracemalloc.start()
                started_here = True
            base, _ = tracemalloc.get_traced_memory()
        t0 = time.perf_counter()
        try:
            yield
        finally:
            dt = (time.perf_counter() - t0) * 1000.0
            self.runs += 1
            self.total_ms += dt
            self.last_ms = dt
            self.worst_ms = max(self.worst_ms, dt)
            self._splits.append((label, dt))
            del self._splits[:-20]
            if self.track_memory:
                _, peak = tracemalloc.get_traced_memory()
                if started_here:
                    tracemalloc.stop()
                kb = max(0, peak - base) / 1024.0
                self.total_kb += kb
                self.last_kb = kb
                self.worst_kb = max(self.worst_kb, kb)

    @property
    def average_ms(self) -> float:
        return self.total_ms / self.runs if self.runs else 0.0

    @property
    def average_kb(self) -> float:
        return self.total_kb / self.runs if self.runs else 0.0

    def pretty_line(self, prefix: str = "") -> str:
        parts = [f"{label}={ms:.3f}ms" for label, ms in self._splits[-3:]]
        parts.append(f"avg={self.average_ms:.3f}ms")
        parts.append(f"worst={self.worst_ms:.3f}ms")
        if self.track_memory:
            parts.append(f"mem avg={self.average_kb:.1f}KB peak={self.worst_kb:.1f}KB")
        return (prefix + " " if prefix else "") + " | ".join(parts)
