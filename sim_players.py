# sim_players.py
from __future__ import annotations

import random
from typing import Optional

# kills/s one spawner produces at spawn_rate = speed = 1
ARRIVAL_PER_SPAWNER = 0.3


def arrival_rate(spawn_rate: float, speed: float, spawners: int) -> float:
    return ARRIVAL_PER_SPAWNER * max(0, spawners) * spawn_rate * speed


class BasePlayer:
    """
    Synthetic player. Each frame it kills part of the enemies that arrive;
    whatever it fails to kill chips away at its health.
    """
    max_health = 100.0
    damage_per_leak = 0.06      # health fraction lost per unkilled enemy
    chip_damage = 0.004         # health fraction per second per unit speed, even when on top of things
    regen = 0.04                # health fraction per second while no wave is running

    def __init__(self, name: str, seed: Optional[int] = None):
        self.name = name
        self.health = self.max_health
        self.kills = 0.0
        self._rng = random.Random(seed)

    def reset(self):
        self.health = self.max_health
        self.kills = 0.0

    def health_fraction(self) -> float:
        return max(0.0, min(1.0, self.health / self.max_health))

    def kill_rate(self, arrival: float, speed: float) -> float:
        raise NotImplementedError

    def update(self, dt: float, spawn_rate: float, speed: float, spawners: int) -> float:
        """Play dt seconds of an active wave. Returns kills scored this frame."""
        arrival = arrival_rate(spawn_rate, speed, spawners)
        kr = max(0.0, min(arrival, self.kill_rate(arrival, speed)))
        leak = arrival - kr
        loss = (leak * self.damage_per_leak + self.chip_damage * speed) * dt
        self.health = max(0.0, self.health - loss * self.max_health)
        self.kills += kr * dt
        return kr * dt

    def recover(self, dt: float) -> None:
        self.health = min(self.max_health, self.health + self.regen * dt * self.max_health)


class SkillPlayer(BasePlayer):
    """Kill capacity scales with skill and drops against faster enemies."""
    capacity = 1.2

    def __init__(self, name: str, skill: float = 0.7, jitter: float = 0.1, seed: Optional[int] = None):
        super().__init__(name, seed)
        self.skill = skill
        self.jitter = jitter

    def kill_rate(self, arrival: float, speed: float) -> float:
        base = self.capacity * self.skill / (0.5 + 0.5 * speed)
        noise = self._rng.gauss(0.0, self.jitter * base) if self.jitter > 0 else 0.0
        return max(0.0, base + noise)


class SteadyPlayer(SkillPlayer):
    def __init__(self, name: str = "Steady", seed: Optional[int] = None):
        super().__init__(name, skill=0.6, jitter=0.1, seed=seed)


class NovicePlayer(SkillPlayer):
    def __init__(self, name: str = "Novice", seed: Optional[int] = None):
        super().__init__(name, skill=0.3, jitter=0.2, seed=seed)


class ExpertPlayer(SkillPlayer):
    def __init__(self, name: str = "Expert", seed: Optional[int] = None):
        super().__init__(name, skill=1.1, jitter=0.05, seed=seed)


class ScriptedPlayer(BasePlayer):
    """Fixed kill rate and pinned health; for driving the controller deterministically."""

    def __init__(self, name: str = "Scripted", kill_rate: float = 0.0, health_fraction: float = 1.0):
        super().__init__(name)
        self.fixed_kill_rate = kill_rate
        self.fixed_health = health_fraction
        self.health = health_fraction * self.max_health

    def reset(self):
        super().reset()
        self.health = self.fixed_health * self.max_health

    def kill_rate(self, arrival: float, speed: float) -> float:
        return self.fixed_kill_rate

    def update(self, dt: float, spawn_rate: float, speed: float, spawners: int) -> float:
        self.kills += self.fixed_kill_rate * dt
        self.health = self.fixed_health * self.max_health
        return self.fixed_kill_rate * dt

    def recover(self, dt: float) -> None:
        return None


PLAYERS = {
    "steady": SteadyPlayer,
    "novice": NovicePlayer,
    "expert": ExpertPlayer,
}


def make_player(kind: str, seed: Optional[int] = None) -> BasePlayer:
    if kind not in PLAYERS:
        raise ValueError(f"make_player: kind must be one of {sorted(PLAYERS)} (got {kind!r})")
    return PLAYERS[kind](seed=seed)
