# tests/helpers.py
import math


class StubTelemetry:
    """Scriptable telemetry source; advance() plays dt seconds at `kill_rate`."""

    def __init__(self, kill_rate=1.0, health=1.0, spawners=4):
        self.kill_rate = kill_rate
        self.health = health
        self.spawners = spawners
        self.cooldown = False
        self.kills = 0
        self.wave_seconds = 0.0
        self._kill_float = 0.0
        self.fail = None

    def advance(self, dt):
        self.wave_seconds += dt
        self._kill_float += self.kill_rate * dt
        self.kills = int(math.floor(self._kill_float + 1e-9))

    def new_wave(self):
        self.kills = 0
        self._kill_float = 0.0
        self.wave_seconds = 0.0

    def _check(self):
        if self.fail is not None:
            raise self.fail

    def get_kills_since_wave_start(self):
        self._check()
        return self.kills

    def get_elapsed_wave_seconds(self):
        self._check()
        return self.wave_seconds

    def get_health_fraction(self):
        self._check()
        return self.health

    def get_active_spawner_count(self):
        self._check()
        return self.spawners

    def is_in_cooldown(self):
        return self.cooldown


class RecordingActuator:
    def __init__(self):
        self.spawn_rates = []
        self.speeds = []
        self.fail = None

    def set_spawn_rate(self, value):
        if self.fail is not None:
            raise self.fail
        self.spawn_rates.append(value)

    def set_enemy_speed(self, value):
        self.speeds.append(value)

    @property
    def calls(self):
        return len(self.spawn_rates)


def run_ticks(ctrl, tel, n, dt=0.5):
    """Advance telemetry and controller together; returns how many ticks emitted."""
    emitted = 0
    for _ in range(n):
        tel.advance(dt)
        if ctrl.tick(dt):
            emitted += 1
    return emitted
