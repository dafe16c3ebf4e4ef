# dda/dda_gate.py
from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Deque, List, Optional


class WaveState(Enum):
    INACTIVE = "inactive"
    ACTIVE = "active"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class WaveEvent:
    kind: str               # "start" | "end" | "sequence_end"
    wave_index: int = 0


@dataclass(frozen=True)
class Transition:
    old: WaveState
    new: WaveState
    wave_index: int

    @property
    def entered_active(self) -> bool:
        return self.new is WaveState.ACTIVE

    @property
    def left_active(self) -> bool:
        return self.old is WaveState.ACTIVE and self.new is not WaveState.ACTIVE


Listener = Callable[[WaveEvent], None]


class WaveEventBus:
    """Publish/subscribe channel for wave lifecycle notifications."""

    def __init__(self):
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def publish(self, event: WaveEvent) -> None:
        for fn in list(self._listeners):
            fn(event)

    def publish_wave_start(self, wave_index: int) -> None:
        self.publish(WaveEvent("start", wave_index))

    def publish_wave_end(self, wave_index: int) -> None:
        self.publish(WaveEvent("end", wave_index))

    def publish_sequence_end(self) -> None:
        self.publish(WaveEvent("sequence_end"))

    def __len__(self) -> int:
        return len(self._listeners)


class WaveGate:
    """
    Inactive -> Active -> Cooldown -> Active -> ... -> Inactive (terminal).

    Notifications are only queued when they arrive; apply_pending() folds them
    into the state at a tick boundary, so a tick never sees a half-applied
    transition.
    """

    def __init__(self, total_waves: int, warn: Optional[Callable[[str], None]] = None):
        if not isinstance(total_waves, int) or total_waves < 1:
            raise ValueError(f"WaveGate: total_waves must be an int >= 1 (got {total_waves!r})")
        self.total_waves = total_waves
        self.state = WaveState.INACTIVE
        self.current_wave = 0
        self.finished = False
        self._pending: Deque[WaveEvent] = deque()
        self._warn = warn or (lambda msg: print(f"[dda_gate] WARN: {msg}"))

    # ------------- notifications (queued) -------------

    def notify(self, event: WaveEvent) -> None:
        self._pending.append(event)

    def notify_wave_start(self, wave_index: int) -> None:
        self.notify(WaveEvent("start", wave_index))

    def notify_wave_end(self, wave_index: int) -> None:
        self.notify(WaveEvent("end", wave_index))

    def notify_sequence_end(self) -> None:
        self.notify(WaveEvent("sequence_end"))

    @property
    def pending(self) -> int:
        return len(self._pending)

    # ------------- tick boundary -------------

    def apply_pending(self) -> List[Transition]:
        out: List[Transition] = []
        while self._pending:
            t = self._apply(self._pending.popleft())
            if t is not None:
                out.append(t)
        return out

    @property
    def is_active(self) -> bool:
        return self.state is WaveState.ACTIVE

    @property
    def progress(self) -> float:
        return self.current_wave / self.total_waves

    def _apply(self, ev: WaveEvent) -> Optional[Transition]:
        old = self.state
        if self.finished:
            self._warn(f"ignoring {ev.kind} event after the wave sequence finished")
            return None

        if ev.kind == "start":
            if old is WaveState.ACTIVE:
                self._warn(f"wave {ev.wave_index} started while wave {self.current_wave} still active; restarting")
            self.state = WaveState.ACTIVE
            self.current_wave = ev.wave_index
            return Transition(old, self.state, ev.wave_index)

        if ev.kind == "end":
            if old is not WaveState.ACTIVE:
                self._warn(f"ignoring end of wave {ev.wave_index} while {old.value}")
                return None
            if ev.wave_index != self.current_wave:
                self._warn(f"end of wave {ev.wave_index} does not match active wave {self.current_wave}")
            if ev.wave_index >= self.total_waves:
                self.state = WaveState.INACTIVE
                self.finished = True
            else:
                self.state = WaveState.COOLDOWN
            return Transition(old, self.state, ev.wave_index)

        if ev.kind == "sequence_end":
            self.state = WaveState.INACTIVE
            self.finished = True
            return Transition(old, self.state, self.current_wave)

        self._warn(f"unknown wave event kind {ev.kind!r}")
        return None
