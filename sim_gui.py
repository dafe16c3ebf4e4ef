# sim_gui.py
# Pygame viewer for a simulated session:
# - the (spawn rate, speed) box with the live population, best candidate and applied output
# - HUD with wave / state / health / kill rate / fitness
#
# Run:  python sim_gui.py [--strategy pso|gwo|ga] [--player steady|novice|expert]
# Keys: SPACE pause, 1/2/3 switch strategy (restarts the session), R restart, ESC quit

import argparse
import dataclasses
import sys

import pygame

from dda.dda_bounds import ParameterVector
from dda.dda_io import load_config
from dda.dda_types import canonical_strategy
from sim_host import Session
from sim_players import PLAYERS, make_player

W, H = 1024, 680
FPS = 60
WHITE = (246, 246, 246)
BLACK = (24, 24, 24)
GREY = (190, 190, 190)
DGREY = (120, 120, 120)
BLUE = (40, 120, 220)
GREEN = (34, 150, 90)
RED = (200, 60, 60)
YELLOW = (230, 180, 40)
PURPLE = (130, 70, 200)

PLOT = pygame.Rect(40, 120, 560, 520)
STRATEGY_KEYS = {pygame.K_1: "pso", pygame.K_2: "gwo", pygame.K_3: "ga"}


class SessionView:
    def __init__(self, cfg, player_kind, seed=None, sim_speed=1.0):
        pygame.init()
        pygame.display.set_caption("Adaptive Difficulty — live view")
        self.screen = pygame.display.set_mode((W, H))
        self.clock = pygame.time.Clock()
        self.font = pygame.font.SysFont("consolas", 20)
        self.big = pygame.font.SysFont("consolas", 28, bold=True)

        self.cfg = cfg
        self.player_kind = player_kind
        self.seed = seed
        self.sim_speed = sim_speed
        self.paused = False
        self.trail = []
        self.session = self._new_session()

    def _new_session(self):
        self.trail = []
        return Session(self.cfg, make_player(self.player_kind, seed=self.seed))

    def switch(self, strategy):
        self.cfg = dataclasses.replace(self.cfg, strategy=strategy)
        self.session = self._new_session()

    # ---------- mapping ----------
    def _to_screen(self, p: ParameterVector):
        n = self.cfg.space.normalize(p)
        x = PLOT.left + n.spawn_rate * PLOT.width
        y = PLOT.bottom - n.speed * PLOT.height
        return int(x), int(y)

    def _blit_text(self, txt, x, y, big=False, color=BLACK):
        f = self.big if big else self.font
        self.screen.blit(f.render(txt, True, color), (x, y))

    # ---------- drawing ----------
    def _draw_plot(self):
        pygame.draw.rect(self.screen, GREY, PLOT, width=2, border_radius=6)
        sp = self.cfg.space
        self._blit_text(f"spawn rate {sp.min_spawn_rate:.2f} .. {sp.max_spawn_rate:.2f}",
                        PLOT.left, PLOT.bottom + 8, color=DGREY)
        self._blit_text(f"speed {sp.min_speed:.2f} .. {sp.max_speed:.2f}", PLOT.left, PLOT.top - 26, color=DGREY)

        floor = sp.point_at_fraction(self.cfg.struggle_floor_frac)
        fx, fy = self._to_screen(floor)
        pygame.draw.line(self.screen, GREY, (fx, PLOT.top), (fx, PLOT.bottom), 1)
        pygame.draw.line(self.screen, GREY, (PLOT.left, fy), (PLOT.right, fy), 1)

        if len(self.trail) > 1:
            pygame.draw.lines(self.screen, YELLOW, False, [self._to_screen(p) for p in self.trail], 2)

        for p in self.session.controller.strategy.positions():
            pygame.draw.circle(self.screen, BLUE, self._to_screen(p), 5)
        pygame.draw.circle(self.screen, PURPLE, self._to_screen(self.session.controller.strategy.get_best()), 8, 2)
        pygame.draw.circle(self.screen, GREEN, self._to_screen(self.session.output), 9)

    def _draw_hud(self):
        s = self.session
        c = s.controller
        m = c.metrics
        x, y = PLOT.right + 30, 120
        pygame.draw.rect(self.screen, GREY, (x - 10, y - 10, W - x - 20, 520), width=2, border_radius=12)
        hp = s.scheduler.player.health_fraction()
        lines = [
            (f"Strategy : {c.strategy.name.upper()}", BLACK),
            (f"Player   : {s.scheduler.player.name}", BLACK),
            (f"Wave     : {s.scheduler.current_wave}/{s.scheduler.total_waves}"
             f"{' BOSS' if s.scheduler.is_boss_wave else ''}", BLACK),
            (f"State    : {c.state.value}{' (cooldown)' if s.scheduler.is_in_cooldown() else ''}", BLACK),
            (f"Time     : {c.elapsed:6.1f}s", BLACK),
            ("", BLACK),
            (f"Health   : {100*hp:5.1f}%", GREEN if hp >= 0.5 else RED),
            (f"Kill/s   : {m.last_sample.kill_rate if m.last_sample else 0.0:5.2f}", BLACK),
            (f"Ratio    : {m.last_ratio:5.2f}", BLACK),
            (f"Struggle : {m.last_struggling}", RED if m.last_struggling else BLACK),
            ("", BLACK),
            (f"Spawn    : {s.output.spawn_rate:.3f}", GREEN),
            (f"Speed    : {s.output.speed:.3f}", GREEN),
            (f"Fitness  : {c.strategy.best_fitness:.3f}", PURPLE),
            (f"Evals    : {m.evaluations}", BLACK),
            (f"Step     : {m.timer.last_ms:.2f} ms", DGREY),
        ]
        for txt, col in lines:
            self._blit_text(txt, x, y, color=col)
            y += 28
        self._blit_text("SPACE pause  1/2/3 strategy  R restart  ESC quit", 40, H - 30, color=DGREY)

    def draw(self):
        self.screen.fill(WHITE)
        title = "PAUSED" if self.paused else ("FINISHED (R to restart)" if self.session.finished else "Running")
        pygame.draw.rect(self.screen, GREY, (20, 20, W - 40, 70), border_radius=12, width=2)
        self._blit_text(f"Adaptive Difficulty — {title}", 40, 40, big=True)
        self._draw_plot()
        self._draw_hud()
        pygame.display.flip()

    # ---------- loop ----------
    def handle_events(self):
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                return False
            if e.type == pygame.KEYDOWN:
                if e.key == pygame.K_ESCAPE:
                    return False
                if e.key == pygame.K_SPACE:
                    self.paused = not self.paused
                elif e.key == pygame.K_r:
                    self.session = self._new_session()
                elif e.key in STRATEGY_KEYS:
                    self.switch(STRATEGY_KEYS[e.key])
        return True

    def run(self):
        running = True
        while running:
            running = self.handle_events()
            if not self.paused and not self.session.finished:
                frame = self.clock.get_time() / 1000.0 * self.sim_speed
                steps = max(1, int(frame / self.session.dt))
                for _ in range(steps):
                    if self.session.step():
                        self.trail.append(self.session.output)
                    if self.session.finished:
                        break
            self.draw()
            self.clock.tick(FPS)
        pygame.quit()


def main():
    ap = argparse.ArgumentParser(description="Live pygame view of the adaptive difficulty controller.")
    ap.add_argument("--strategy", default=None, help="pso | gwo | ga")
    ap.add_argument("--player", default="steady", choices=sorted(PLAYERS))
    ap.add_argument("--config", default=None, help="Controller config JSON")
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--speed", type=float, default=4.0, help="Simulated seconds per real second")
    args = ap.parse_args()

    cfg = load_config(args.config)
    if args.strategy:
        cfg = dataclasses.replace(cfg, strategy=canonical_strategy(args.strategy))
    SessionView(cfg, args.player, seed=args.seed, sim_speed=args.speed).run()


if __name__ == "__main__":
    try:
        main()
    except SystemExit:
        pass
    except Exception as e:
        print("GUI crashed:", e)
        pygame.quit()
        raise
