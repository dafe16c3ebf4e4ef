# run.py
from dda.dda_types import ControllerConfig
from sim_host import Session
from sim_players import NovicePlayer, ExpertPlayer

if __name__ == "__main__":
    # Example: same controller against a weak and a strong player
    for player in (NovicePlayer(seed=1), ExpertPlayer(seed=1)):
        session = Session(ControllerConfig(strategy="pso", seed=7), player, total_waves=5, verbose=1)
        summary = session.run()

        print(f"\n--- {summary.player} ---")
        print(f"Final spawn rate: {summary.final_spawn_rate:.3f}")
        print(f"Final speed     : {summary.final_speed:.3f}")
        print(f"Lowest health   : {100*summary.min_health:.1f}%")
        print(f"Total kills     : {summary.total_kills}")
