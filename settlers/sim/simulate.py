"""Script pour lancer des simulations rapides.

Utilisé pour mesurer la performance du moteur et valider les règles sur des
parties aléatoires complètes.
"""

from __future__ import annotations

import time
from collections import Counter
from typing import Any, Dict

import structlog

from settlers.logging_config import configure_logging
from settlers.sim.runner import run_random_game

logger = structlog.get_logger(__name__)


def run_simulation(
    num_games: int = 100,
    *,
    seed: int = 0,
    player_count: int = 4,
    max_steps: int = 5000,
) -> Dict[str, Any]:
    """Lance plusieurs parties aléatoires et retourne un résumé."""

    start_time = time.perf_counter()
    winners: Counter[str] = Counter()
    unfinished = 0
    total_turns = 0

    for index in range(num_games):
        state = run_random_game(seed + index, player_count=player_count, max_steps=max_steps)
        total_turns += state.turn
        if state.winner_id is None:
            unfinished += 1
        else:
            winners[state.winner_id] += 1

    elapsed = time.perf_counter() - start_time
    summary = {
        "games": num_games,
        "finished": num_games - unfinished,
        "unfinished": unfinished,
        "winners": dict(winners),
        "average_turns": total_turns / num_games if num_games else 0.0,
        "elapsed_seconds": elapsed,
    }
    logger.info("simulation_finished", **summary)
    return summary


if __name__ == "__main__":
    configure_logging("development")
    run_simulation(num_games=20)
