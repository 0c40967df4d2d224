"""Boucle headless pour le moteur (simulation et tests d'invariants).

Expose un environnement `reset()` / `step()` au-dessus de `process_action`
et une partie aléatoire reproductible (`run_random_game`).
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Tuple

import numpy as np
import structlog

from settlers.engine.actions import Action
from settlers.engine.rules import Settings
from settlers.engine.state import GameState, Phase
from settlers.engine.trade import open_offers_for
from settlers.engine.turn import TurnPhaseStateMachine, get_valid_actions, initialize_game

logger = structlog.get_logger(__name__)


def acting_player(state: GameState) -> str:
    """Joueur qui doit agir: défausse en attente, réponse à une offre, sinon joueur actif."""

    if state.phase is Phase.DISCARD:
        for player_id in state.turn_order:
            if player_id in state.pending_discards:
                return player_id
    if state.phase is Phase.MAIN:
        for player_id in state.turn_order:
            if open_offers_for(state, player_id):
                return player_id
    return state.current_player_id


@dataclass(frozen=True)
class StepResult:
    """Résultat d'un appel à HeadlessEnv.step()."""

    state: GameState
    reward: Tuple[float, ...]
    done: bool
    info: Dict[str, Any]


class HeadlessEnv:
    """Environnement headless léger pour le moteur."""

    def __init__(
        self,
        *,
        seed: int | None = None,
        player_count: int = 4,
        settings: Settings | None = None,
        machine: TurnPhaseStateMachine | None = None,
    ) -> None:
        self._base_seed = seed
        self._player_count = player_count
        self._settings = settings or Settings()
        self._machine = machine or TurnPhaseStateMachine(clock=lambda: 0.0)
        self._state: GameState | None = None

    @property
    def state(self) -> GameState:
        """Retourne l'état courant (reset doit avoir été appelé)."""

        if self._state is None:
            raise RuntimeError("reset() doit être appelé avant d'accéder à l'état")
        return self._state

    def reset(
        self,
        *,
        seed: int | None = None,
        state: GameState | None = None,
    ) -> GameState:
        if state is not None:
            self._state = state
            return state
        effective_seed = seed if seed is not None else self._base_seed
        settings = replace(self._settings, seed=effective_seed)
        player_ids = [f"player-{index + 1}" for index in range(self._player_count)]
        self._state = initialize_game(player_ids, settings)
        return self._state

    def acting_player(self) -> str:
        return acting_player(self.state)

    def legal_actions(self, player_id: str | None = None) -> List[Action]:
        """Actions concrètes du joueur (par défaut, celui qui doit agir)."""

        return get_valid_actions(self.state, player_id or acting_player(self.state))

    def step(self, action: Action, player_id: str | None = None) -> StepResult:
        """Applique une action; lève ValueError si le moteur la rejette."""

        player_id = player_id or acting_player(self.state)
        result = self._machine.process_action(self.state, action, player_id)
        if not result.success:
            raise ValueError(f"Action illégale: {action} ({result.error})")
        new_state = result.new_state
        self._state = new_state

        done = new_state.is_game_over
        reward = tuple(
            1.0 if done and player.player_id == new_state.winner_id else 0.0
            for player in new_state.players
        )
        info = {"last_action": action, "player_id": player_id}
        return StepResult(state=new_state, reward=reward, done=done, info=info)


def run_random_game(
    seed: int,
    player_count: int = 4,
    max_steps: int = 5000,
    on_step: Callable[[StepResult], None] | None = None,
) -> GameState:
    """Joue des actions légales tirées au hasard jusqu'à la fin ou `max_steps`."""

    env = HeadlessEnv(seed=seed, player_count=player_count)
    state = env.reset()
    policy = np.random.default_rng([seed, 1])
    steps = 0
    for steps in range(1, max_steps + 1):
        actions = env.legal_actions()
        if not actions:
            logger.warning("no_legal_actions", phase=state.phase.value, version=state.version)
            break
        action = actions[int(policy.integers(len(actions)))]
        result = env.step(action)
        state = result.state
        if on_step is not None:
            on_step(result)
        if result.done:
            break
    logger.info(
        "random_game_finished",
        seed=seed,
        steps=steps,
        winner_id=state.winner_id,
        turn=state.turn,
    )
    return state


__all__ = ["HeadlessEnv", "StepResult", "acting_player", "run_random_game"]
