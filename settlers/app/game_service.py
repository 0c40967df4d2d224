"""Service d'orchestration d'une salle de jeu.

`process_action` n'est pas conçu pour des mutations concurrentes d'un même
état: le service sérialise les appels derrière un verrou par salle et adopte
systématiquement l'état retourné.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Mapping, Sequence

import numpy as np
import structlog

from settlers.app.event_bus import EventBus
from settlers.app.events import (
    ActionAppliedEvent,
    ActionRejectedEvent,
    GameEndedEvent,
    GameStartedEvent,
)
from settlers.engine.actions import Action
from settlers.engine.rules import Settings
from settlers.engine.serialize import action_from_payload, snapshot_to_state, state_to_snapshot
from settlers.engine.state import GameState
from settlers.engine.turn import (
    ActionResult,
    TurnPhaseStateMachine,
    get_valid_actions,
    initialize_game,
)

logger = structlog.get_logger(__name__)


class GameService:
    """Possède l'état d'une salle et publie les évènements pour le réseau ou la simulation."""

    def __init__(
        self,
        room_id: str = "default",
        *,
        event_bus: EventBus | None = None,
        machine: TurnPhaseStateMachine | None = None,
    ) -> None:
        self.room_id = room_id
        self._event_bus = event_bus or EventBus()
        self._machine = machine or TurnPhaseStateMachine()
        self._lock = threading.Lock()
        self._state: GameState | None = None
        self._log = logger.bind(room_id=room_id)

    @property
    def event_bus(self) -> EventBus:
        return self._event_bus

    @property
    def state(self) -> GameState:
        """État courant de la partie (erreur si aucune partie lancée)."""

        if self._state is None:
            raise RuntimeError("Aucune partie initialisée. Utiliser start_new_game().")
        return self._state

    def start_new_game(
        self,
        player_ids: Sequence[str],
        settings: Settings | Mapping[str, Any] | None = None,
        *,
        rng: np.random.Generator | None = None,
    ) -> GameState:
        """Initialise une partie; `settings` accepte aussi un dictionnaire du lobby."""

        if isinstance(settings, Mapping):
            settings = Settings.from_mapping(settings)
        state = initialize_game(player_ids, settings, rng=rng)
        with self._lock:
            self._state = state
        self._log.info("game_started", players=list(state.turn_order))
        self._event_bus.publish(GameStartedEvent(state=state))
        return state

    def restore(self, snapshot: Mapping[str, Any]) -> GameState:
        state = snapshot_to_state(snapshot)
        with self._lock:
            self._state = state
        self._log.info("game_restored", version=state.version)
        self._event_bus.publish(GameStartedEvent(state=state))
        return state

    def legal_actions(self, player_id: str) -> List[Action]:
        return get_valid_actions(self.state, player_id)

    def dispatch(self, action: Action, player_id: str) -> ActionResult:
        """Applique une action sous verrou, puis notifie les observateurs."""

        with self._lock:
            previous = self.state
            result = self._machine.process_action(previous, action, player_id)
            self._state = result.new_state

        if not result.success:
            self._log.info("action_rejected", action=action.type, player_id=player_id, error=result.error)
            self._event_bus.publish(
                ActionRejectedEvent(
                    action=action,
                    player_id=player_id,
                    state=result.new_state,
                    error=result.error,
                )
            )
            return result

        self._event_bus.publish(
            ActionAppliedEvent(
                action=action,
                player_id=player_id,
                previous_state=previous,
                new_state=result.new_state,
            )
        )
        if result.new_state.is_game_over and not previous.is_game_over:
            self._log.info("game_ended", winner_id=result.new_state.winner_id)
            self._event_bus.publish(
                GameEndedEvent(state=result.new_state, winner_id=result.new_state.winner_id)
            )
        return result

    def dispatch_payload(self, payload: Mapping[str, Any], player_id: str) -> ActionResult:
        """Variante pour les messages réseau `{"type": ..., ...}`."""

        return self.dispatch(action_from_payload(payload), player_id)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return state_to_snapshot(self.state)


__all__ = ["GameService"]
