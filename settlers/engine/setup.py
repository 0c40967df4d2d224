"""Placement initial: ordre en serpent et ressources de départ.

Ordre des poses pour n joueurs: P1..Pn puis Pn..P1, chaque tour de pose
enchaînant une colonie puis une route (4 poses par joueur au total). La
seconde colonie de chaque joueur rapporte une carte par tuile productive
adjacente.
"""

from __future__ import annotations

from typing import List, Sequence

import structlog

from settlers.engine.building import place_road, place_settlement, starting_resources
from settlers.engine.coords import EdgeCoord, VertexCoord
from settlers.engine.errors import invariant
from settlers.engine.ledger import Ledger, ResourceLedger
from settlers.engine.state import GameState, Phase, SetupProgress, transition

logger = structlog.get_logger(__name__)


def setup_order(turn_order: Sequence[str]) -> List[str]:
    """Aller dans l'ordre des sièges puis retour immédiat."""

    return list(turn_order) + list(reversed(turn_order))


def total_setup_placements(player_count: int) -> int:
    return player_count * 4


def new_setup_progress(turn_order: Sequence[str]) -> SetupProgress:
    return SetupProgress(order=setup_order(turn_order))


def setup_player_at(progress: SetupProgress, placement_index: int) -> str:
    return progress.order[placement_index // 2]


def placement_kind(placement_index: int) -> str:
    return "settlement" if placement_index % 2 == 0 else "road"


def is_second_round(progress: SetupProgress) -> bool:
    return progress.placement_index >= len(progress.order)


def is_setup_complete(state: GameState) -> bool:
    if state.setup is None:
        return True
    return state.setup.placement_index >= total_setup_placements(len(state.players))


def _phase_for(progress: SetupProgress) -> Phase:
    second = is_second_round(progress)
    if placement_kind(progress.placement_index) == "settlement":
        return Phase.SETUP_SETTLEMENT_2 if second else Phase.SETUP_SETTLEMENT_1
    return Phase.SETUP_ROAD_2 if second else Phase.SETUP_ROAD_1


def place_setup_settlement(
    state: GameState,
    player_id: str,
    vertex: VertexCoord,
    ledger: Ledger | None = None,
) -> GameState:
    new_state = place_settlement(state, player_id, vertex, free=True)
    progress = new_state.setup
    invariant(progress is not None, "Setup progress missing")
    if is_second_round(progress):
        grant = {
            resource: min(amount, new_state.bank[resource])
            for resource, amount in starting_resources(new_state, vertex).items()
        }
        (ledger or ResourceLedger()).credit(new_state, player_id, grant, collected=True)
        logger.debug("starting_resources_granted", player_id=player_id, resources=grant)
    progress.last_settlement = vertex
    return advance_setup(new_state)


def place_setup_road(state: GameState, player_id: str, edge: EdgeCoord) -> GameState:
    new_state = place_road(state, player_id, edge, free=True)
    progress = new_state.setup
    invariant(progress is not None, "Setup progress missing")
    progress.last_settlement = None
    return advance_setup(new_state)


def advance_setup(state: GameState) -> GameState:
    """Incrémente l'index de pose; bascule en `roll` après la dernière pose."""

    new_state = state.clone()
    progress = new_state.setup
    invariant(progress is not None, "Setup progress missing")
    progress.placement_index += 1

    if is_setup_complete(new_state):
        transition(new_state, Phase.ROLL)
        new_state.turn = 1
        new_state.current_player_id = new_state.turn_order[0]
        logger.info("setup_complete", first_player=new_state.current_player_id)
        return new_state

    transition(new_state, _phase_for(progress))
    new_state.current_player_id = setup_player_at(progress, progress.placement_index)
    return new_state


__all__ = [
    "advance_setup",
    "is_second_round",
    "is_setup_complete",
    "new_setup_progress",
    "place_setup_road",
    "place_setup_settlement",
    "placement_kind",
    "setup_order",
    "setup_player_at",
    "total_setup_placements",
]
