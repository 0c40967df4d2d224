"""Voleur: placements valides, cibles de vol et vol aléatoire d'une carte."""

from __future__ import annotations

from typing import List

import structlog

from settlers.engine.building import buildings_on
from settlers.engine.coords import HexCoord, hex_vertices
from settlers.engine.errors import ValidationResult
from settlers.engine.ledger import Ledger, ResourceLedger
from settlers.engine.state import GameState

logger = structlog.get_logger(__name__)

FRIENDLY_ROBBER_THRESHOLD = 3


def simple_victory_points(state: GameState, player_id: str) -> int:
    """Estimation publique: colonie = 1, ville = 2."""

    return sum(
        2 if building.building_type == "city" else 1
        for building in state.buildings_of(player_id)
    )


def _occupants(state: GameState, coord: HexCoord) -> set[str]:
    return {building.owner_id for building in buildings_on(state, hex_vertices(coord))}


def _protected_by_friendly_rule(state: GameState, coord: HexCoord, active_player_id: str) -> bool:
    occupants = _occupants(state, coord) - {active_player_id}
    return bool(occupants) and all(
        simple_victory_points(state, player_id) < FRIENDLY_ROBBER_THRESHOLD
        for player_id in occupants
    )


def valid_robber_placements(
    state: GameState,
    active_player_id: str,
    friendly: bool | None = None,
) -> List[HexCoord]:
    """Tuiles terrestres (hors eau et brouillard) autres que celle du voleur."""

    if friendly is None:
        friendly = state.settings.friendly_robber
    candidates = [
        tile.coord
        for tile in state.board.tiles
        if tile.is_land and tile.coord != state.robber_hex
    ]
    if not friendly:
        return candidates
    allowed = [
        coord
        for coord in candidates
        if not _protected_by_friendly_rule(state, coord, active_player_id)
    ]
    # Si la règle exclut tout, le voleur doit quand même pouvoir bouger.
    return allowed or candidates


def validate_robber_move(state: GameState, player_id: str, coord: HexCoord) -> ValidationResult:
    if coord == state.robber_hex:
        return ValidationResult.fail("The robber must move to a different tile")
    if coord not in valid_robber_placements(state, player_id):
        return ValidationResult.fail("Invalid robber placement")
    return ValidationResult.ok()


def move_robber(state: GameState, coord: HexCoord) -> GameState:
    new_state = state.clone()
    new_state.board = new_state.board.with_robber(coord)
    new_state.robber_hex = coord
    return new_state


def steal_targets(state: GameState, coord: HexCoord, active_player_id: str) -> List[str]:
    """Adversaires ayant un bâtiment sur la tuile et au moins une carte (ordre du tour)."""

    occupants = _occupants(state, coord)
    return [
        player_id
        for player_id in state.turn_order
        if player_id != active_player_id
        and player_id in occupants
        and state.player(player_id).resource_count > 0
    ]


def validate_steal(state: GameState, thief_id: str, victim_id: str) -> ValidationResult:
    if victim_id == thief_id:
        return ValidationResult.fail("Cannot steal from yourself")
    if state.robber_hex is None or victim_id not in steal_targets(state, state.robber_hex, thief_id):
        return ValidationResult.fail("Cannot steal from this player")
    return ValidationResult.ok()


def steal_resource(
    state: GameState,
    thief_id: str,
    victim_id: str,
    ledger: Ledger | None = None,
) -> GameState:
    """Tire une carte uniformément parmi les cartes individuelles de la victime."""

    new_state = state.clone()
    rng = new_state.rng()
    victim = new_state.player(victim_id)
    cards = [
        resource for resource, amount in victim.resources.items() for _ in range(amount)
    ]
    stolen = cards[int(rng.integers(len(cards)))]
    new_state.store_rng(rng)

    (ledger or ResourceLedger()).transfer(new_state, victim_id, thief_id, {stolen: 1})
    new_state.player(thief_id).times_robbed += 1
    victim.times_was_robbed += 1
    logger.debug("resource_stolen", thief_id=thief_id, victim_id=victim_id)
    return new_state


__all__ = [
    "FRIENDLY_ROBBER_THRESHOLD",
    "move_robber",
    "simple_victory_points",
    "steal_resource",
    "steal_targets",
    "valid_robber_placements",
    "validate_robber_move",
    "validate_steal",
]
